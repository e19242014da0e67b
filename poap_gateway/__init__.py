"""
POAP Gasless Gateway
====================

Multi-tenant backend for proof-of-attendance campaigns on Solana.

Features:
- Organizer accounts with JWT sessions and API keys
- Campaign management with image upload
- Public claiming with secret codes and max-claim limits
- Gasless minting (relayer keypair pays fees for the user)
- Claim analytics per organizer
"""

__version__ = "2.0.0"
__author__ = "POAP Gateway Team"
