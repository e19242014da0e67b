"""
ORM models for the POAP gateway.
"""

from .organizer import Organizer
from .api_key import ApiKey
from .campaign import Campaign
from .claim import Claim, LegacyMint, CLAIM_PENDING, CLAIM_CONFIRMED

__all__ = [
    "Organizer",
    "ApiKey",
    "Campaign",
    "Claim",
    "LegacyMint",
    "CLAIM_PENDING",
    "CLAIM_CONFIRMED",
]
