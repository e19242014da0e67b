"""
Utility modules for the POAP gateway.
"""
