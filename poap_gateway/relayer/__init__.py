"""
Gasless relayer: the backend keypair that pays for and signs POAP mints.
"""
