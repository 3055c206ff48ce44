"""
Credit Engine - Five-C Creditworthiness Scoring & Lending Decisions

Scores thin-file applicants across Capacity, Character, Capital,
Collateral and Conditions, then derives lending decisions and loan offers.
"""

__version__ = "0.1.0"
