"""Vanity Custody: issuance, linkage and ownership transfer of purchasable XRPL vanity addresses.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
