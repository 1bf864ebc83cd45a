"""Pydantic Schemas: value objects crossing the core's boundaries.

Invariants:
    - Origin configs are frozen snapshots; ledger results never carry secrets
    - Domain types from core/ used for enum fields
"""
