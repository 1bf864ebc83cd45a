"""Services Layer: ConfigCache, stores, StatisticsRecorder and OwnershipTransfer.

Invariants:
    - Every public operation catches storage / ledger failures at its own boundary
    - Services receive their collaborators by injection (container.py)
"""
