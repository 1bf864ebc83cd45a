"""API Layer: health checks and error handlers for the HTTP layer that mounts the core.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses
"""
