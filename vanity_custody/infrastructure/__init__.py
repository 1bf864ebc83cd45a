"""Infrastructure Layer: external service clients and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/
    - Transport failures mapped to VanityError subclasses at the client boundary
"""
