"""Infrastructure Layer — database, clock and logging plumbing.

Invariants:
    - Infrastructure never imports from services/
    - Everything here is constructed explicitly and injected

Design Decisions:
    - Thin wrappers over SQLAlchemy and logging; no domain rules live here
"""
