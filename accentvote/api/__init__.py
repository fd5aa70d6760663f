"""API Layer — FastAPI routes, request dependencies and error handlers.

Invariants:
    - Routers are included explicitly in main.create_app
    - Every error leaves the API as the same structured JSON envelope

Design Decisions:
    - Routes stay thin: validation via schemas, work via TabulationEngine/DistributionReader
"""
