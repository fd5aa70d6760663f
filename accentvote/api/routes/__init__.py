"""Route Modules — votes (write side), analytics (read side), health checks.

Invariants:
    - Each module defines its own APIRouter with prefix and tags
    - Only votes.py requires a voter key
"""
