"""Services Layer — vote tabulation, aggregate upkeep, and read-side analytics.

Invariants:
    - TabulationEngine is the only writer of votes and aggregate rows
    - DistributionReader never writes
    - Services receive their collaborators through constructors (built in main.build_services)

Design Decisions:
    - One class per file; pure rules stay in core/ and are called from here
"""
