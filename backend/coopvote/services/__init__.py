"""Service Layer — imperative shell: persistence, directory lookups, orchestration.

Invariants:
    - Services call core/ pure functions for every rule; they only add IO around them
    - Each public VotingService method maps to one API operation

Design Decisions:
    - AsyncSession injected per request (no module-level sessions)
"""
