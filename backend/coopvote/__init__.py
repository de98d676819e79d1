"""CoopVote Application Package — cooperative governance voting service.

Invariants:
    - Package root holds only the version; importing it has no side effects

Design Decisions:
    - Explicit imports only, no star exports
"""

__version__ = "1.0.0"
