"""Core Layer — pure voting domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, models/ or db/
    - All functions are pure and deterministic; the clock is always passed in

Design Decisions:
    - Functional core separated from imperative shell (services/ orchestrates IO)
"""
