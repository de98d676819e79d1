"""Database Declarations — declarative Base shared by models and migrations.

Invariants:
    - Only metadata lives here; engines and sessions belong to infrastructure/database.py
"""
