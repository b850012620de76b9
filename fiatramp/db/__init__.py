"""Database Infrastructure — declarative Base and shared column types.

Invariants:
    - All sessions are async (AsyncSession)

Design Decisions:
    - asyncpg driver for PostgreSQL, aiosqlite in the test suite
"""
