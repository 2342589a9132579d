"""
Persistence module.

SQLite-backed read-only context store and the trade journal.
"""
