"""Adapters - version stores for the history engine.

Contains:
- memory_store.py  - Append-only in-memory VersionStore
- sql_store.py     - SQLAlchemy VersionStore and engine/session lifecycle
"""

__all__: list[str] = []
