"""
Storage subsystem.

Components:
- kv_store.py: backing key-value stores (in-memory with optional quota, SQLite)
- gateway.py: the three named slots + probe / degraded mode
"""
