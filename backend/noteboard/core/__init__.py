"""Core Layer — domain types, errors, and the fan-out/persistence engine.

Invariants:
    - No module in core/ imports from api/, infrastructure/, models/, or db/
    - IO reaches core only through the Protocols in repository_protocols.py

Design Decisions:
    - Registry, heartbeat and hub are async because they own asyncio tasks and
      locks, but they never touch sockets or SQL directly (transport and store
      are injected)
"""
