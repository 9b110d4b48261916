"""Infrastructure Layer — storage engines, transport adapters, and logging.

Invariants:
    - Every storage call is bounded by a timeout and mapped to StorageUnavailableError
    - Transport adapters satisfy core.repository_protocols.Transport

Design Decisions:
    - Adapters over raw clients: core never sees SQLAlchemy or Starlette types
"""
