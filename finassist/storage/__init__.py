"""Mini README: Local persistence for the Financial Assistant.

Exports the JSON-file key-value store that every other component uses for
user records, collection bundles, goal plans and capped logs.
"""

from .local_store import LocalStore

__all__ = ["LocalStore"]
