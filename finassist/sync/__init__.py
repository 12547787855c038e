"""Mini README: Local/server reconciliation for the Financial Assistant.

Groups the last-write-wins merge helpers, the best-effort HTTP client for
the optional sync server, and the periodic background sync timer.
"""

from .client import ServerClient
from .merge import fingerprint, has_changes, merge_records, resolve_conflicts
from .scheduler import BackgroundSync

__all__ = [
    "BackgroundSync",
    "ServerClient",
    "fingerprint",
    "has_changes",
    "merge_records",
    "resolve_conflicts",
]
