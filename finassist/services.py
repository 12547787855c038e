"""Mini README: Wiring for a client-side Financial Assistant instance.

Structure:
    * ApplicationServices - the store, server client, data manager, auth
      service, background sync and log history handler of one instance.
    * build_services - assemble them from ``FinassistSettings``.

Components receive their collaborators explicitly; nothing here is a
module-level singleton, so tests can build as many instances as they need.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .auth import AuthService
from .configuration import FinassistSettings, get_settings
from .finance.data_manager import DataManager
from .logging_utils import StorageLogHandler, configure_root_logger, get_logger
from .storage import LocalStore
from .sync import BackgroundSync, ServerClient

LOGGER = get_logger(__name__)


@dataclass
class ApplicationServices:
    settings: FinassistSettings
    store: LocalStore
    client: ServerClient
    data_manager: DataManager
    auth: AuthService
    background_sync: BackgroundSync
    log_handler: StorageLogHandler

    def shutdown(self) -> None:
        self.background_sync.stop()
        logging.getLogger().removeHandler(self.log_handler)


def build_services(
    settings: Optional[FinassistSettings] = None,
    *,
    store: Optional[LocalStore] = None,
    client: Optional[ServerClient] = None,
) -> ApplicationServices:
    """Create a fully wired instance; the background sync is not started."""

    settings = settings or get_settings()
    configure_root_logger(settings.log_level.upper())
    store = store or LocalStore(settings.store_path)

    log_handler = StorageLogHandler(store, limit=settings.log_history_limit)
    logging.getLogger().addHandler(log_handler)

    client = client or ServerClient(settings.server_url, timeout=settings.request_timeout_seconds)
    data_manager = DataManager(store, client=client)
    auth = AuthService.from_settings(data_manager, settings)
    background_sync = BackgroundSync(data_manager, interval=settings.sync_interval_seconds)
    LOGGER.info(
        "Financial Assistant ready (%s, %s)",
        settings.environment,
        f"server {settings.server_url}" if settings.server_url else "offline",
    )
    return ApplicationServices(
        settings=settings,
        store=store,
        client=client,
        data_manager=data_manager,
        auth=auth,
        background_sync=background_sync,
        log_handler=log_handler,
    )
