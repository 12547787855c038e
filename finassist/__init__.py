"""Mini README: Core package initializer for the Financial Assistant.

This module exposes convenience imports so callers can reach the logging
helpers without knowing the package layout. Services are assembled in
:mod:`finassist.services` to keep this import lightweight.
"""

from .logging_utils import get_logger

__all__ = ["get_logger"]
