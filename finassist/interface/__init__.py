"""Mini README: Network interfaces for the Financial Assistant.

Exports the FastAPI application factory for the optional sync server.
"""

from .web_app import create_application

__all__ = ["create_application"]
