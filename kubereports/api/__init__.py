"""Probe/status API for kubereports.

Exposes:
    create_app -- FastAPI application factory.
"""

from kubereports.api.app import create_app

__all__ = ["create_app"]
