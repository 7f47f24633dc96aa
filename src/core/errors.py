"""Directus source exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type so the CLI can map any
failure onto one exit status without leaking raw stack traces.
"""

from __future__ import annotations


class DirectusError(Exception):
    """Base exception for all Directus source failures."""


class DirectusConfigError(DirectusError):
    """Raised for invalid or incomplete source configuration."""


class DirectusAuthError(DirectusError):
    """Raised when login attempts are exhausted."""


class DirectusIngestError(DirectusError):
    """Raised when a collection cannot be fetched or committed."""


class DirectusAssetError(DirectusError):
    """Raised for asset listing and download failures."""
