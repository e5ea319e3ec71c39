"""Centralised version and naming information for ComicLock.

Single source of truth for the application name, version and the identity
used for QSettings and the User-Agent header, so the strings are not
duplicated across the codebase.
"""
from __future__ import annotations

APP_NAME: str = "ComicLock"
APP_EXE_NAME: str = "comiclock"
APP_VERSION: str = "1.0.0"
APP_DESCRIPTION: str = "ComicLock - lock your screen behind a freshly composited xkcd comic."
APP_ORGANIZATION: str = "ComicLock"


def user_agent() -> str:
    """User-Agent header sent with every HTTP request."""
    return f"{APP_EXE_NAME}/{APP_VERSION} (+screen lock background fetcher)"


__all__ = [
    "APP_NAME",
    "APP_EXE_NAME",
    "APP_VERSION",
    "APP_DESCRIPTION",
    "APP_ORGANIZATION",
    "user_agent",
]
