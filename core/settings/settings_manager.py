"""
Persisted setting overrides for ComicLock.

Uses QSettings for storage. The store is only read once at startup to build
the immutable ``LockConfig``; nothing consults it afterwards.
"""
from typing import Any, List, Optional
import threading
from PySide6.QtCore import QSettings
from core.logging.logger import get_logger
from versioning import APP_NAME, APP_ORGANIZATION

logger = get_logger('SettingsManager')

# Keys recognised by LockConfig.from_sources(); anything else is ignored.
KNOWN_KEYS = (
    'images.directory',
    'lock.program',
    'render.padding',
    'render.background',
    'render.font',
    'render.wrap_width',
)


class SettingsManager:
    """
    Thin, thread-safe wrapper around QSettings with typed getters.
    """

    def __init__(self, organization: str = APP_ORGANIZATION,
                 application: str = APP_NAME):
        """
        Initialize the settings manager.

        Args:
            organization: Organization name for QSettings
            application: Application name for QSettings
        """
        self._settings = QSettings(organization, application)
        self._organization = organization
        self._application = application
        self._lock = threading.RLock()
        logger.debug("SettingsManager initialized (%s/%s)", organization, application)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value.

        Args:
            key: Setting key in dot notation (e.g., 'render.padding')
            default: Default value if key not found

        Returns:
            Setting value or default
        """
        with self._lock:
            return self._settings.value(key, default)

    def get_str(self, key: str) -> Optional[str]:
        """Return a stored value as a stripped string, or None when unset/blank."""
        value = self.get(key)
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    def set(self, key: str, value: Any) -> None:
        """
        Set a setting value.

        Args:
            key: Setting key in dot notation
            value: Value to set
        """
        if key not in KNOWN_KEYS:
            logger.warning("Storing unrecognised setting key: %s", key)
        with self._lock:
            self._settings.setValue(key, value)
        logger.debug("Setting changed: %s", key)

    def save(self) -> None:
        """Force save settings to persistent storage."""
        with self._lock:
            self._settings.sync()

    def get_all_keys(self) -> List[str]:
        """Get all setting keys."""
        with self._lock:
            return self._settings.allKeys()

    def contains(self, key: str) -> bool:
        """Check if a setting key exists."""
        with self._lock:
            return self._settings.contains(key)

    def remove(self, key: str) -> None:
        """Remove a setting key."""
        with self._lock:
            self._settings.remove(key)
        logger.debug(f"Removed setting: {key}")

    def clear(self) -> None:
        """Clear all settings (use with caution)."""
        with self._lock:
            self._settings.clear()
            self._settings.sync()
        logger.warning("All settings cleared")

    def __repr__(self) -> str:
        return f"<SettingsManager {self._organization}/{self._application}>"
