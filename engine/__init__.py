"""Engine module for ComicLock run orchestration."""

from .display_manager import DisplayManager
from .lock_engine import LockEngine
from .lock_launcher import LockLauncher

__all__ = ['DisplayManager', 'LockEngine', 'LockLauncher']
