"""
Shared pytest fixtures for ComicLock tests.
"""
import os
import sys
from pathlib import Path

import pytest

# Painting and font metrics need a platform plugin; never touch a real display.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtGui import QGuiApplication  # noqa: E402

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(scope='session')
def qt_app():
    """Create QGuiApplication instance for tests."""
    app = QGuiApplication.instance()
    if app is None:
        app = QGuiApplication(sys.argv[:1])
    yield app
    # Don't quit - causes issues with pytest


@pytest.fixture(autouse=True)
def isolated_storage(tmp_path, monkeypatch):
    """Redirect cache and pictures roots into the test's temp dir."""
    from core.settings import storage_paths

    cache_root = tmp_path / "cache"
    pictures_root = tmp_path / "pictures"
    monkeypatch.setattr(storage_paths, "_cache_root", lambda: cache_root)
    monkeypatch.setattr(storage_paths, "_pictures_root", lambda: pictures_root)
    storage_paths.reset_module_cache()
    yield tmp_path
    storage_paths.reset_module_cache()


@pytest.fixture
def settings_manager():
    """Create SettingsManager instance for testing."""
    from core.settings.settings_manager import SettingsManager
    manager = SettingsManager(organization="Test", application="ComicLockTest")
    manager.clear()
    yield manager
    # Clear test settings
    manager.clear()


@pytest.fixture
def fixture_page():
    """Load a golden HTML page from tests/fixtures."""
    def _load(name: str) -> str:
        return (FIXTURES_DIR / name).read_text(encoding="utf-8")
    return _load


@pytest.fixture
def temp_image(tmp_path):
    """Create a temporary 400x300 PNG test image."""
    from PIL import Image

    image_path = tmp_path / "test_image.png"
    Image.new("RGB", (400, 300), (255, 0, 0)).save(image_path)
    return image_path


@pytest.fixture
def image_bytes():
    """Encode a small in-memory image as PNG or JPEG bytes."""
    import io
    from PIL import Image

    def _encode(fmt: str = "PNG", size=(64, 48), colour=(0, 128, 255)) -> bytes:
        buffer = io.BytesIO()
        Image.new("RGB", size, colour).save(buffer, fmt)
        return buffer.getvalue()
    return _encode
