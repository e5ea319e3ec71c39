"""
Display geometry for compositing.

Enumerates connected monitors through Qt and reports the resolution the
composite is built for.
"""
from typing import Callable, Iterable, List, Optional

from PySide6.QtGui import QGuiApplication, QScreen

from core.errors import NoDisplayError
from core.logging.logger import get_logger
from rendering.geometry import ScreenGeometry

logger = get_logger(__name__)


def _qt_screens() -> Iterable[QScreen]:
    if QGuiApplication.instance() is None:
        raise NoDisplayError("Display enumeration requires a QGuiApplication")
    return QGuiApplication.screens()


def screen_geometry(screen: QScreen) -> ScreenGeometry:
    """Physical-pixel resolution of a Qt screen."""
    size = screen.size()
    dpr = float(screen.devicePixelRatio() or 1.0)
    return ScreenGeometry(
        width=int(round(size.width() * dpr)),
        height=int(round(size.height() * dpr)),
        name=screen.name(),
    )


class DisplayManager:
    """
    Reports the resolution of every connected display.

    The largest display by area governs compositing; the smallest is
    available for callers that prefer a composite that fits everywhere.
    """

    def __init__(self, screen_source: Optional[Callable[[], Iterable]] = None):
        """
        Args:
            screen_source: Callable returning QScreen-like objects or
                ScreenGeometry values (defaults to QGuiApplication.screens)
        """
        self._screen_source = screen_source or _qt_screens

    def screens(self) -> List[ScreenGeometry]:
        """All connected displays, in the order the platform reports them."""
        geometries = []
        for screen in self._screen_source():
            geometry = screen if isinstance(screen, ScreenGeometry) else screen_geometry(screen)
            geometries.append(geometry)
        if not geometries:
            raise NoDisplayError("No connected display reported")
        logger.debug("[DISPLAY] %d screen(s): %s", len(geometries), ", ".join(str(g) for g in geometries))
        return geometries

    def largest(self) -> ScreenGeometry:
        """Maximum-area display; first reported wins ties."""
        screens = self.screens()
        best = max(screens, key=lambda g: g.area)
        logger.info("[DISPLAY] Compositing for %s", best)
        return best

    def smallest(self) -> ScreenGeometry:
        """Minimum-area display; first reported wins ties."""
        return min(self.screens(), key=lambda g: g.area)


__all__ = ["DisplayManager", "screen_geometry"]
