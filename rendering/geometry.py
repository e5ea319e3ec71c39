"""
Screen geometry value type shared by display enumeration and compositing.
"""
from dataclasses import dataclass
from typing import Tuple

from core.errors import FatalConfigError


@dataclass(frozen=True)
class ScreenGeometry:
    """Resolution of one display, in physical pixels."""
    width: int
    height: int
    name: str = ""

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Screen geometry must be positive, got {self.width}x{self.height}")

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def __str__(self) -> str:
        label = f"{self.width}x{self.height}"
        return f"{self.name} ({label})" if self.name else label


def compute_target_size(screen: ScreenGeometry, padding: int) -> Tuple[int, int]:
    """
    Box the raw image is resized into: the screen minus ``padding`` per axis.

    Raises:
        FatalConfigError: if the padding leaves no room on either axis
    """
    width = screen.width - padding
    height = screen.height - padding
    if width <= 0 or height <= 0:
        raise FatalConfigError(
            f"Padding {padding}px leaves no room on a {screen.width}x{screen.height} screen"
        )
    return (width, height)
