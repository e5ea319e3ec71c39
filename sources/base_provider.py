"""
Base image provider interface for ComicLock.

Defines the value types passed between the resolver, the fetcher and the
transform pipeline, and the abstract interface every image source implements.
"""
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional
from core.errors import TransformIntegrityError
from core.logging.logger import get_logger

logger = get_logger(__name__)

# Canonical local filename for a downloaded comic, e.g. "xkcd-0353.png".
CANONICAL_PREFIX = "xkcd-"
CANONICAL_NAME_PATTERN = re.compile(r'^xkcd-(\d+)\.[A-Za-z0-9]+$')


def canonical_stem(number: int) -> str:
    """Filename stem (no extension) under which comic ``number`` is stored."""
    return f"{CANONICAL_PREFIX}{number:04d}"


def number_from_filename(path: Path) -> Optional[int]:
    """Comic number embedded in a canonical filename, or None."""
    match = CANONICAL_NAME_PATTERN.match(Path(path).name)
    if not match:
        return None
    number = int(match.group(1))
    return number if number > 0 else None


class ImageSourceType(Enum):
    """Type of image source."""
    EXPLICIT = "explicit"
    FOLDER = "folder"
    REMOTE = "remote"


class ImageFormat(Enum):
    """Coarse on-disk image format."""
    PNG = "png"
    JPG = "jpg"
    OTHER = "other"

    @classmethod
    def from_path(cls, path) -> "ImageFormat":
        suffix = Path(path).suffix.lower()
        if suffix == ".png":
            return cls.PNG
        if suffix in (".jpg", ".jpeg", ".jfif"):
            return cls.JPG
        return cls.OTHER

    @property
    def is_lossy(self) -> bool:
        return self is ImageFormat.JPG


@dataclass(frozen=True)
class ComicReference:
    """
    A comic's permanent index plus what a remote fetch learned about it.

    ``hotlink_url`` and ``caption`` stay empty until a page has been fetched.
    """
    number: int
    hotlink_url: str = ""
    caption: str = ""

    def __post_init__(self):
        if self.number <= 0:
            raise ValueError(f"Comic number must be positive, got {self.number}")

    @property
    def label(self) -> str:
        return f"#{self.number}"


@dataclass(frozen=True)
class ImageAsset:
    """
    An image file produced or consumed by a pipeline stage.

    ``transient`` assets (downloads, stage outputs) are owned by the run and
    may be deleted once consumed; everything else belongs to the user or the
    installation and is never touched.
    """
    path: Path
    format: ImageFormat
    transient: bool = False

    @classmethod
    def from_path(cls, path, transient: bool = False) -> "ImageAsset":
        path = Path(path)
        return cls(path=path, format=ImageFormat.from_path(path), transient=transient)

    def exists(self) -> bool:
        return self.path.is_file()

    def require(self, stage: str) -> "ImageAsset":
        """Return self, or raise TransformIntegrityError if the file is missing."""
        if not self.exists():
            raise TransformIntegrityError(stage, self.path)
        return self

    def release(self) -> None:
        """Delete the file if this run owns it."""
        if self.transient:
            try:
                self.path.unlink(missing_ok=True)
            except OSError as e:
                logger.debug("Could not remove %s: %s", self.path, e)


@dataclass(frozen=True)
class ResolvedImage:
    """The resolver's answer: which raw image to composite, and what it shows."""
    asset: ImageAsset
    comic: Optional[ComicReference] = None
    fallback: bool = False

    @property
    def path(self) -> Path:
        return self.asset.path


class ImageProvider(ABC):
    """
    Abstract base class for image providers.

    Each selection mode (explicit path, random folder pick, latest remote
    comic) is implemented as a provider.
    """

    def __init__(self, source_id: str, source_type: ImageSourceType):
        """
        Initialize the image provider.

        Args:
            source_id: Unique identifier for this source
            source_type: Type of source
        """
        self.source_id = source_id
        self.source_type = source_type
        self._logger = logger.getChild(f"{source_type.value}")

    @abstractmethod
    def resolve(self) -> ResolvedImage:
        """
        Choose the raw image for this run.

        Returns:
            ResolvedImage pointing at an existing file

        Raises:
            ComicLockError: subclass appropriate to the failure
        """

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if this source can currently produce an image.

        Returns:
            True if source is available, False otherwise
        """

    def __str__(self) -> str:
        return f"{self.source_type.value}:{self.source_id}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} source_id={self.source_id}>"
