"""Image sources for ComicLock."""

from .base_provider import (
    ComicReference,
    ImageAsset,
    ImageFormat,
    ImageProvider,
    ImageSourceType,
    ResolvedImage,
)
from .explicit_source import ExplicitSource
from .folder_source import FolderSource
from .remote_source import LatestComicSource
from .resolver import ImageSourceResolver

__all__ = [
    'ComicReference', 'ImageAsset', 'ImageFormat', 'ImageProvider', 'ImageSourceType',
    'ResolvedImage', 'ExplicitSource', 'FolderSource', 'LatestComicSource',
    'ImageSourceResolver',
]
