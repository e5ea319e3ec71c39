"""
Folder-based image source for ComicLock.

Picks a uniformly random image from a flat local directory.
"""
import os
import random
from pathlib import Path
from typing import List, Optional
from core.errors import NoImageFoundError
from sources.base_provider import (
    ComicReference,
    ImageAsset,
    ImageProvider,
    ImageSourceType,
    ResolvedImage,
    number_from_filename,
)

# Supported image formats
SUPPORTED_EXTENSIONS = {
    '.jpg', '.jpeg',  # JPEG
    '.png',           # PNG
    '.bmp',           # Bitmap
    '.gif',           # GIF
    '.webp',          # WebP
    '.tiff', '.tif',  # TIFF
    '.jfif',          # JPEG File Interchange Format
}


class FolderSource(ImageProvider):
    """
    Image provider that picks a random file from a local folder.

    Only regular files directly inside the folder are considered; hidden
    files (including in-flight ``.tmp.`` downloads) are skipped.
    """

    def __init__(self, folder_path, rng: Optional[random.Random] = None,
                 source_id: str = None):
        """
        Initialize folder source.

        Args:
            folder_path: Path to folder to pick from
            rng: Random generator (injectable for deterministic tests)
            source_id: Optional custom source ID (defaults to folder name)
        """
        self.folder_path = Path(folder_path)
        self._rng = rng or random.Random()

        if source_id is None:
            source_id = self.folder_path.name or str(self.folder_path)

        super().__init__(source_id, ImageSourceType.FOLDER)

    def list_images(self) -> List[Path]:
        """
        List candidate images in the folder.

        Raises:
            NoImageFoundError: if the folder is missing or unreadable
        """
        if not self.is_available():
            raise NoImageFoundError(f"Image directory not available: {self.folder_path}")

        try:
            entries = sorted(self.folder_path.iterdir())
        except OSError as e:
            raise NoImageFoundError(f"Cannot read image directory {self.folder_path}: {e}") from e

        images = []
        for file_path in entries:
            if file_path.name.startswith('.'):
                continue
            if file_path.suffix.lower() not in SUPPORTED_EXTENSIONS:
                continue
            if not file_path.is_file():
                continue
            images.append(file_path)
        return images

    def resolve(self) -> ResolvedImage:
        """
        Pick one image uniformly at random.

        Raises:
            NoImageFoundError: if the folder holds no usable image
        """
        images = self.list_images()
        if not images:
            raise NoImageFoundError(f"No images found in {self.folder_path}")

        choice = self._rng.choice(images)
        self._logger.info("[RESOLVE] Random pick %s (from %d images)", choice.name, len(images))

        number = number_from_filename(choice)
        comic = ComicReference(number=number) if number is not None else None
        return ResolvedImage(asset=ImageAsset.from_path(choice), comic=comic)

    def is_available(self) -> bool:
        """
        Check if folder exists and is readable.

        Returns:
            True if folder is available
        """
        return self.folder_path.is_dir() and os.access(self.folder_path, os.R_OK)

    def __str__(self) -> str:
        return f"FolderSource({self.folder_path})"
