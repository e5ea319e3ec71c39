"""
Explicit-path image source: the user named the file to show.
"""
from pathlib import Path
from core.errors import MissingAssetError
from sources.base_provider import (
    ComicReference,
    ImageAsset,
    ImageProvider,
    ImageSourceType,
    ResolvedImage,
    number_from_filename,
)


class ExplicitSource(ImageProvider):
    """Resolves to a single user-supplied image path."""

    def __init__(self, image_path):
        self.image_path = Path(image_path)
        super().__init__(self.image_path.name or str(self.image_path), ImageSourceType.EXPLICIT)

    def resolve(self) -> ResolvedImage:
        """
        Raises:
            MissingAssetError: if the path is not an existing file
        """
        if not self.is_available():
            raise MissingAssetError(self.image_path)

        self._logger.info("[RESOLVE] Using explicit image %s", self.image_path)
        number = number_from_filename(self.image_path)
        comic = ComicReference(number=number) if number is not None else None
        return ResolvedImage(asset=ImageAsset.from_path(self.image_path), comic=comic)

    def is_available(self) -> bool:
        return self.image_path.is_file()
