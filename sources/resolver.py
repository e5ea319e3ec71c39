"""
ImageSourceResolver - decide which raw image a run composites.
"""
import random
from pathlib import Path
from typing import Optional
from core.logging.logger import get_logger
from core.settings.config import LockConfig, SelectionMode
from sources.base_provider import ImageProvider, ResolvedImage
from sources.comic.downloader import RemoteComicFetcher
from sources.explicit_source import ExplicitSource
from sources.folder_source import FolderSource
from sources.remote_source import DEFAULT_IMAGE_PATH, LatestComicSource

logger = get_logger(__name__)


class ImageSourceResolver:
    """
    Maps the configured selection mode onto an image provider.

    - explicit path: the file must exist (MissingAssetError otherwise)
    - random: uniform pick from the image directory (NoImageFoundError)
    - latest: newest remote comic, falling back to the bundled default
    """

    def __init__(self, config: LockConfig, fetcher=None,
                 rng: Optional[random.Random] = None,
                 default_path: Path = DEFAULT_IMAGE_PATH):
        self._config = config
        self._fetcher = fetcher
        self._rng = rng
        self._default_path = default_path

    def provider_for(self, work_dir: Path) -> ImageProvider:
        """Build the provider for the configured mode."""
        mode = self._config.mode
        if mode is SelectionMode.EXPLICIT:
            return ExplicitSource(self._config.image_path)
        if mode is SelectionMode.RANDOM:
            return FolderSource(self._config.image_dir, rng=self._rng)
        if self._fetcher is None:
            self._fetcher = RemoteComicFetcher()
        return LatestComicSource(self._fetcher, work_dir, default_path=self._default_path)

    def resolve(self, work_dir: Path) -> ResolvedImage:
        """
        Resolve the raw image for this run.

        Args:
            work_dir: Run-private directory for downloads

        Returns:
            ResolvedImage whose asset exists on disk
        """
        provider = self.provider_for(Path(work_dir))
        logger.debug("[RESOLVE] Mode %s via %r", self._config.mode.value, provider)
        resolved = provider.resolve()
        if resolved.fallback:
            logger.info("[RESOLVE] Resolved to bundled default %s", resolved.path)
        return resolved
