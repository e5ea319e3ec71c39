"""
Lock engine - orchestrates one ComicLock run.

A run resolves a raw image, measures the display, builds the composite in a
private workspace and finally hands the result to the lock program. Bulk mode
bypasses all of that and mirrors the catalog into the image directory.
"""
import random
from pathlib import Path
from typing import Optional

from core.logging.logger import get_logger
from core.settings import storage_paths
from core.settings.config import LockConfig
from engine.display_manager import DisplayManager
from engine.lock_launcher import LockLauncher
from rendering.compositor import CompositeResult, ImageTransformPipeline, StageWorkspace
from rendering.geometry import ScreenGeometry
from sources.comic.bulk import BulkDownloader, BulkReport
from sources.comic.downloader import RemoteComicFetcher
from sources.resolver import ImageSourceResolver

logger = get_logger(__name__)


class LockEngine:
    """
    Wires the resolver, display geometry, transform pipeline and launcher.

    Collaborators can be injected for tests; anything left as None is built
    from the configuration on first use.
    """

    def __init__(self, config: LockConfig, fetcher: Optional[RemoteComicFetcher] = None,
                 display_manager: Optional[DisplayManager] = None,
                 launcher: Optional[LockLauncher] = None,
                 rng: Optional[random.Random] = None,
                 work_root: Optional[Path] = None):
        self.config = config
        self._fetcher = fetcher
        self._display_manager = display_manager
        self._launcher = launcher
        self._rng = rng
        self._work_root = work_root

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    @property
    def fetcher(self) -> RemoteComicFetcher:
        if self._fetcher is None:
            self._fetcher = RemoteComicFetcher()
        return self._fetcher

    @property
    def display_manager(self) -> DisplayManager:
        if self._display_manager is None:
            self._display_manager = DisplayManager()
        return self._display_manager

    @property
    def launcher(self) -> LockLauncher:
        if self._launcher is None:
            self._launcher = LockLauncher(self.config.lock_program)
        return self._launcher

    def target_screen(self) -> ScreenGeometry:
        """Screen the composite is built for; the override skips enumeration."""
        if self.config.resolution is not None:
            width, height = self.config.resolution
            screen = ScreenGeometry(width=width, height=height, name="override")
            logger.info("[DISPLAY] Using resolution override %s", screen)
            return screen
        return self.display_manager.largest()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def prepare(self) -> CompositeResult:
        """
        Resolve, measure and composite; returns the published composite.

        Raises:
            FatalConfigError: missing image, empty pool, no display, bad padding
            TransformIntegrityError: a pipeline stage produced no output
        """
        config = self.config
        # Display is measured before any network work.
        screen = self.target_screen()
        resolver = ImageSourceResolver(
            config,
            fetcher=self._fetcher,
            rng=self._rng,
        )
        pipeline = ImageTransformPipeline(config.render, config.output_path)
        work_root = self._work_root or storage_paths.get_work_root()

        with StageWorkspace(root=work_root) as workspace:
            resolved = resolver.resolve(workspace.path)
            if resolved.comic is not None:
                logger.info("[RESOLVE] Using %s (%s)", resolved.comic.label, resolved.path.name)
            return pipeline.run(resolved, screen, workspace)

    def run(self) -> CompositeResult:
        """
        Build the composite and, unless disabled, start the lock program.

        Raises:
            LockProgramError: the lock program failed to start or exited non-zero
        """
        if self.config.launch_lock:
            # Missing lock program is fatal before any compositing.
            self.launcher.ensure_available()
        result = self.prepare()
        if self.config.launch_lock:
            self.launcher.launch(result.path)
        else:
            logger.info("[LOCK] Lock program disabled; composite left at %s", result.path)
        return result

    def download_all(self) -> BulkReport:
        """
        Mirror the catalog into the image directory.

        Raises:
            CatalogSizeError: catalog size could not be determined
        """
        config = self.config
        downloader = BulkDownloader(
            self.fetcher,
            config.image_dir,
            workers=config.bulk_workers,
            retries=config.bulk_retries,
        )
        return downloader.run()


__all__ = ["LockEngine"]
