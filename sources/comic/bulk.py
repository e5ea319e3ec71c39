"""
BulkDownloader - mirror the whole comic catalog into the image directory.

Numbers 1..N (N = current catalog size) are processed by a bounded thread
pool. Each number is downloaded into a private staging directory, converted
from lossy formats to PNG, and published under its canonical filename with
an atomic rename. A per-number lock plus the publish-time existence check
keep re-runs and concurrent writers from duplicating work.
"""
import os
import shutil
import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from PIL import Image, UnidentifiedImageError

from core.errors import AnchorNotFoundError, PerItemDownloadError, RecoverableFetchError
from core.logging.logger import get_logger
from sources.base_provider import ImageAsset, canonical_stem
from sources.comic.constants import (
    DEFAULT_BULK_RETRIES,
    DEFAULT_BULK_WORKERS,
    RETRY_BACKOFF_BASE_SECONDS,
)

logger = get_logger(__name__)


class ItemOutcome(Enum):
    DOWNLOADED = "downloaded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class BulkReport:
    """Per-outcome counters for one bulk run."""
    downloaded: int = 0
    skipped: int = 0
    failed: int = 0

    def record(self, outcome: ItemOutcome) -> None:
        if outcome is ItemOutcome.DOWNLOADED:
            self.downloaded += 1
        elif outcome is ItemOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1

    @property
    def total(self) -> int:
        return self.downloaded + self.skipped + self.failed


class BulkDownloader:
    """Downloads every comic in the catalog that is not already on disk."""

    def __init__(self, fetcher, image_dir, workers: int = DEFAULT_BULK_WORKERS,
                 retries: int = DEFAULT_BULK_RETRIES,
                 backoff_base: float = RETRY_BACKOFF_BASE_SECONDS):
        """
        Args:
            fetcher: RemoteComicFetcher (or compatible) used for all I/O
            image_dir: Destination directory, created if missing
            workers: Maximum concurrent downloads
            retries: Extra attempts per comic after a transient failure
            backoff_base: First retry delay in seconds; doubles per attempt
        """
        self._fetcher = fetcher
        self.image_dir = Path(image_dir)
        self.workers = max(1, int(workers))
        self.retries = max(0, int(retries))
        self.backoff_base = backoff_base
        self._stop_event = threading.Event()
        self._locks: Dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._staging_dir: Optional[Path] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self) -> BulkReport:
        """
        Process every comic number from 1 to the current catalog size.

        Raises:
            CatalogSizeError: catalog size unavailable; nothing is downloaded
        """
        size = self._fetcher.fetch_catalog_size()
        self.image_dir.mkdir(parents=True, exist_ok=True)
        self._staging_dir = Path(tempfile.mkdtemp(prefix=".bulk-", dir=self.image_dir))

        report = BulkReport()
        logger.info("[BULK] Processing %d comics with %d workers into %s",
                    size, self.workers, self.image_dir)
        try:
            with ThreadPoolExecutor(max_workers=self.workers,
                                    thread_name_prefix="comiclock-bulk") as pool:
                futures = {pool.submit(self.process_number, n): n for n in range(1, size + 1)}
                for future in as_completed(futures):
                    report.record(future.result())
        finally:
            shutil.rmtree(self._staging_dir, ignore_errors=True)
            self._staging_dir = None

        logger.info("[BULK] Done: %d downloaded, %d skipped, %d failed",
                    report.downloaded, report.skipped, report.failed)
        return report

    def request_stop(self) -> None:
        """Abort pending backoff waits; queued numbers finish as failures."""
        self._stop_event.set()

    def existing_file(self, number: int) -> Optional[Path]:
        """Canonical file already stored for ``number``, whatever its format."""
        for candidate in self.image_dir.glob(f"{canonical_stem(number)}.*"):
            if candidate.is_file():
                return candidate
        return None

    def process_number(self, number: int) -> ItemOutcome:
        """Download one comic unless present; never raises for per-item failures."""
        with self._lock_for(number):
            if self.existing_file(number) is not None:
                logger.debug("[BULK] #%d already present, skipping", number)
                return ItemOutcome.SKIPPED

            for attempt in range(self.retries + 1):
                if self._stop_event.is_set():
                    logger.warning("[BULK] #%d abandoned: stop requested", number)
                    return ItemOutcome.FAILED
                try:
                    self._download_one(number)
                    return ItemOutcome.DOWNLOADED
                except PerItemDownloadError as e:
                    logger.warning("[BULK] %s", e)
                    return ItemOutcome.FAILED
                except RecoverableFetchError as e:
                    if attempt >= self.retries:
                        logger.warning("[BULK] #%d failed after %d attempts: %s",
                                       number, attempt + 1, e)
                        return ItemOutcome.FAILED
                    delay = self.backoff_base * (2 ** attempt)
                    logger.info("[BULK] #%d attempt %d failed (%s), retrying in %.1fs",
                                number, attempt + 1, e, delay)
                    self._stop_event.wait(delay)
        return ItemOutcome.FAILED

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock_for(self, number: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(number)
            if lock is None:
                lock = self._locks[number] = threading.Lock()
            return lock

    def _download_one(self, number: int) -> Path:
        try:
            comic = self._fetcher.fetch_comic(number)
        except AnchorNotFoundError as e:
            # Interactive or missing comics have no hotlink image; retrying won't help.
            raise PerItemDownloadError(number, f"no downloadable image ({e})") from e

        staging = self._staging_dir or self.image_dir
        asset = self._fetcher.download_image(comic.hotlink_url, staging, canonical_stem(number))
        if asset.format.is_lossy:
            asset = self._convert_to_png(number, asset)
        return self._publish(number, asset)

    def _convert_to_png(self, number: int, asset: ImageAsset) -> ImageAsset:
        target = asset.path.with_suffix(".png")
        try:
            with Image.open(asset.path) as img:
                if img.mode not in ("RGB", "RGBA", "L", "LA", "P"):
                    img = img.convert("RGB")
                img.save(target, "PNG")
        except (OSError, UnidentifiedImageError, Image.DecompressionBombError) as e:
            target.unlink(missing_ok=True)
            asset.release()
            raise PerItemDownloadError(number, f"conversion to PNG failed: {e}") from e

        asset.release()
        logger.debug("[BULK] #%d converted %s -> %s", number, asset.path.name, target.name)
        return ImageAsset.from_path(target, transient=True)

    def _publish(self, number: int, asset: ImageAsset) -> Path:
        final = self.image_dir / asset.path.name
        if asset.path == final:
            return final
        existing = self.existing_file(number)
        if existing is not None:
            # Another writer got there first.
            asset.release()
            return existing
        try:
            os.replace(asset.path, final)
        except OSError as e:
            asset.release()
            raise PerItemDownloadError(number, f"cannot store {final.name}: {e}") from e
        logger.info("[BULK] Stored #%d as %s", number, final.name)
        return final
