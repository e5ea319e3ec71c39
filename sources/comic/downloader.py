"""
RemoteComicFetcher - network I/O for comic pages and images.

Responsibilities:
    - Fetch the landing page (latest comic, catalog size) and numbered
      permalink pages, handing the text to the anchor parser
    - Download image bytes with atomic write (temp -> rename)
    - Map every network or markup failure onto RecoverableFetchError so
      callers decide whether it is fatal

Only the latest-image download runs under a time budget; every other
request blocks until the server answers.
"""
import os
import time
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import requests

from core.errors import CatalogSizeError, RecoverableFetchError
from core.logging.logger import get_logger
from sources.base_provider import ComicReference, ImageAsset
from sources.comic import parser
from sources.comic.constants import (
    COMIC_PAGE_TEMPLATE,
    CONTENT_TYPE_EXTENSIONS,
    DOWNLOAD_CHUNK_SIZE,
    XKCD_BASE_URL,
)
from versioning import user_agent

logger = get_logger(__name__)


class RemoteComicFetcher:
    """Fetches comic metadata and images from the comic site.

    Stateless apart from the HTTP session, so a single instance can be
    shared by the bulk downloader's worker threads.
    """

    def __init__(self, session: Optional[requests.Session] = None,
                 base_url: str = XKCD_BASE_URL):
        self._session = session if session is not None else requests.Session()
        self._session.headers.update({"User-Agent": user_agent()})
        self.base_url = base_url.rstrip("/")

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    def _get_page(self, url: str) -> str:
        try:
            response = self._session.get(url, timeout=None)
        except requests.RequestException as e:
            raise RecoverableFetchError(f"Request failed for {url}: {e}") from e

        if response.status_code != 200:
            raise RecoverableFetchError(f"HTTP {response.status_code} for {url}")
        return response.text

    def comic_url(self, number: int) -> str:
        return COMIC_PAGE_TEMPLATE.format(base=self.base_url, number=number)

    def fetch_latest(self) -> ComicReference:
        """
        Newest comic: hotlink URL and number from the landing page, caption
        from its permalink page.

        A failed caption lookup leaves the caption empty; the image itself is
        still usable.

        Raises:
            RecoverableFetchError: landing page unreachable or unparseable
        """
        page = self._get_page(self.base_url + "/")
        hotlink_url = parser.extract_hotlink_url(page)
        number = parser.extract_comic_number(page)

        caption = ""
        try:
            caption = self.fetch_comic(number).caption
        except RecoverableFetchError as e:
            logger.warning("[FETCH] Caption lookup for #%d failed: %s", number, e)

        logger.info("[FETCH] Latest comic is #%d", number)
        return ComicReference(number=number, hotlink_url=hotlink_url, caption=caption)

    def fetch_comic(self, number: int) -> ComicReference:
        """
        Metadata for comic ``number`` from its permalink page.

        Raises:
            RecoverableFetchError: page unreachable or without a hotlink URL
        """
        page = self._get_page(self.comic_url(number))
        return parser.extract_comic_metadata(page, number=number)

    def fetch_catalog_size(self) -> int:
        """
        Number of the newest comic, i.e. the size of the catalog.

        Raises:
            CatalogSizeError: landing page unreachable or anchor missing
        """
        try:
            page = self._get_page(self.base_url + "/")
            size = parser.extract_comic_number(page)
        except RecoverableFetchError as e:
            raise CatalogSizeError(f"Cannot determine catalog size: {e}") from e
        logger.info("[FETCH] Catalog size: %d", size)
        return size

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def download_image(self, image_url: str, target_dir: Path, stem: str,
                       timeout: Optional[float] = None) -> ImageAsset:
        """Download an image into ``target_dir/<stem><ext>`` with atomic write.

        Args:
            image_url: Hotlink URL
            target_dir: Existing directory for the file
            stem: Filename without extension
            timeout: Total time budget in seconds, or None to block

        Returns:
            Transient ImageAsset for the downloaded file

        Raises:
            RecoverableFetchError: network error, timeout, non-image response
        """
        target_dir = Path(target_dir)
        deadline = time.monotonic() + timeout if timeout is not None else None
        temp_file: Optional[Path] = None

        try:
            response = self._session.get(image_url, timeout=timeout, stream=True)
        except requests.Timeout as e:
            raise RecoverableFetchError(f"Timed out fetching {image_url}") from e
        except requests.RequestException as e:
            raise RecoverableFetchError(f"Download failed for {image_url}: {e}") from e

        try:
            if response.status_code != 200:
                raise RecoverableFetchError(f"HTTP {response.status_code} for {image_url}")

            content_type = response.headers.get("Content-Type", "").split(";")[0].strip().lower()
            if not content_type.startswith("image/"):
                raise RecoverableFetchError(f"Not an image ({content_type or 'no content type'}): {image_url}")

            ext = self._extension_for(image_url, content_type)
            cache_file = target_dir / f"{stem}{ext}"
            temp_file = target_dir / f".tmp.{stem}{ext}"

            downloaded = 0
            with open(temp_file, "wb") as f:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if deadline is not None and time.monotonic() > deadline:
                        raise RecoverableFetchError(
                            f"Download exceeded {timeout}s budget: {image_url}"
                        )
                    if chunk:
                        f.write(chunk)
                        downloaded += len(chunk)

            if downloaded == 0:
                raise RecoverableFetchError(f"Empty response body: {image_url}")

            os.replace(temp_file, cache_file)
            temp_file = None
            logger.debug("[FETCH] Downloaded %s (%d bytes)", cache_file.name, downloaded)
            return ImageAsset.from_path(cache_file, transient=True)

        except requests.RequestException as e:
            raise RecoverableFetchError(f"Download failed for {image_url}: {e}") from e
        except OSError as e:
            raise RecoverableFetchError(f"Cannot write {stem} to {target_dir}: {e}") from e
        finally:
            response.close()
            if temp_file is not None:
                temp_file.unlink(missing_ok=True)

    @staticmethod
    def _extension_for(image_url: str, content_type: str) -> str:
        suffix = Path(urlparse(image_url).path).suffix.lower()
        if suffix:
            return suffix
        return CONTENT_TYPE_EXTENSIONS.get(content_type, ".img")


__all__ = ["RemoteComicFetcher"]
