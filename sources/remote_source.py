"""
Latest-comic image source.

Fetches the newest comic from the site and downloads it into the run's
working directory. Any fetch failure degrades to the bundled default image
instead of failing the run.
"""
from pathlib import Path
from core.errors import MissingAssetError, RecoverableFetchError
from sources.base_provider import (
    ImageAsset,
    ImageProvider,
    ImageSourceType,
    ResolvedImage,
    canonical_stem,
)
from sources.comic.constants import LATEST_IMAGE_TIMEOUT_SECONDS

DEFAULT_IMAGE_PATH = Path(__file__).parent / "assets" / "default_comic.png"


def default_image(path: Path = DEFAULT_IMAGE_PATH) -> ResolvedImage:
    """The bundled fallback image, with no comic metadata.

    Raises:
        MissingAssetError: if the installation lacks the bundled file
    """
    if not path.is_file():
        raise MissingAssetError(path, "Bundled default image missing")
    return ResolvedImage(asset=ImageAsset.from_path(path), comic=None, fallback=True)


class LatestComicSource(ImageProvider):
    """
    Image provider for the newest published comic.

    ``resolve()`` never raises for network or markup problems; those produce
    the bundled default with ``fallback=True``.
    """

    def __init__(self, fetcher, work_dir, default_path: Path = DEFAULT_IMAGE_PATH,
                 timeout: float = LATEST_IMAGE_TIMEOUT_SECONDS):
        """
        Args:
            fetcher: RemoteComicFetcher used for the page and image requests
            work_dir: Existing directory the downloaded image is written to
            default_path: Fallback image
            timeout: Time budget for the image download, in seconds
        """
        super().__init__("latest", ImageSourceType.REMOTE)
        self._fetcher = fetcher
        self.work_dir = Path(work_dir)
        self.default_path = Path(default_path)
        self.timeout = timeout

    def resolve(self) -> ResolvedImage:
        try:
            comic = self._fetcher.fetch_latest()
            asset = self._fetcher.download_image(
                comic.hotlink_url,
                self.work_dir,
                canonical_stem(comic.number),
                timeout=self.timeout,
            )
        except RecoverableFetchError as e:
            self._logger.warning("[FALLBACK] Latest comic unavailable (%s); using bundled default", e)
            return default_image(self.default_path)

        self._logger.info("[RESOLVE] Latest comic #%d downloaded to %s", comic.number, asset.path.name)
        return ResolvedImage(asset=asset, comic=comic)

    def is_available(self) -> bool:
        # Either the network path works or the default is used.
        return self.default_path.is_file()
