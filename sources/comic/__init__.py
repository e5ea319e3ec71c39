"""Remote comic retrieval: page parsing, fetching and bulk mirroring."""

from .downloader import RemoteComicFetcher
from .bulk import BulkDownloader, BulkReport

__all__ = ['RemoteComicFetcher', 'BulkDownloader', 'BulkReport']
