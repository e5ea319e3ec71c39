"""
Comic page parsing - anchor-based extraction of comic metadata.

Responsibilities:
    - Locate the hotlink image URL, permanent link number and caption text
      in raw page markup via fixed textual anchors
    - No network I/O - receives page text from RemoteComicFetcher
    - Raise AnchorNotFoundError when the markup has drifted, so callers can
      fall back instead of silently misparsing
"""
import html
import re
from typing import Optional

from core.errors import AnchorNotFoundError
from core.logging.logger import get_logger
from sources.base_provider import ComicReference
from sources.comic.constants import (
    ANCHOR_SEARCH_WINDOW,
    COMIC_BLOCK_ANCHOR,
    HOTLINK_ANCHOR,
    IMG_TAG_ANCHOR,
    MARKUP_DELIMITERS,
    PERMALINK_ANCHOR,
    TITLE_ATTR_ANCHOR,
)

logger = get_logger(__name__)

_URL_START = re.compile(r'(?:https?:)?//')
_TRAILING_NUMBER = re.compile(r'/(\d+)/?$')


def _url_after_anchor(page: str, anchor: str) -> str:
    """Return the first URL following ``anchor``, trimmed at markup."""
    idx = page.find(anchor)
    if idx == -1:
        raise AnchorNotFoundError(anchor)

    start = idx + len(anchor)
    match = _URL_START.search(page, start, start + ANCHOR_SEARCH_WINDOW)
    if match is None:
        raise AnchorNotFoundError(anchor)

    end = match.start()
    while end < len(page) and page[end] not in MARKUP_DELIMITERS:
        end += 1
    url = page[match.start():end]

    if url.startswith("//"):
        url = "https:" + url
    # Scheme and host alone is not a usable link.
    if url.count("/") < 3:
        raise AnchorNotFoundError(anchor)
    return url


def extract_hotlink_url(page: str) -> str:
    """Direct image URL from the "hotlinking/embedding" line."""
    return _url_after_anchor(page, HOTLINK_ANCHOR)


def extract_comic_number(page: str) -> int:
    """Comic number from the "Permanent link" line."""
    url = _url_after_anchor(page, PERMALINK_ANCHOR)
    match = _TRAILING_NUMBER.search(url)
    if match is None:
        raise AnchorNotFoundError(PERMALINK_ANCHOR)
    number = int(match.group(1))
    if number <= 0:
        raise AnchorNotFoundError(PERMALINK_ANCHOR)
    return number


def extract_caption(page: str) -> str:
    """Title-text of the first image inside the comic block, unescaped."""
    block = page.find(COMIC_BLOCK_ANCHOR)
    if block == -1:
        raise AnchorNotFoundError(COMIC_BLOCK_ANCHOR)

    tag_start = page.find(IMG_TAG_ANCHOR, block)
    if tag_start == -1:
        raise AnchorNotFoundError(IMG_TAG_ANCHOR)
    tag_end = page.find(">", tag_start)
    if tag_end == -1:
        raise AnchorNotFoundError(IMG_TAG_ANCHOR)

    tag = page[tag_start:tag_end]
    attr = tag.find(TITLE_ATTR_ANCHOR)
    if attr == -1:
        raise AnchorNotFoundError(TITLE_ATTR_ANCHOR)
    value_start = attr + len(TITLE_ATTR_ANCHOR)
    value_end = tag.find('"', value_start)
    if value_end == -1:
        raise AnchorNotFoundError(TITLE_ATTR_ANCHOR)

    return html.unescape(tag[value_start:value_end])


def extract_comic_metadata(page: str, number: Optional[int] = None) -> ComicReference:
    """
    Build a ComicReference from a comic page.

    The hotlink URL is required. A missing caption is tolerated (some comics
    carry none) and yields an empty string. When ``number`` is omitted it is
    read from the permanent link.
    """
    hotlink_url = extract_hotlink_url(page)
    if number is None:
        number = extract_comic_number(page)
    try:
        caption = extract_caption(page)
    except AnchorNotFoundError as e:
        logger.debug("[FETCH] No caption for #%d: %s", number, e)
        caption = ""
    return ComicReference(number=number, hotlink_url=hotlink_url, caption=caption)
