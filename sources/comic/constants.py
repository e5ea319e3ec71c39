"""
Remote comic constants - endpoints, page anchors, network budgets.

The anchors are an external protocol: they match the site's current page
markup and are pinned by the golden pages under ``tests/fixtures``.
"""

# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
XKCD_BASE_URL = "https://xkcd.com"
COMIC_PAGE_TEMPLATE = "{base}/{number}/"

# ---------------------------------------------------------------------------
# Page anchors
# ---------------------------------------------------------------------------
HOTLINK_ANCHOR = "Image URL (for hotlinking/embedding):"
PERMALINK_ANCHOR = "Permanent link to this comic:"
COMIC_BLOCK_ANCHOR = '<div id="comic">'
IMG_TAG_ANCHOR = "<img"
TITLE_ATTR_ANCHOR = 'title="'

# How far past an anchor the URL may start (covers "<a href= " wrappers).
ANCHOR_SEARCH_WINDOW = 200

# Characters that end a URL embedded in markup.
MARKUP_DELIMITERS = '<>"\' \t\r\n'

# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------
LATEST_IMAGE_TIMEOUT_SECONDS = 6
DOWNLOAD_CHUNK_SIZE = 8192

CONTENT_TYPE_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

# ---------------------------------------------------------------------------
# Bulk download
# ---------------------------------------------------------------------------
DEFAULT_BULK_WORKERS = 4
DEFAULT_BULK_RETRIES = 2
RETRY_BACKOFF_BASE_SECONDS = 1.0
