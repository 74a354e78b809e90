"""35PPT (35ppt.com) adapter.

A WordPress site: results are ``article`` entries with ``h2`` links to
``/<id>.html``. The ordown plugin serves downloads by post id.
"""

import re
from urllib.parse import urlparse

from bookharvest.adapters.base import SiteAdapter, browser_headers

BASE_URL = "https://www.35ppt.com"
DOWNLOAD_URL = f"{BASE_URL}/wp-content/plugins/ordown/down.php?id={{id}}"

_POST_ID = re.compile(r"/(\d+)\.html$")


def _download_url(detail_url: str) -> str | None:
    match = _POST_ID.search(urlparse(detail_url).path)
    return DOWNLOAD_URL.format(id=match.group(1)) if match else None


PPT35 = SiteAdapter(
    id="35ppt",
    name="35PPT",
    base_url=BASE_URL,
    search_url_template=f"{BASE_URL}/?s={{query}}",
    listing_selector='article h2 a[href$=".html"]',
    strict_href=r"/\d+\.html",
    loose_href=r"/.*\d+\.html",
    derive_download=_download_url,
    headers=browser_headers(referer=f"{BASE_URL}/"),
    brand_terms=("35PPT", "35ppt.com"),
)
