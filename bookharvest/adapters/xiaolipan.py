"""小立盘 (xiaolipan.com) adapter.

Search results are rendered server-side as ``div.book-item`` cards linking
to ``/p/<id>.html``. Downloads live at the same path under ``/download/``.
"""

from bookharvest.adapters.base import KnownTitle, SiteAdapter, browser_headers

BASE_URL = "https://www.xiaolipan.com"


def _download_url(detail_url: str) -> str | None:
    if "/p/" not in detail_url:
        return None
    return detail_url.replace("/p/", "/download/", 1)


XIAOLIPAN = SiteAdapter(
    id="xiaolipan",
    name="小立盘",
    base_url=BASE_URL,
    search_url_template=f"{BASE_URL}/search.html?keyword={{query}}",
    listing_selector='div.book-item a[href*="/p/"]',
    strict_href=r"/p/\d+\.html",
    loose_href=r"/p/.+",
    derive_download=_download_url,
    headers=browser_headers(referer=f"{BASE_URL}/"),
    known_titles={
        "曾国藩传": (KnownTitle("曾国藩传 - 张宏杰", "/p/1496858.html"),),
    },
    brand_terms=("小立盘", "xiaolipan"),
)
