"""Book5678 (book5678.com) adapter.

Results are ``div.list-item`` blocks whose heading links to
``/post/<id>.html``. There is no predictable download path, so the
download link is read from the detail page.
"""

from bookharvest.adapters.base import SiteAdapter, browser_headers

BASE_URL = "https://book5678.com"

BOOK5678 = SiteAdapter(
    id="book5678",
    name="Book5678",
    base_url=BASE_URL,
    search_url_template=f"{BASE_URL}/search.php?q={{query}}",
    listing_selector='div.list-item h3 a[href*="/post/"]',
    strict_href=r"/post/\d+\.html",
    loose_href=r"/post/.+",
    download_selector=(
        'a[href*="/download/"], a[href*="pan.baidu.com"], '
        'a[href*="lanzou"], a.download, a.btn-download'
    ),
    headers=browser_headers(referer=f"{BASE_URL}/"),
    brand_terms=("Book5678",),
    author_in_query=True,
)
