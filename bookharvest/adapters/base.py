"""Site adapter descriptor shared by every catalog source."""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from urllib.parse import quote, urljoin, urlparse

DEFAULT_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def browser_headers(referer: str, language: str = "zh-CN,zh;q=0.9,en;q=0.8") -> dict[str, str]:
    return {
        "User-Agent": DEFAULT_USER_AGENT,
        "Accept": DEFAULT_ACCEPT,
        "Accept-Language": language,
        "Upgrade-Insecure-Requests": "1",
        "Referer": referer,
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
    }


@dataclass(frozen=True)
class KnownTitle:
    """A pre-vetted listing used when nothing could be parsed."""

    title: str
    path: str


@dataclass(frozen=True)
class SiteAdapter:
    """How to query and parse one catalog site.

    To add a new site, build one of these and register it in the adapter
    registry. No parsing code is needed: the extraction pipeline reads
    everything it needs from the fields below.

    Args:
        id: Identifier used in search tasks (e.g. 'xiaolipan').
        name: Display name attached to every candidate.
        base_url: Origin that relative links are resolved against.
        search_url_template: URL with a ``{query}`` placeholder.
        listing_selector: CSS selector for result anchors.
        strict_href: Regex the link path must fully match in the strict pass.
        loose_href: Relaxed regex used by the loose pass.
        derive_download: Maps a detail URL to a download URL, or None when
            the download link has to be discovered on the detail page.
        download_selector: CSS selector for download links on a detail page.
        headers: Extra request headers.
        known_titles: Canonical query phrase to pre-vetted listings.
        brand_terms: The site's own names, penalized when seen in titles.
        author_in_query: Append the author to the search term.
    """

    id: str
    name: str
    base_url: str
    search_url_template: str
    listing_selector: str
    strict_href: str
    loose_href: str
    derive_download: Callable[[str], str | None] | None = None
    download_selector: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    known_titles: Mapping[str, tuple[KnownTitle, ...]] = field(default_factory=dict)
    brand_terms: tuple[str, ...] = ()
    author_in_query: bool = False

    @property
    def host(self) -> str:
        return urlparse(self.base_url).netloc.lower()

    @property
    def needs_detail_fetch(self) -> bool:
        return self.derive_download is None and bool(self.download_selector)

    def search_url(self, term: str) -> str:
        return self.search_url_template.format(query=quote(term, safe=""))

    def resolve(self, href: str) -> str | None:
        """Absolute URL for ``href``, or None if it leaves this site."""
        href = (href or "").strip()
        if not href or href.startswith(("#", "javascript:", "mailto:")):
            return None
        try:
            url = urljoin(self.base_url.rstrip("/") + "/", href)
            parsed = urlparse(url)
        except ValueError:
            return None
        if parsed.scheme not in ("http", "https"):
            return None
        host = parsed.netloc.lower()
        if host != self.host and host.removeprefix("www.") != self.host.removeprefix("www."):
            return None
        return url

    def matches(self, pattern: str, url: str) -> bool:
        return re.fullmatch(pattern, urlparse(url).path) is not None

    def download_url(self, detail_url: str) -> str | None:
        if self.derive_download is None:
            return None
        return self.derive_download(detail_url)

    def is_site_name(self, title: str) -> bool:
        folded = title.strip().casefold()
        return folded == self.name.casefold() or any(
            folded == term.casefold() for term in self.brand_terms
        )
