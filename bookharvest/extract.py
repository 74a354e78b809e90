"""Candidate extraction from search result pages.

Strategies run in a fixed order and the first one that yields anything
wins:

1. structured: CSS selector over the parsed document (precise, fragile)
2. strict: anchor scan with the adapter's exact link shape
3. loose: anchor scan with a relaxed link shape plus a navigation blocklist
4. known titles: the adapter's static table, matched against the query

Site chrome is filtered inside every strategy so that it never reaches
deduplication.
"""

import html as html_lib
import logging
import re
from collections.abc import Callable
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from bookharvest.adapters.base import SiteAdapter
from bookharvest.models import Candidate, SearchTask
from bookharvest.scoring import MIN_TITLE_CHARS, is_navigation, title_chars

log = logging.getLogger(__name__)

_ANCHOR_RE = re.compile(r"<a\b(?P<attrs>[^>]*)>(?P<body>.*?)</a\s*>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")


def _attr(attrs: str, name: str) -> str:
    match = re.search(
        rf"""(?:^|\s){name}\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))""",
        attrs,
        re.IGNORECASE,
    )
    if not match:
        return ""
    return html_lib.unescape(next(g for g in match.groups() if g is not None))


def clean_title(raw: str) -> str:
    """Strip markup and collapse whitespace."""
    return " ".join(html_lib.unescape(_TAG_RE.sub(" ", raw)).split())


def make_candidate(adapter: SiteAdapter, href: str, title: str) -> Candidate | None:
    """Build a candidate, or None when the link or title is unusable."""
    title = " ".join(title.split())
    if not title or title_chars(title) < MIN_TITLE_CHARS or adapter.is_site_name(title):
        return None

    detail_url = adapter.resolve(href)
    if detail_url is None:
        return None

    return Candidate(
        site=adapter.name,
        title=title,
        detail_url=detail_url,
        download_url=adapter.download_url(detail_url),
    )


def structured_strategy(html: str, adapter: SiteAdapter, task: SearchTask) -> list[Candidate]:
    soup = BeautifulSoup(html, "html.parser")
    results: list[Candidate] = []

    for link in soup.select(adapter.listing_selector):
        href = str(link.get("href", ""))
        title = link.get_text(" ", strip=True) or str(link.get("title", ""))
        candidate = make_candidate(adapter, href, title)
        if candidate:
            results.append(candidate)

    return results


def _scan_anchors(html: str, adapter: SiteAdapter, pattern: str):
    """Yield (absolute_url, title_attr, inline_text) for anchors matching ``pattern``."""
    for match in _ANCHOR_RE.finditer(html):
        attrs = match.group("attrs")
        url = adapter.resolve(_attr(attrs, "href"))
        if url is None or not adapter.matches(pattern, url):
            continue
        yield url, " ".join(_attr(attrs, "title").split()), clean_title(match.group("body"))


def strict_strategy(html: str, adapter: SiteAdapter, task: SearchTask) -> list[Candidate]:
    results: list[Candidate] = []

    for url, title_attr, text in _scan_anchors(html, adapter, adapter.strict_href):
        candidate = make_candidate(adapter, url, title_attr or text)
        if candidate:
            results.append(candidate)

    return results


def loose_strategy(html: str, adapter: SiteAdapter, task: SearchTask) -> list[Candidate]:
    brand = (adapter.name, *adapter.brand_terms)
    results: list[Candidate] = []

    for url, title_attr, text in _scan_anchors(html, adapter, adapter.loose_href):
        title = text or title_attr
        if is_navigation(title, brand):
            continue
        candidate = make_candidate(adapter, url, title)
        if candidate:
            results.append(candidate)

    return results


def known_title_strategy(html: str, adapter: SiteAdapter, task: SearchTask) -> list[Candidate]:
    query = task.query.strip().casefold()
    author = task.author.strip().casefold()
    results: list[Candidate] = []

    for phrase, listings in adapter.known_titles.items():
        phrase = phrase.casefold()
        reverse = title_chars(query) >= MIN_TITLE_CHARS and query in phrase
        if not (phrase in query or reverse or (author and author == phrase)):
            continue
        for listing in listings:
            candidate = make_candidate(adapter, listing.path, listing.title)
            if candidate:
                candidate.known = True
                results.append(candidate)

    return results


Strategy = Callable[[str, SiteAdapter, SearchTask], list[Candidate]]

STRATEGIES: list[tuple[str, Strategy]] = [
    ("structured", structured_strategy),
    ("strict", strict_strategy),
    ("loose", loose_strategy),
    ("known", known_title_strategy),
]


def extract_with_strategy(
    html: str, adapter: SiteAdapter, task: SearchTask
) -> tuple[str | None, list[Candidate]]:
    """Run the strategy chain; return the winning strategy's name and its candidates."""
    for name, strategy in STRATEGIES:
        try:
            candidates = strategy(html or "", adapter, task)
        except Exception as e:
            log.warning("%s: %s strategy failed: %s", adapter.name, name, e)
            continue
        if candidates:
            log.debug("%s: %s strategy found %d candidates", adapter.name, name, len(candidates))
            return name, candidates

    log.info("%s: no candidates for %r", adapter.name, task.query)
    return None, []


def extract(html: str, adapter: SiteAdapter, task: SearchTask) -> list[Candidate]:
    """Extract candidates from a search results page. Never raises."""
    return extract_with_strategy(html, adapter, task)[1]


def find_download_link(html: str, adapter: SiteAdapter, detail_url: str) -> str | None:
    """First download link on a detail page, if the adapter knows how to spot one."""
    if not adapter.download_selector:
        return None

    soup = BeautifulSoup(html, "html.parser")
    for link in soup.select(adapter.download_selector):
        try:
            url = urljoin(detail_url, str(link.get("href", "")).strip())
            scheme = urlparse(url).scheme
        except ValueError:
            continue
        if scheme in ("http", "https") and url != detail_url:
            return url
    return None
