"""Deduplicate candidates by detail URL and keep the best few."""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from bookharvest.models import Candidate

DEFAULT_LIMIT = 3


def normalize_url(url: str) -> str:
    """Canonical form used to decide whether two detail URLs are the same page."""
    parts = urlsplit(url.strip())
    query = urlencode(sorted(parse_qsl(parts.query, keep_blank_values=True)))
    return urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), parts.path or "/", query, "")
    )


def dedupe(candidates: list[Candidate]) -> list[Candidate]:
    """Drop later candidates whose detail URL was already seen."""
    seen: set[str] = set()
    unique: list[Candidate] = []
    for candidate in candidates:
        key = normalize_url(candidate.detail_url)
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)
    return unique


def rank(candidates: list[Candidate], limit: int = DEFAULT_LIMIT) -> list[Candidate]:
    """Dedupe, sort by relevance (stable, best first) and truncate to ``limit``."""
    unique = dedupe(candidates)
    unique.sort(key=lambda c: c.relevance, reverse=True)
    return unique[: max(limit, 0)]
