"""Relevance scoring for candidate titles.

Every candidate goes through :func:`score` no matter which extraction
strategy found it, so the strategy never affects relative ordering.
Only known-title candidates are pinned to :data:`MAX_RELEVANCE`.
"""

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bookharvest.adapters.base import SiteAdapter
    from bookharvest.models import Candidate, SearchTask

CONTAINMENT_BONUS = 50
EXACT_BONUS = 100
TOKEN_BONUS = 10
AUTHOR_BONUS = 30
SHORT_TITLE_PENALTY = 200
NAVIGATION_PENALTY = 1000

MIN_TITLE_CHARS = 5
MAX_RELEVANCE = 1000

# One shared keyword is the least evidence of a match; anything with no
# query or author overlap scores 0 and falls below this.
MIN_RELEVANCE = TOKEN_BONUS

NAVIGATION_TERMS = (
    "home",
    "login",
    "log in",
    "sign in",
    "sign up",
    "register",
    "search",
    "about us",
    "contact us",
    "next page",
    "previous page",
    "首页",
    "登录",
    "注册",
    "关于我们",
    "联系我们",
    "上一页",
    "下一页",
    "返回顶部",
    "网站地图",
    "免责声明",
)


def title_chars(title: str) -> int:
    """Number of non-whitespace characters in ``title``."""
    return len("".join(title.split()))


def _contains_term(folded_title: str, term: str) -> bool:
    term = term.casefold()
    if term.isascii():
        return re.search(rf"(?<![0-9a-z]){re.escape(term)}(?![0-9a-z])", folded_title) is not None
    return term in folded_title


def is_navigation(title: str, brand_terms: Iterable[str] = ()) -> bool:
    """True if the title looks like site chrome rather than a book."""
    folded = title.casefold()
    return any(_contains_term(folded, t) for t in (*NAVIGATION_TERMS, *brand_terms) if t)


def score(
    title: str,
    query: str,
    author: str | None = None,
    brand_terms: Iterable[str] = (),
) -> int:
    """Score how well ``title`` matches the query and author. Never negative."""
    folded_title = title.strip().casefold()
    folded_query = query.strip().casefold()
    folded_author = (author or "").strip().casefold()
    total = 0

    if folded_query and folded_query in folded_title:
        total += CONTAINMENT_BONUS
    if folded_query and folded_title == folded_query:
        total += EXACT_BONUS

    for token in folded_query.split():
        if len(token) > 1 and token in folded_title:
            total += TOKEN_BONUS

    if folded_author and folded_author in folded_title:
        total += AUTHOR_BONUS

    if title_chars(title) < MIN_TITLE_CHARS:
        total -= SHORT_TITLE_PENALTY

    if is_navigation(title, brand_terms):
        total -= NAVIGATION_PENALTY

    return max(0, total)


def score_candidate(candidate: "Candidate", task: "SearchTask", adapter: "SiteAdapter") -> "Candidate":
    """Set ``candidate.relevance`` for this task and return the candidate."""
    if candidate.known:
        candidate.relevance = MAX_RELEVANCE
    else:
        candidate.relevance = min(
            MAX_RELEVANCE,
            score(candidate.title, task.query, task.author, (adapter.name, *adapter.brand_terms)),
        )
    return candidate
