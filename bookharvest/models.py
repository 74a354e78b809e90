import re
from dataclasses import dataclass

from bookharvest.errors import EmptyQueryError

_ISBN_RE = re.compile(r"^(?:\d{9}[\dX]|\d{13})$")


def clean_isbn(raw: str) -> str:
    """Return the ISBN without separators, or "" if it is not well formed."""
    isbn = re.sub(r"[\s-]", "", raw or "").upper()
    return isbn if _ISBN_RE.match(isbn) else ""


@dataclass(frozen=True)
class SearchTask:
    """One harvest request."""

    target_site: str
    query: str
    isbn: str = ""
    author: str = ""

    def __post_init__(self):
        if not self.query or not self.query.strip():
            raise EmptyQueryError()

    def search_term(self, author_in_query: bool = False) -> str:
        isbn = clean_isbn(self.isbn)
        if isbn:
            return isbn
        query = self.query.strip()
        author = self.author.strip()
        if author_in_query and author and author.lower() not in query.lower():
            return f"{query} {author}"
        return query

    def cache_key(self) -> tuple[str, str, str, str]:
        return (
            self.target_site,
            " ".join(self.query.split()).casefold(),
            clean_isbn(self.isbn),
            " ".join(self.author.split()).casefold(),
        )


@dataclass
class Candidate:
    """A single book listing surfaced from one site."""

    site: str
    title: str
    detail_url: str
    download_url: str | None = None
    relevance: int = 0
    known: bool = False

    def to_dict(self) -> dict:
        data = {
            "site": self.site,
            "title": self.title,
            "detailUrl": self.detail_url,
            "relevance": self.relevance,
        }
        if self.download_url:
            data["downloadUrl"] = self.download_url
        return data
