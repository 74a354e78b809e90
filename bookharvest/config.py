"""User configuration loaded from a TOML file."""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from bookharvest.ranking import DEFAULT_LIMIT
from bookharvest.scoring import MIN_RELEVANCE

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
_EXAMPLE_CONFIG = _PROJECT_ROOT / "config.example.toml"

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "bookharvest" / "config.toml"


@dataclass
class SiteConfig:
    id: str
    name: str
    base_url: str
    search_url_template: str
    listing_selector: str
    strict_href: str
    loose_href: str
    download_replace: tuple[str, str] | None = None


@dataclass
class Config:
    limit: int = DEFAULT_LIMIT
    retries: int = 2
    base_delay: float = 0.5
    timeout: float = 10.0
    min_relevance: int = MIN_RELEVANCE
    cache_ttl: int = 300
    custom_sites: list[SiteConfig] = field(default_factory=list)


def _site_from_table(site: dict) -> SiteConfig:
    replace = site.get("download_replace")
    if replace is not None:
        if len(replace) != 2:
            raise ValueError(
                f"download_replace for site {site.get('id')!r} must be [old, new]"
            )
        replace = (str(replace[0]), str(replace[1]))

    return SiteConfig(
        id=site["id"],
        name=site.get("name", site["id"]),
        base_url=site["base_url"],
        search_url_template=site["search_url_template"],
        listing_selector=site.get("listing_selector", "a[href]"),
        strict_href=site["strict_href"],
        loose_href=site.get("loose_href", site["strict_href"]),
        download_replace=replace,
    )


def load_config(path: Path | None = None) -> Config:
    """Load config from TOML file, falling back to defaults."""
    path = path or DEFAULT_CONFIG_PATH

    if not path.exists():
        return Config()

    with open(path, "rb") as f:
        data = tomllib.load(f)

    defaults = Config()
    harvest = data.get("harvest", {})

    return Config(
        limit=int(harvest.get("limit", defaults.limit)),
        retries=int(harvest.get("retries", defaults.retries)),
        base_delay=float(harvest.get("base_delay", defaults.base_delay)),
        timeout=float(harvest.get("timeout", defaults.timeout)),
        min_relevance=int(harvest.get("min_relevance", defaults.min_relevance)),
        cache_ttl=int(harvest.get("cache_ttl", defaults.cache_ttl)),
        custom_sites=[_site_from_table(site) for site in data.get("sites", [])],
    )


def write_default_config(path: Path | None = None, force: bool = False) -> Path:
    """Write a default config file if missing.

    Args:
        path: Optional path to write the config.
        force: Overwrite existing file if True.

    Returns:
        Path to the written (or existing) config file.
    """
    path = path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.exists() and not force:
        return path

    if _EXAMPLE_CONFIG.exists():
        content = _EXAMPLE_CONFIG.read_text(encoding="utf-8")
    else:
        content = "# bookharvest configuration\n"

    path.write_text(content, encoding="utf-8")
    return path
