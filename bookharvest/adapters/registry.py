"""Adapter registry — central place to manage which sources are active."""

from bookharvest.adapters.base import SiteAdapter
from bookharvest.adapters.book5678 import BOOK5678
from bookharvest.adapters.generic import build_generic_adapter
from bookharvest.adapters.ppt35 import PPT35
from bookharvest.adapters.xiaolipan import XIAOLIPAN
from bookharvest.config import SiteConfig
from bookharvest.errors import UnknownSiteError

# Built-in adapters
_BUILTIN_ADAPTERS: list[SiteAdapter] = [
    XIAOLIPAN,
    BOOK5678,
    PPT35,
]

_custom_adapters: list[SiteAdapter] = []


def get_all_adapters() -> list[SiteAdapter]:
    """Return all registered adapters (built-in + custom)."""
    return _BUILTIN_ADAPTERS + _custom_adapters


def get_adapter(site_id: str) -> SiteAdapter:
    """Look up an adapter by id, raising UnknownSiteError if there is none."""
    wanted = (site_id or "").strip().lower()
    for adapter in get_all_adapters():
        if adapter.id.lower() == wanted:
            return adapter
    raise UnknownSiteError(site_id)


def register_adapter(adapter: SiteAdapter) -> None:
    """Register a custom adapter at runtime."""
    _custom_adapters[:] = [a for a in _custom_adapters if a.id != adapter.id]
    _custom_adapters.append(adapter)


def register_generic(site: SiteConfig) -> None:
    """Register an adapter described in the user config."""
    register_adapter(build_generic_adapter(site))


def register_configured_sites(sites: list[SiteConfig]) -> None:
    """Register every custom site from the user config."""
    for site in sites:
        register_generic(site)
