"""Adapters built from user configuration instead of code."""

from bookharvest.adapters.base import SiteAdapter, browser_headers
from bookharvest.config import SiteConfig


def build_generic_adapter(site: SiteConfig) -> SiteAdapter:
    """Turn a ``[[sites]]`` entry from the config file into an adapter."""
    derive = None
    if site.download_replace:
        old, new = site.download_replace

        def derive(detail_url: str) -> str | None:
            return detail_url.replace(old, new, 1) if old in detail_url else None

    return SiteAdapter(
        id=site.id,
        name=site.name,
        base_url=site.base_url,
        search_url_template=site.search_url_template,
        listing_selector=site.listing_selector,
        strict_href=site.strict_href,
        loose_href=site.loose_href,
        derive_download=derive,
        headers=browser_headers(referer=site.base_url.rstrip("/") + "/"),
        brand_terms=(site.name,),
    )
