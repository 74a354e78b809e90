"""Exception hierarchy for the harvester."""


class HarvestError(Exception):
    """Base class for all harvester errors."""


class ConfigurationError(HarvestError, ValueError):
    """The caller asked for something that can never succeed."""


class UnknownSiteError(ConfigurationError):
    def __init__(self, site_id: str):
        super().__init__(f"Unknown target site: {site_id!r}")
        self.site_id = site_id


class EmptyQueryError(ConfigurationError):
    def __init__(self):
        super().__init__("Search query must not be empty")


class FetchError(HarvestError):
    """A fetch gave up after exhausting its retries."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{message} ({url})")
        self.url = url


class TransportError(FetchError):
    """DNS, connection or timeout failure."""


class UpstreamStatusError(FetchError):
    """The upstream answered with a non-2xx status."""

    def __init__(self, url: str, status: int):
        super().__init__(url, f"HTTP {status}")
        self.status = status
