from __future__ import annotations


class SkinTrackerError(RuntimeError):
    """Base error for the skin tracker."""


class ConfigError(SkinTrackerError):
    """Missing or invalid configuration at startup."""


class ValidationError(SkinTrackerError):
    """Bad user input (price, selection index). Recovered by re-prompting."""


class UpstreamError(SkinTrackerError):
    """A row store call failed."""


class UpstreamFetchError(UpstreamError):
    pass


class UpstreamWriteError(UpstreamError):
    pass


class EmptyLogError(SkinTrackerError):
    """Finish requested with no pending skins."""


class EmptyPage(SkinTrackerError):
    """Requested page slice is empty."""

    def __init__(self, page_index: int, total: int) -> None:
        super().__init__(f"page {page_index} is empty ({total} results)")
        self.page_index = page_index
        self.total = total
