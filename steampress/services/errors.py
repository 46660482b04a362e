from __future__ import annotations


class SteamPressError(Exception):
    """Base class for errors raised by the blog engine."""


class InvalidPageRequest(SteamPressError):
    """A listing was asked for with an unusable page number or page size."""


class StoreUnavailable(SteamPressError):
    """The content store could not answer a read."""


class InvalidConfiguration(SteamPressError):
    pass
