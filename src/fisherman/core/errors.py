"""Exception types raised by the Fisherman core."""

from __future__ import annotations


class FishermanError(Exception):
    """Base class for all Fisherman errors."""


class UrlParseError(FishermanError, ValueError):
    """A URL could not be split into a scheme and a hostname."""


class InvalidDomainListError(FishermanError, ValueError):
    """A domain list update contained no usable domain lines."""


class CacheCapacityError(FishermanError, RuntimeError):
    """The analysis cache grew past its configured capacity."""


class UnknownRequestError(FishermanError, ValueError):
    """A protocol request carried an unrecognised ``type``."""
