"""Exception types shared across the add-on."""


class KnabenError(Exception):
    """Base error for the add-on."""


class SourceFetchError(KnabenError):
    """A search page could not be fetched."""


class MagnetParseError(KnabenError, ValueError):
    """A magnet URI did not carry a usable btih identifier."""
