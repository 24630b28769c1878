"""
Exceptions raised by point sets and their iterators.
"""

from typing import Optional


class PointSetError(Exception):
    """Base class for all errors raised by :mod:`qmc_pointsets`."""


class ArgumentError(PointSetError, ValueError):
    """Invalid construction or call parameters."""


class ParseError(PointSetError, ValueError):
    """
    Malformed content in a digital-net parameter resource.

    Parameters
    ----------
    message : str
        Description of the problem.
    token : str, optional
        The offending token, or None when the data ended early.
    source : str, optional
        Name of the file or URL being read.
    """

    def __init__(self, message: str, token: Optional[str] = None,
                 source: Optional[str] = None):
        self.token = token
        self.source = source
        details = message
        if token is not None:
            details += f" (token {token!r})"
        if source is not None:
            details += f" in {source}"
        super().__init__(details)


class ExhaustionError(PointSetError, IndexError):
    """An iterator was advanced past the last point or coordinate."""


class FatalLoadError(PointSetError, RuntimeError):
    """The shared Niederreiter table could not be loaded."""
