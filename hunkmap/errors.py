"""Hunkmap-specific exceptions."""


class HunkmapError(Exception):
    """Base class for errors raised by hunkmap."""


class HunkmapAPIError(HunkmapError):
    """Raised when a GitLab API call fails or credentials are missing.

    The CLI prints the message and exits non-zero.
    """
