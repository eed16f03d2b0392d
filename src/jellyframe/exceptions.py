"""
Custom exceptions for the jellyframe application.

Fetch failures never surface as exceptions from the image pipeline; they
are classified into ``ErrorKind`` values instead. The exceptions below cover
the few conditions that must reach the caller, plus ``ImageDecodeError``
which the classifier maps to ``ErrorKind.DECODE``.
"""

from __future__ import annotations


class JellyframeError(Exception):
    """Base exception for all jellyframe errors."""

    def __init__(self, message: str) -> None:
        """
        Initialize JellyframeError.

        Parameters
        ----------
        message : str
            Human-readable error message.
        """
        self.message = message
        super().__init__(message)


class ImageDecodeError(JellyframeError):
    """
    Exception raised when fetched bytes are not a recognisable image.

    Attributes
    ----------
    message : str
        Human-readable error message.
    url : str | None
        URL the payload was fetched from, when known.
    content_type : str | None
        Content-Type header reported by the server, when known.

    Examples
    --------
    >>> try:
    ...     payload = decode_image(response.content)
    ... except ImageDecodeError as e:
    ...     print(f"Undecodable image from {e.url}")
    """

    def __init__(
        self,
        message: str = "Image payload could not be decoded",
        url: str | None = None,
        content_type: str | None = None,
    ) -> None:
        """
        Initialize ImageDecodeError.

        Parameters
        ----------
        message : str, optional
            Human-readable error message.
        url : str | None, optional
            URL the payload was fetched from (default: None).
        content_type : str | None, optional
            Reported Content-Type header (default: None).
        """
        self.url = url
        self.content_type = content_type
        super().__init__(message)


class CatalogError(JellyframeError):
    """
    Exception raised when a catalog export cannot be read.

    Attributes
    ----------
    message : str
        Human-readable error message.
    source : str | None
        Path or name of the catalog source.
    """

    def __init__(
        self,
        message: str = "Catalog could not be loaded",
        source: str | None = None,
    ) -> None:
        """
        Initialize CatalogError.

        Parameters
        ----------
        message : str, optional
            Human-readable error message.
        source : str | None, optional
            Path or name of the catalog source (default: None).
        """
        self.source = source
        super().__init__(message)


class PipelineClosedError(JellyframeError):
    """Exception raised when a closed image pipeline is used again."""

    def __init__(self, message: str = "Image pipeline has been closed") -> None:
        super().__init__(message)
