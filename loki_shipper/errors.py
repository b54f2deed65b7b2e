"""Errors raised while encoding or delivering a push request."""


class ShipperError(Exception):
    """Base class for delivery failures reported at flush time."""


class SerializationError(ShipperError):
    """The push payload could not be encoded as JSON."""


class TransportError(ShipperError):
    """The push request failed on the network or returned a non-204 status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
