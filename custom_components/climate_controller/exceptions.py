"""Errors raised while talking to the climate controller."""

from typing import Optional


class ClimateControllerError(Exception):
    """Base exception for the climate controller integration."""


class InvalidResponse(ClimateControllerError):
    """The device answered with something we cannot use."""


class MalformedMessage(InvalidResponse):
    """Payload is not a decodable JSON document."""

    def __init__(self, raw: bytes, error: Optional[Exception] = None) -> None:
        super().__init__(f"Malformed message {raw[:200]!r}: {error}")
        self.raw = raw
        self.error = error


class InvalidResponseType(InvalidResponse):
    """Reply type differs from the request type."""

    def __init__(self, expected: str, received: Optional[str]) -> None:
        super().__init__(f"Expected {expected} reply, got {received}")
        self.expected = expected
        self.received = received


class CommunicationFailure(ClimateControllerError):
    """Connect or transport error."""


class ExchangeTimeout(CommunicationFailure):
    """No reply arrived in time."""
