from typing import Any, Dict


class GatewayError(Exception):
    """
    Base class for errors raised by the gateway core.

    Every error carries the HTTP status class it maps to at the web boundary and
    a context dictionary (chain id, address, operation...) so the boundary layer
    can log the failure without re-deriving what was being attempted.

    Attributes:
        status_code (int): HTTP status code the error maps to.
        message (str): Human readable description of the failure.
        context (Dict[str, Any]): Identifiers describing the failed operation.
    """

    status_code: int = 500

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def __str__(self) -> str:
        return self.message


class InvalidInput(GatewayError):
    """Bad address, missing required field or unknown function name."""

    status_code = 400


class NotFound(GatewayError):
    """Transaction or receipt absent on the upstream node."""

    status_code = 404


class UpstreamError(GatewayError):
    """Connectivity or protocol failure talking to an upstream node."""

    status_code = 502


class AuthError(GatewayError):
    """Missing or mismatching API key credential."""

    status_code = 401


class ConfigurationError(GatewayError):
    """Invalid endpoint configuration detected at startup or construction."""

    status_code = 500


class RateLimited(GatewayError):
    """Client exceeded the per-address request allowance."""

    status_code = 429
