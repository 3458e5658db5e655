"""Router gateway error taxonomy."""

from __future__ import annotations


class RouterGatewayError(Exception):
    """Base exception for router management API failures.

    Failures that match no subclass are logged and retried on a later cycle.
    """

    def __init__(
        self, message: str, *, status: int | None = None, body: str = ""
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class TransientAuthError(RouterGatewayError):
    """Credentials were rejected or expired; refresh them and retry."""

    pass


class RateLimitedError(RouterGatewayError):
    """The router throttled us; back off and skip this cycle."""

    pass


class RouteNotFoundError(RouterGatewayError):
    """The route id is unknown to the router, so the route is already gone."""

    pass


RATE_LIMIT_MARKER = "AUTHENTICATION_FAILED_LIMIT_REACHED"
INVALID_ID_MARKER = "IdInvalid"


def classify_api_error(status: int, body: str, *, action: str) -> RouterGatewayError:
    """Build the most specific error for a failed API response."""
    message = f"{action} failed with status {status}: {body}"
    if status == 429 or RATE_LIMIT_MARKER in body:
        return RateLimitedError(message, status=status, body=body)
    if status in (401, 403):
        return TransientAuthError(message, status=status, body=body)
    if status == 404 or INVALID_ID_MARKER in body:
        return RouteNotFoundError(message, status=status, body=body)
    return RouterGatewayError(message, status=status, body=body)
