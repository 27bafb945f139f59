"""Error taxonomy for the resource handler.

Every failure the handler can surface is a ``KubeRouteError``.  Errors are
raised to the immediate caller unmodified; nothing here retries.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from kuberoute.models.resources import GroupVersionResource


class KubeRouteError(Exception):
    """Base class for all handler failures."""


class UnsupportedKind(KubeRouteError):
    """The requested kind has no descriptor in the registry."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"Resource kind ({kind}) not supported")
        self.kind = kind


class NamespaceRequired(KubeRouteError, ValueError):
    """A namespaced kind was addressed without a namespace."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"Resource kind ({kind}) is namespaced; a namespace is required")
        self.kind = kind


class TransportError(KubeRouteError):
    """Non-success response (or connection failure) from a mutating call.

    ``status_code`` is 0 when no response was received.
    """

    def __init__(self, status_code: int, reason: str, message: str) -> None:
        super().__init__(f"{status_code} {reason}: {message}" if status_code else f"{reason}: {message}")
        self.status_code = status_code
        self.reason = reason
        self.message = message

    @classmethod
    def from_response(cls, status_code: int, body: bytes) -> TransportError:
        """Build from an API server response, decoding a meta/v1 Status if present."""
        text = body.decode("utf-8", errors="replace")
        try:
            status = json.loads(text)
        except ValueError:
            return cls(status_code, _default_reason(status_code), text.strip())
        if isinstance(status, dict) and status.get("kind") == "Status":
            return cls.from_status(status, status_code)
        return cls(status_code, _default_reason(status_code), text.strip())

    @classmethod
    def from_status(cls, status: dict[str, Any], status_code: int = 500) -> TransportError:
        """Build from a decoded meta/v1 Status (also used for watch ERROR events)."""
        code = status.get("code")
        if not isinstance(code, int) or isinstance(code, bool) or code <= 0:
            code = status_code
        return cls(
            code,
            str(status.get("reason") or _default_reason(code)),
            str(status.get("message") or ""),
        )

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_conflict(self) -> bool:
        return self.status_code == 409

    @property
    def is_gone(self) -> bool:
        return self.status_code == 410


class NotFound(KubeRouteError):
    """Read-path lookup found no matching cached object."""

    def __init__(self, kind: str, namespace: str | None, name: str) -> None:
        where = f"{namespace}/{name}" if namespace else name
        super().__init__(f"{kind} {where} not found in cache")
        self.kind = kind
        self.namespace = namespace
        self.name = name


class CacheUnavailable(KubeRouteError):
    """No cache accessor could be obtained for the resource."""

    def __init__(self, gvr: GroupVersionResource, reason: str) -> None:
        super().__init__(f"Cache for {gvr} unavailable: {reason}")
        self.gvr = gvr
        self.reason = reason


class InvalidSelector(KubeRouteError, ValueError):
    """A label-selector string could not be parsed."""

    def __init__(self, selector: str, reason: str) -> None:
        super().__init__(f"Invalid label selector {selector!r}: {reason}")
        self.selector = selector
        self.reason = reason


_REASONS = {
    400: "BadRequest",
    401: "Unauthorized",
    403: "Forbidden",
    404: "NotFound",
    405: "MethodNotAllowed",
    409: "Conflict",
    410: "Gone",
    415: "UnsupportedMediaType",
    422: "Invalid",
    429: "TooManyRequests",
    500: "InternalError",
    503: "ServiceUnavailable",
    504: "Timeout",
}


def _default_reason(status_code: int) -> str:
    return _REASONS.get(status_code, "Unknown")
