"""Error taxonomy for the CRM API.

Every error carries the HTTP status it maps to and a short machine-readable
code. The handlers in crm.main turn them into
``{"error": code, "message": ..., **extra}`` responses.
"""

from typing import Any, Dict, List, Optional


class CRMError(Exception):
    """Base class for errors surfaced at the request boundary."""

    status_code = 500
    code = "server_error"

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self.message = message
        self.extra = extra or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message, **self.extra}


class ValidationError(CRMError):
    """Malformed or missing request fields. Nothing was written."""

    status_code = 400
    code = "validation_error"

    def __init__(
        self,
        message: str = "Invalid request",
        fields: Optional[Dict[str, List[str]]] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        self.fields = fields or {}
        super().__init__(message, extra)

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["fields"] = self.fields
        return body


class NotFoundError(CRMError):
    status_code = 404
    code = "not_found"


class ConflictError(CRMError):
    """A concurrent update changed the row between read and write."""

    status_code = 409
    code = "conflict"


class StoreError(CRMError):
    """The relational store rejected or failed a statement."""

    status_code = 500
    code = "store_error"

    def __init__(self, message: str, store_code: Optional[str] = None):
        self.store_code = store_code
        super().__init__(message, {"code": store_code} if store_code else None)


class UpstreamProviderError(CRMError):
    """The messaging provider returned a non-success status or an unreadable body."""

    status_code = 502
    code = "upstream_provider_error"

    def __init__(self, message: str, provider_status: Optional[int] = None, provider_body: Any = None):
        self.provider_status = provider_status
        self.provider_body = provider_body
        super().__init__(
            message,
            {"provider_status": provider_status, "provider_body": provider_body},
        )


class ConfigurationError(CRMError):
    """A required credential or URL is missing."""

    status_code = 500
    code = "configuration_error"


def store_error_from(exc: Exception, action: str) -> StoreError:
    """Build a StoreError from a SQLAlchemy exception, keeping the driver's code."""
    orig = getattr(exc, "orig", None)
    store_code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None) or getattr(exc, "code", None)
    detail = str(orig) if orig is not None else str(exc)
    return StoreError(f"Failed to {action}: {detail}", store_code=store_code)
