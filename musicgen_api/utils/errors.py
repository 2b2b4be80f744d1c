"""
Gateway error types

All errors are HTTPException subclasses so route handlers can re-raise them
untouched; the application handler renders them as {"error": ..., **extra}.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class GatewayError(HTTPException):
    """Base error carrying a client-facing message and optional extra fields"""

    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        detail: str,
        headers: Optional[Dict[str, str]] = None,
        **extra: Any
    ):
        super().__init__(status_code=self.default_status, detail=detail, headers=headers)
        self.extra = extra

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.detail, **self.extra}


class AuthenticationError(GatewayError):
    default_status = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: str, **extra: Any):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"}, **extra)


class NotFoundError(GatewayError):
    default_status = status.HTTP_404_NOT_FOUND


class ForbiddenError(GatewayError):
    default_status = status.HTTP_403_FORBIDDEN


class UpstreamError(GatewayError):
    """Store or vendor call failed"""

    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR


class PayloadTooLargeError(GatewayError):
    default_status = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
