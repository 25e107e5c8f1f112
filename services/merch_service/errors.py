"""Error taxonomy and the result shape returned by engine operations.

Business-rule violations travel as ``OperationResult`` values so callers
always get a decidable outcome. The exception classes exist for the places
that raise internally (adapters, helpers) and carry the stable ``code``
used in results and HTTP mapping.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class MerchError(Exception):
    code = "merch_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidSelection(MerchError):
    code = "invalid_selection"


class EmptyCart(MerchError):
    code = "empty_cart"


class PromotionInvalid(MerchError):
    code = "promotion_invalid"


class NotFound(MerchError):
    code = "not_found"


class InvalidTransition(MerchError):
    code = "invalid_transition"


class ProviderAccessDenied(MerchError):
    code = "provider_access_denied"


class ProviderUnavailable(MerchError):
    code = "provider_unavailable"


class AuthError(MerchError):
    code = "auth_error"


class OperationResult(BaseModel, Generic[T]):
    success: bool
    error: Optional[str] = None
    message: Optional[str] = None
    value: Optional[T] = None

    @classmethod
    def ok(cls, value: Optional[T] = None, message: Optional[str] = None):
        return cls(success=True, value=value, message=message)

    @classmethod
    def fail(cls, error: MerchError):
        return cls(success=False, error=error.code, message=error.message)
