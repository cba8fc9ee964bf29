from pprint import pformat
from typing import Any, Dict, Optional, TypeVar

T = TypeVar("T")


class IapTokenError(Exception):
    """
    A failure the tool knows how to describe.

    Carries a `type` discriminant, a human readable `title` and a `message`,
    which is what gets printed to stderr before exiting non-zero.
    """

    type = "iap-token/error"
    title = "IAP token error"

    def __init__(
        self,
        message: str,
        title: Optional[str] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if title is not None:
            self.title = title
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": self.type,
            "title": self.title,
            "message": self.message,
        }
        if self.error is not None:
            payload["error"] = repr(self.error)
        return payload


class EntityNotFound(IapTokenError):
    type = "illegal-state/entity-not-found"


class IllegalAccess(IapTokenError):
    type = "illegal-access/iap-local"
    title = "Forbidden IAP from local"


class ServiceAccountNotFound(IapTokenError):
    type = "service-account/not-found"
    title = "Impersonation Needed"


def ensure_found(value: Optional[T], entity: str, context: Any = None) -> T:
    """
    Returns `value` if it is set, raises EntityNotFound otherwise.
    """
    if not value:
        if context is None:
            message = f"{entity} is missing"
        elif isinstance(context, str):
            message = context
        else:
            message = pformat(context, depth=4)
        raise EntityNotFound(message, title=f"Object failed validation [{entity}]")
    return value


def describe(exc: BaseException) -> Dict[str, Any]:
    if isinstance(exc, IapTokenError):
        return exc.to_dict()
    return {
        "type": "unexpected-error",
        "title": type(exc).__name__,
        "message": str(exc),
    }
