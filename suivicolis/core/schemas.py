from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ActionResult(BaseModel, Generic[T]):
    """Résultat structuré renvoyé par toutes les opérations (succès + message lisible)."""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    kind: Optional[str] = None
    errors: Optional[List[str]] = None

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, kind: Optional[str] = None, errors: Optional[List[str]] = None) -> "ActionResult":
        return cls(success=False, error=error, kind=kind, errors=errors)


class PaginatedResponse(BaseModel, Generic[T]):
    items: List[T]
    total: int
