"""Pagination container."""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a sorted, filtered listing."""

    items: list[T]
    total: int = Field(ge=0)
    page: int = Field(ge=0)
    size: int = Field(ge=1)

    @property
    def total_pages(self) -> int:
        return (self.total + self.size - 1) // self.size
