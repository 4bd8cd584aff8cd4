"""Typed filter structs for list operations."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from math import ceil
from typing import Generic, TypeVar

from disputes.domain.value_objects import (
    DisputePriority,
    DisputeStatus,
    DisputeType,
    NotificationType,
)

T = TypeVar("T")


class SortField(Enum):
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    PRIORITY = "priority"
    STATUS = "status"


class SortOrder(Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class DisputeQuery:
    """Filters for dispute listings. Unset fields do not filter."""

    user_id: str | None = None
    admin_id: str | None = None
    status: DisputeStatus | None = None
    dispute_type: DisputeType | None = None
    priority: DisputePriority | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    search: str | None = None
    sort_by: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC
    page: int = 1
    limit: int = 10

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be at least 1")
        if self.limit < 1:
            raise ValueError("limit must be at least 1")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class NotificationQuery:
    user_id: str
    unread_only: bool = False
    type: NotificationType | None = None
    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        return (max(self.page, 1) - 1) * self.limit


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return ceil(self.total / self.limit) if self.limit else 0
