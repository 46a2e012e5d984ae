"""
Query descriptors for tournament listings.

Listing requests are projected into a store-neutral ``QueryDescriptor``
(filter + sort + pagination) which the record store translates into its
own query language.
"""
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Tuple, Union

from shared.errors import ValidationError
from shared.state_machine import (
    CATEGORY_VALUES,
    LISTABLE_STATUSES,
    STATUS_VALUES,
    TournamentStatus,
)

SEARCH_FIELDS = ('name', 'location', 'category')
ACTIVE_FILTERS = ('active', 'inactive')


@dataclass
class TournamentFilter:
    search: Optional[str] = None
    is_active: Optional[bool] = None
    statuses: Optional[List[str]] = None
    category: Optional[str] = None
    list_until_from: Optional[date] = None
    winner_required: bool = False


@dataclass
class QueryDescriptor:
    filter: TournamentFilter
    # (field, descending)
    sort: List[Tuple[str, bool]] = field(default_factory=lambda: [('date', True)])
    skip: int = 0
    limit: Optional[int] = None
    page: int = 1


@dataclass
class Page:
    items: list
    total_count: int
    total_pages: int
    current_page: int

    def to_dict(self, serialize=None) -> dict:
        serialize = serialize or (lambda item: item.to_dict())
        return {
            'tournaments': [serialize(item) for item in self.items],
            'count': len(self.items),
            'total': self.total_count,
            'total_pages': self.total_pages,
            'current_page': self.current_page,
        }


def _positive_int(value, name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer", field=name)
    if number < 1:
        raise ValidationError(f"{name} must be at least 1", field=name)
    return number


def project_admin_query(
    search: str = '',
    status: str = 'all',
    category: str = 'all',
    page: Union[int, str] = 1,
    limit: Union[int, str] = 10
) -> QueryDescriptor:
    """Translate an admin list request into a descriptor, newest tournaments first."""
    page = _positive_int(page, 'page')
    limit = _positive_int(limit, 'limit')

    query_filter = TournamentFilter()

    search = (search or '').strip()
    if search:
        query_filter.search = search

    status = status or 'all'
    if status != 'all':
        if status in ACTIVE_FILTERS:
            query_filter.is_active = status == 'active'
        elif status in STATUS_VALUES:
            query_filter.statuses = [status]
        else:
            raise ValidationError(f"Unknown status filter '{status}'", field='status')

    category = category or 'all'
    if category != 'all':
        if category not in CATEGORY_VALUES:
            raise ValidationError(f"Unknown category '{category}'", field='category')
        query_filter.category = category

    return QueryDescriptor(
        filter=query_filter,
        sort=[('date', True)],
        skip=(page - 1) * limit,
        limit=limit,
        page=page
    )


def public_listing_query(now: Union[date, datetime]) -> QueryDescriptor:
    today = now.date() if isinstance(now, datetime) else now
    return QueryDescriptor(
        filter=TournamentFilter(
            is_active=True,
            list_until_from=today,
            statuses=list(LISTABLE_STATUSES)
        ),
        sort=[('date', False)]
    )


def past_winners_query(limit: Union[int, str] = 6) -> QueryDescriptor:
    return QueryDescriptor(
        filter=TournamentFilter(
            is_active=True,
            statuses=[TournamentStatus.COMPLETED.value],
            winner_required=True
        ),
        sort=[('date', True)],
        limit=_positive_int(limit, 'limit')
    )


def build_page(items: list, total_count: int, descriptor: QueryDescriptor) -> Page:
    limit = descriptor.limit or max(total_count, 1)
    return Page(
        items=items,
        total_count=total_count,
        total_pages=math.ceil(total_count / limit),
        current_page=descriptor.page
    )
