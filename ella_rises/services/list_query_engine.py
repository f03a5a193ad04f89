"""
List query engine: filtered, sorted, paginated listings with aggregates.

Each listing endpoint is described by a ListingDescriptor (base query, visibility
rule, search columns, filters, sort allow-list, aggregates, projection). The engine
turns untrusted query-string parameters into a page of projected rows plus the
normalized parameters the caller should echo back.

Request text never reaches SQL as text: sort names are looked up in a closed
map of column expressions and every filter value is bound as a parameter.
"""
import enum
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
SORT_DIRECTIONS = ("asc", "desc")


class ListQueryError(Exception):
    """The query layer failed while building a listing."""


class ListAccessDenied(Exception):
    """The caller is not authenticated."""


@dataclass(frozen=True)
class RequestContext:
    """Who is asking. Built once per request from the authenticated participant."""
    is_authenticated: bool
    is_admin: bool
    participant_id: Optional[int]

    @classmethod
    def anonymous(cls) -> "RequestContext":
        return cls(is_authenticated=False, is_admin=False, participant_id=None)


@dataclass(frozen=True)
class ListParams:
    search: Optional[str] = None
    sort: Optional[str] = None
    sort_dir: Optional[str] = None
    page: Optional[str] = None
    filters: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_query(cls, query: Mapping[str, Any]) -> "ListParams":
        """Read search/sort/sortDir/page and every filterXxx key; blank values count as absent."""
        def clean(value):
            if value is None:
                return None
            value = str(value).strip()
            return value or None

        filters = {}
        for key, value in query.items():
            if key.startswith("filter"):
                value = clean(value)
                if value is not None:
                    filters[key] = value
        return cls(
            search=clean(query.get("search")),
            sort=clean(query.get("sort")),
            sort_dir=clean(query.get("sortDir")),
            page=clean(query.get("page")),
            filters=filters,
        )


class FilterKind(str, enum.Enum):
    EXACT = "exact"
    CONTAINS = "contains"
    DATE_MIN = "date_min"
    DATE_MAX = "date_max"
    NUMBER_MIN = "number_min"
    NUMBER_MAX = "number_max"
    AGE_MIN = "age_min"
    AGE_MAX = "age_max"


def parse_date(raw: str) -> Optional[date]:
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None


def parse_number(raw: str) -> Optional[Decimal]:
    try:
        value = Decimal(raw)
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def parse_age(raw: str) -> Optional[int]:
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value >= 0 else None


def parse_page(raw: Optional[str]) -> int:
    try:
        page = int(raw) if raw is not None else 1
    except ValueError:
        return 1
    return page if page >= 1 else 1


def years_before(today: date, years: int) -> date:
    """Same month/day `years` earlier; Feb 29 becomes Feb 28 in non-leap years."""
    try:
        return today.replace(year=today.year - years)
    except ValueError:
        return today.replace(year=today.year - years, day=28)


def age_on(birth_date: Optional[date], today: date) -> Optional[int]:
    """Whole years between birth_date and today, or None without a birth date."""
    if birth_date is None:
        return None
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


@dataclass(frozen=True)
class FilterSpec:
    """
    One named, optional filter. `is_datetime` widens date bounds to whole days.
    `choices` restricts an exact filter to known values; anything else is skipped.
    """
    param: str
    column: Any
    kind: FilterKind
    is_datetime: bool = False
    choices: Optional[FrozenSet[str]] = None

    def parse(self, raw: str):
        if self.choices is not None and raw not in self.choices:
            return None
        if self.kind in (FilterKind.EXACT, FilterKind.CONTAINS):
            return raw
        if self.kind in (FilterKind.DATE_MIN, FilterKind.DATE_MAX):
            return parse_date(raw)
        if self.kind in (FilterKind.NUMBER_MIN, FilterKind.NUMBER_MAX):
            return parse_number(raw)
        return parse_age(raw)

    def condition(self, value, today: date):
        """SQL predicate for a parsed value, or None when the value has no usable bound."""
        column = self.column
        if self.kind == FilterKind.EXACT:
            return column == value
        if self.kind == FilterKind.CONTAINS:
            return column.ilike(f"%{value}%")
        if self.kind == FilterKind.DATE_MIN:
            if self.is_datetime:
                return column >= datetime.combine(value, time.min)
            return column >= value
        if self.kind == FilterKind.DATE_MAX:
            if self.is_datetime:
                return column <= datetime.combine(value, time.max)
            return column <= value
        if self.kind == FilterKind.NUMBER_MIN:
            return column >= value
        if self.kind == FilterKind.NUMBER_MAX:
            return column <= value
        # Age bounds become birth-date cutoffs; NULL birth dates never compare true.
        if value >= today.year:
            return None
        cutoff = years_before(today, value)
        if self.kind == FilterKind.AGE_MIN:
            return column <= cutoff
        return column >= cutoff


@dataclass(frozen=True)
class SortSpec:
    column: Any
    default_direction: str = "asc"


@dataclass(frozen=True)
class AggregateSpec:
    expression: Any
    coerce: Callable[[Any], Any] = float
    default: Any = 0


@dataclass(frozen=True)
class ListingDescriptor:
    """Declarative description of one listing endpoint."""
    name: str
    base_query: Callable[[Session], Query]
    primary_key: Any
    visibility: Callable[[Query, RequestContext, datetime], Query]
    search_columns: Tuple[Any, ...]
    filters: Tuple[FilterSpec, ...]
    sort_columns: Mapping[str, SortSpec]
    default_sort: str
    projection: Callable[[Any, date], Dict[str, Any]]
    aggregates: Mapping[str, AggregateSpec] = field(default_factory=dict)
    load_options: Tuple[Any, ...] = ()

    def __post_init__(self):
        if self.default_sort not in self.sort_columns:
            raise ValueError(f"default sort {self.default_sort!r} is not an allowed sort for {self.name}")


@dataclass
class ListResult:
    rows: List[Dict[str, Any]]
    total_count: int
    total_pages: int
    current_page: int
    page_size: int
    has_next_page: bool
    has_previous_page: bool
    normalized_sort: Dict[str, str]
    normalized_filters: Dict[str, str]
    aggregates: Dict[str, Any]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "rows": self.rows,
            "total_count": self.total_count,
            "total_pages": self.total_pages,
            "current_page": self.current_page,
            "page_size": self.page_size,
            "has_next_page": self.has_next_page,
            "has_previous_page": self.has_previous_page,
            "normalized_sort": self.normalized_sort,
            "normalized_filters": self.normalized_filters,
            "aggregates": self.aggregates,
        }


def normalize_sort(descriptor: ListingDescriptor, sort: Optional[str], sort_dir: Optional[str]) -> Tuple[str, str]:
    """Map requested sort name/direction onto the allow-list, falling back silently."""
    column = sort if sort in descriptor.sort_columns else descriptor.default_sort
    direction = (sort_dir or "").lower()
    if direction not in SORT_DIRECTIONS:
        direction = descriptor.sort_columns[column].default_direction
    return column, direction


def total_pages_for(total_count: int, page_size: int) -> int:
    return max(math.ceil(total_count / page_size), 1)


class ListQueryEngine:
    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE):
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.page_size = page_size

    def build_filtered_query(self, db: Session, descriptor: ListingDescriptor, params: ListParams,
                             context: RequestContext, now: datetime) -> Tuple[Query, Dict[str, str]]:
        """Base query + visibility + search + filters. Unsorted and unpaged."""
        query = descriptor.base_query(db)
        if not context.is_admin:
            query = descriptor.visibility(query, context, now)

        applied: Dict[str, str] = {}
        if params.search and descriptor.search_columns:
            pattern = f"%{params.search}%"
            query = query.filter(or_(*[column.ilike(pattern) for column in descriptor.search_columns]))
            applied["search"] = params.search

        today = now.date()
        for spec in descriptor.filters:
            raw = params.filters.get(spec.param)
            if raw is None:
                continue
            value = spec.parse(raw)
            condition = spec.condition(value, today) if value is not None else None
            if condition is None:
                logger.debug(f"Ignoring unusable {spec.param}={raw!r} on {descriptor.name}")
                continue
            query = query.filter(condition)
            applied[spec.param] = raw
        return query, applied

    def compute_aggregates(self, query: Query, descriptor: ListingDescriptor) -> Dict[str, Any]:
        if not descriptor.aggregates:
            return {}
        names = list(descriptor.aggregates)
        row = query.order_by(None).with_entities(
            *[descriptor.aggregates[name].expression.label(name) for name in names]
        ).one()
        result = {}
        for name, value in zip(names, row):
            spec = descriptor.aggregates[name]
            result[name] = spec.default if value is None else spec.coerce(value)
        return result

    def run(self, db: Session, descriptor: ListingDescriptor, params: ListParams,
            context: RequestContext, now: Optional[datetime] = None) -> ListResult:
        """Execute a listing. Read-only; raises ListQueryError on query-layer failure."""
        if not context.is_authenticated:
            raise ListAccessDenied(f"authentication required to list {descriptor.name}")
        now = now or datetime.now(timezone.utc)
        today = now.date()
        sort_column, sort_direction = normalize_sort(descriptor, params.sort, params.sort_dir)

        try:
            query, applied = self.build_filtered_query(db, descriptor, params, context, now)

            total_count = query.order_by(None).count()
            aggregates = {"count": total_count}
            aggregates.update(self.compute_aggregates(query, descriptor))

            total_pages = total_pages_for(total_count, self.page_size)
            current_page = min(parse_page(params.page), total_pages)

            column = descriptor.sort_columns[sort_column].column
            ordering = column.desc() if sort_direction == "desc" else column.asc()
            page_query = (
                query.options(*descriptor.load_options)
                .order_by(ordering, descriptor.primary_key.desc())
                .limit(self.page_size)
                .offset((current_page - 1) * self.page_size)
            )
            records = page_query.all()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error loading {descriptor.name}: {e}")
            raise ListQueryError(f"error loading {descriptor.name}") from e

        return ListResult(
            rows=[descriptor.projection(record, today) for record in records],
            total_count=total_count,
            total_pages=total_pages,
            current_page=current_page,
            page_size=self.page_size,
            has_next_page=current_page < total_pages,
            has_previous_page=current_page > 1,
            normalized_sort={"column": sort_column, "direction": sort_direction},
            normalized_filters=applied,
            aggregates=aggregates,
        )
