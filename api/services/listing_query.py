"""
Пошук оголошень.

Перетворює сирі (необов'язкові) параметри запиту на нормалізований фільтр
та параметри пагінації і виконує пошук у колекції оголошень.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pymongo import ASCENDING, DESCENDING

from api.exceptions.listing_exceptions import ListingException, ListingErrorCode
from tools.database import CollectionHandler
from tools.logger import Logger

logger = Logger()

DEFAULT_LIMIT = 9
DEFAULT_START_INDEX = 0
DEFAULT_SORT = "createdAt"
DEFAULT_ORDER = "desc"
MAX_LIMIT = 100
MAX_START_INDEX = 2 ** 63 - 1  # межа int64 у BSON

LISTING_TYPES = ("sale", "rent")

_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"0", "no"}
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

_ORDER_DIRECTIONS = {
    "asc": ASCENDING,
    "ascending": ASCENDING,
    "1": ASCENDING,
    "desc": DESCENDING,
    "descending": DESCENDING,
    "-1": DESCENDING,
}


class TriState(Enum):
    MATCH_TRUE = "match_true"
    MATCH_FALSE = "match_false"
    MATCH_EITHER = "match_either"

    def to_query(self) -> Any:
        if self is TriState.MATCH_TRUE:
            return True
        if self is TriState.MATCH_FALSE:
            return False
        return {"$in": [False, True]}


class ListingTypeFilter(Enum):
    SALE = "sale"
    RENT = "rent"
    EITHER = "all"

    def to_query(self) -> Any:
        if self is ListingTypeFilter.EITHER:
            return {"$in": list(LISTING_TYPES)}
        return self.value


def parse_int(value: Any, default: int) -> int:
    """Розбирає ціле число з початку рядка (як parseInt). Некоректні значення дають default."""
    if value is None:
        return default
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(str(value))
    if not match:
        return default
    return int(match.group(1))


def parse_tri_state(name: str, value: Optional[str]) -> TriState:
    """
    Розбирає булевий фільтр.

    Відсутнє значення, порожній рядок та літерал "false" означають "без обмеження".
    Так, furnished=false повертає і мебльовані, і немебльовані оголошення: ця
    поведінка збережена навмисно, бо від неї залежать існуючі клієнти.
    """
    if value is None:
        return TriState.MATCH_EITHER
    # Значення чутливі до регістру: "True" або "on" вважаються некоректними
    normalized = str(value)
    if normalized in ("", "false"):
        return TriState.MATCH_EITHER
    if normalized in _TRUE_VALUES:
        return TriState.MATCH_TRUE
    if normalized in _FALSE_VALUES:
        return TriState.MATCH_FALSE
    raise ListingException(
        ListingErrorCode.VALIDATION_ERROR,
        message=f"Некоректне значення параметра '{name}': {value}"
    )


def parse_listing_type(value: Optional[str]) -> ListingTypeFilter:
    if value is None or value == "" or value == "all":
        return ListingTypeFilter.EITHER
    try:
        return ListingTypeFilter(value)
    except ValueError:
        raise ListingException(
            ListingErrorCode.VALIDATION_ERROR,
            message=f"Некоректне значення параметра 'type': {value}"
        )


def parse_order(value: Optional[str]) -> int:
    if value is None or value == "":
        value = DEFAULT_ORDER
    direction = _ORDER_DIRECTIONS.get(str(value).lower())
    if direction is None:
        raise ListingException(
            ListingErrorCode.VALIDATION_ERROR,
            message=f"Некоректне значення параметра 'order': {value}"
        )
    return direction


@dataclass
class ListingFilter:
    name_contains: str = ""
    furnished: TriState = TriState.MATCH_EITHER
    parking: TriState = TriState.MATCH_EITHER
    type: ListingTypeFilter = ListingTypeFilter.EITHER

    def to_query(self) -> Dict[str, Any]:
        """Будує запит MongoDB. Пошуковий рядок шукається як підрядок без урахування регістру."""
        return {
            "name": {"$regex": re.escape(self.name_contains), "$options": "i"},
            "furnished": self.furnished.to_query(),
            "parking": self.parking.to_query(),
            "type": self.type.to_query(),
        }


@dataclass
class ListingSearchParams:
    filter: ListingFilter = field(default_factory=ListingFilter)
    limit: int = DEFAULT_LIMIT
    start_index: int = DEFAULT_START_INDEX
    sort: str = DEFAULT_SORT
    order: int = DESCENDING

    @classmethod
    def from_query(cls, query: Mapping[str, Any]) -> "ListingSearchParams":
        """Нормалізує параметри запиту, підставляючи значення за замовчуванням."""
        # 0 та від'ємні значення, як і нечислові, замінюються значенням за замовчуванням;
        # limit обмежений MAX_LIMIT, startIndex понад int64 скидається до 0
        limit = parse_int(query.get("limit"), DEFAULT_LIMIT)
        if limit <= 0:
            limit = DEFAULT_LIMIT
        elif limit > MAX_LIMIT:
            limit = MAX_LIMIT

        start_index = parse_int(query.get("startIndex"), DEFAULT_START_INDEX)
        if start_index < 0 or start_index > MAX_START_INDEX:
            start_index = DEFAULT_START_INDEX

        listing_filter = ListingFilter(
            name_contains=query.get("searchTerm") or "",
            furnished=parse_tri_state("furnished", query.get("furnished")),
            parking=parse_tri_state("parking", query.get("parking")),
            type=parse_listing_type(query.get("type")),
        )

        return cls(
            filter=listing_filter,
            limit=limit,
            start_index=start_index,
            sort=query.get("sort") or DEFAULT_SORT,
            order=parse_order(query.get("order")),
        )

    @property
    def sort_spec(self) -> List[Tuple[str, int]]:
        return [(self.sort, self.order)]


class ListingQueryService:
    def __init__(self, listings: CollectionHandler):
        self.listings = listings

    async def search(self, params: ListingSearchParams) -> List[Dict]:
        """Виконує пошук: фільтр, сортування, пропуск startIndex записів, не більше limit."""
        query = params.filter.to_query()
        logger.debug(
            f"Listing search: {query}, sort={params.sort_spec}, "
            f"skip={params.start_index}, limit={params.limit}"
        )
        return await self.listings.find(
            query,
            skip=params.start_index,
            limit=params.limit,
            sort=params.sort_spec,
        )
