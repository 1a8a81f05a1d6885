import pytest
from pymongo import ASCENDING, DESCENDING

from api.exceptions.listing_exceptions import ListingException, ListingErrorCode
from api.services.listing_query import (
    MAX_LIMIT,
    ListingQueryService,
    ListingSearchParams,
    ListingTypeFilter,
    TriState,
    parse_int,
)
from tools.database import StoreOperationError
from tests.conftest import (
    COTTAGE_ID,
    GRAND_VILLA_ID,
    LOFT_ID,
    VILLA_SUNRISE_ID,
    FailingCollection,
)


def names(results):
    return [listing["name"] for listing in results]


def ids(results):
    return {listing["_id"] for listing in results}


class TestNormalization:
    def test_defaults(self):
        params = ListingSearchParams.from_query({})

        assert params.limit == 9
        assert params.start_index == 0
        assert params.sort == "createdAt"
        assert params.order == DESCENDING
        assert params.filter.name_contains == ""
        assert params.filter.furnished is TriState.MATCH_EITHER
        assert params.filter.parking is TriState.MATCH_EITHER
        assert params.filter.type is ListingTypeFilter.EITHER

    @pytest.mark.parametrize("raw, expected", [
        ("4", 4),
        ("12abc", 12),
        (" 7", 7),
        ("abc", 9),
        ("", 9),
        ("0", 9),
        ("-3", 9),
    ])
    def test_limit_parsing(self, raw, expected):
        assert ListingSearchParams.from_query({"limit": raw}).limit == expected

    @pytest.mark.parametrize("raw, expected", [("6", 6), ("x", 0), ("-2", 0), ("3.9", 3)])
    def test_start_index_parsing(self, raw, expected):
        assert ListingSearchParams.from_query({"startIndex": raw}).start_index == expected

    def test_parse_int_ignores_booleans(self):
        assert parse_int(True, 9) == 9

    def test_huge_paging_values_stay_within_int64(self):
        huge = "1" + "0" * 20

        params = ListingSearchParams.from_query({"limit": huge, "startIndex": huge})

        assert params.limit == MAX_LIMIT
        assert params.start_index == 0

    def test_limit_is_capped(self):
        assert ListingSearchParams.from_query({"limit": "500"}).limit == MAX_LIMIT
        assert ListingSearchParams.from_query({"limit": str(MAX_LIMIT)}).limit == MAX_LIMIT

    def test_start_index_at_int64_bound(self):
        bound = str(2 ** 63 - 1)

        assert ListingSearchParams.from_query({"startIndex": bound}).start_index == 2 ** 63 - 1
        assert ListingSearchParams.from_query({"startIndex": str(2 ** 63)}).start_index == 0

    def test_furnished_false_means_no_restriction(self):
        explicit = ListingSearchParams.from_query({"furnished": "false"})
        absent = ListingSearchParams.from_query({})

        assert explicit.filter.furnished is TriState.MATCH_EITHER
        assert explicit.filter.to_query() == absent.filter.to_query()

    def test_parking_false_means_no_restriction(self):
        params = ListingSearchParams.from_query({"parking": "false"})
        assert params.filter.parking is TriState.MATCH_EITHER

    def test_true_and_zero_values(self):
        params = ListingSearchParams.from_query({"furnished": "true", "parking": "0"})

        assert params.filter.furnished is TriState.MATCH_TRUE
        assert params.filter.parking is TriState.MATCH_FALSE

    def test_invalid_boolean_is_rejected(self):
        with pytest.raises(ListingException) as exc_info:
            ListingSearchParams.from_query({"furnished": "maybe"})

        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code is ListingErrorCode.VALIDATION_ERROR

    @pytest.mark.parametrize("raw", ["TRUE", "True", "on", "off", " true"])
    def test_boolean_values_are_case_sensitive(self, raw):
        with pytest.raises(ListingException):
            ListingSearchParams.from_query({"parking": raw})

    @pytest.mark.parametrize("raw, expected", [
        ("yes", TriState.MATCH_TRUE),
        ("1", TriState.MATCH_TRUE),
        ("no", TriState.MATCH_FALSE),
    ])
    def test_accepted_boolean_values(self, raw, expected):
        assert ListingSearchParams.from_query({"furnished": raw}).filter.furnished is expected

    def test_type_all_equals_absent(self):
        assert (
            ListingSearchParams.from_query({"type": "all"}).filter.to_query()
            == ListingSearchParams.from_query({}).filter.to_query()
        )

    def test_unknown_type_is_rejected(self):
        with pytest.raises(ListingException):
            ListingSearchParams.from_query({"type": "castle"})

    def test_order(self):
        assert ListingSearchParams.from_query({"order": "asc"}).order == ASCENDING
        assert ListingSearchParams.from_query({"order": "DESC"}).order == DESCENDING
        with pytest.raises(ListingException):
            ListingSearchParams.from_query({"order": "sideways"})

    def test_query_shape(self):
        params = ListingSearchParams.from_query({"searchTerm": "a.b", "type": "rent", "parking": "true"})

        assert params.filter.to_query() == {
            "name": {"$regex": r"a\.b", "$options": "i"},
            "furnished": {"$in": [False, True]},
            "parking": True,
            "type": "rent",
        }
        assert params.sort_spec == [("createdAt", DESCENDING)]


class TestSearch:
    @pytest.fixture
    def service(self, db):
        return ListingQueryService(db.listings)

    async def search(self, service, **query):
        return await service.search(ListingSearchParams.from_query(query))

    async def test_default_search_returns_newest_first(self, service):
        results = await self.search(service)

        assert names(results) == ["villa sunrise", "Grand Villa", "Cosy Flat", "City Loft", "Lake Cottage"]

    async def test_search_term_is_case_insensitive_substring(self, service):
        results = await self.search(service, searchTerm="Villa")

        assert ids(results) == {VILLA_SUNRISE_ID, GRAND_VILLA_ID}

    async def test_search_term_is_literal(self, service):
        assert await self.search(service, searchTerm="Vil.a") == []

    async def test_furnished_false_returns_both(self, service):
        explicit = await self.search(service, furnished="false")
        absent = await self.search(service)

        assert ids(explicit) == ids(absent)
        assert len(explicit) == 5

    async def test_furnished_true_restricts(self, service):
        results = await self.search(service, furnished="true")

        assert ids(results) == {VILLA_SUNRISE_ID, LOFT_ID, COTTAGE_ID}

    async def test_type_and_parking(self, service):
        results = await self.search(service, type="sale", parking="true")

        assert ids(results) == {COTTAGE_ID}

    async def test_type_all_matches_sale_and_rent(self, service):
        assert ids(await self.search(service, type="all")) == ids(await self.search(service))

    async def test_pagination(self, service):
        everything = await self.search(service)
        page = await self.search(service, limit="2", startIndex="1")

        assert len(page) == 2
        assert names(page) == names(everything)[1:3]

    async def test_page_never_exceeds_limit(self, service):
        for limit in range(1, 7):
            results = await self.search(service, limit=str(limit))
            assert len(results) <= limit

    async def test_start_index_past_end(self, service):
        assert await self.search(service, startIndex="50") == []

    async def test_custom_sort(self, service):
        results = await self.search(service, sort="name", order="asc")

        assert names(results) == ["City Loft", "Cosy Flat", "Grand Villa", "Lake Cottage", "villa sunrise"]

    async def test_store_failure_propagates(self):
        service = ListingQueryService(FailingCollection("listings"))

        with pytest.raises(StoreOperationError):
            await service.search(ListingSearchParams.from_query({}))
