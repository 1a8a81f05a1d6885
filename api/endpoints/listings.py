from fastapi import Request, status
from fastapi.responses import JSONResponse

from api.endpoints.request_utils import read_json_body
from api.jwt_handler import JWTHandler
from api.response import Response
from api.serializers import convert_objectid
from api.services.listing_query import ListingQueryService, ListingSearchParams
from api.services.listings import ListingService
from tools.database import Database
from tools.event_logger import EventLogger


class ListingsEndpoints:
    def __init__(self, db: Database, jwt_handler: JWTHandler):
        self.db = db
        self.jwt_handler = jwt_handler
        self.listing_service = ListingService(db.listings)
        self.query_service = ListingQueryService(db.listings)

    async def create_listing(self, request: Request) -> JSONResponse:
        """
        🔒 Створити оголошення (потребує авторизації).

        Тіло запиту (JSON):
        {
            "name": "Grand Villa",            // обов'язково
            "description": "Опис",            // обов'язково
            "address": "вул. Морська, 5",     // обов'язково
            "regularPrice": 1200,             // обов'язково
            "discountPrice": 1000,            // опціонально
            "bathrooms": 2,                   // обов'язково
            "bedrooms": 3,                    // обов'язково
            "furnished": true,                // обов'язково
            "parking": false,                 // обов'язково
            "type": "rent",                   // обов'язково (sale, rent)
            "offer": true,                    // опціонально
            "imageUrls": ["url1.jpg"]         // опціонально
        }
        """
        user_id = self.jwt_handler.get_user_id(request)
        data = await read_json_body(request)

        listing = await self.listing_service.create_listing(data, user_id)
        listing_id = str(listing["_id"])

        await EventLogger(self.db, {"_id": user_id}).log_listing_event("created", listing_id, listing["name"])

        return Response.success(
            {"listing": convert_objectid(listing)},
            message="Оголошення успішно створено",
            status_code=status.HTTP_201_CREATED
        )

    async def delete_listing(self, listing_id: str, request: Request) -> JSONResponse:
        """🔒 Видалити оголошення. Тільки власник оголошення може його видалити."""
        user_id = self.jwt_handler.get_user_id(request)
        await self.listing_service.delete_listing(listing_id, user_id)

        await EventLogger(self.db, {"_id": user_id}).log_listing_event("deleted", listing_id)

        return Response.success(message="Оголошення видалено")

    async def update_listing(self, listing_id: str, request: Request) -> JSONResponse:
        """🔒 Оновити оголошення. Тільки власник оголошення може його редагувати."""
        user_id = self.jwt_handler.get_user_id(request)
        data = await read_json_body(request)

        listing = await self.listing_service.update_listing(listing_id, data, user_id)

        await EventLogger(self.db, {"_id": user_id}).log_listing_event("updated", listing_id)

        return Response.success({"listing": convert_objectid(listing)})

    async def get_listing(self, listing_id: str) -> JSONResponse:
        """🌍 Отримати оголошення за ID."""
        listing = await self.listing_service.get_listing(listing_id)
        return Response.success({"listing": convert_objectid(listing)})

    async def get_listings(self, request: Request) -> JSONResponse:
        """
        🌍 Пошук оголошень.

        Параметри запиту (всі опціональні):
        - searchTerm: підрядок назви (без урахування регістру)
        - furnished, parking: "true" обмежує пошук; відсутнє значення або "false" - без обмеження
        - type: sale, rent або all
        - sort: поле сортування (createdAt за замовчуванням)
        - order: asc або desc (desc за замовчуванням)
        - limit: кількість результатів (9 за замовчуванням)
        - startIndex: кількість пропущених результатів (0 за замовчуванням)

        Приклад запиту:
        GET /api/listing/get?searchTerm=villa&type=rent&parking=true&limit=6&startIndex=6
        """
        params = ListingSearchParams.from_query(request.query_params)
        listings = await self.query_service.search(params)
        return Response.success({"listings": convert_objectid(listings)})
