from typing import Optional

from fastapi import Query, Request
from fastapi.responses import JSONResponse

from api.endpoints.request_utils import read_json_body
from api.exceptions.listing_exceptions import ListingException, ListingErrorCode, error_handler
from api.jwt_handler import JWTHandler
from api.response import Response
from api.serializers import convert_objectid
from api.services.favourites import FavouritesService
from tools.database import Database
from tools.event_logger import EventLogger


class FavouritesEndpoints:
    def __init__(self, db: Database, jwt_handler: JWTHandler):
        self.db = db
        self.jwt_handler = jwt_handler
        self.favourites_service = FavouritesService(db.users, db.listings)

    async def _read_favourite_request(self, request: Request):
        """Повертає (user_id, property_id) з тіла запиту та перевіряє, що це токен того ж користувача."""
        token_user_id = self.jwt_handler.get_user_id(request)
        data = await read_json_body(request)

        user_id = data.get("userId")
        property_id = data.get("propertyId")
        if not user_id or not property_id:
            raise error_handler(400, "Поля 'userId' та 'propertyId' є обов'язковими")

        if str(user_id) != str(token_user_id):
            raise ListingException(ListingErrorCode.INSUFFICIENT_PERMISSIONS)

        return str(user_id), str(property_id)

    async def add_favourite_property(self, request: Request) -> JSONResponse:
        """
        🔒 Додати об'єкт до обраних.

        Тіло запиту: {"userId": "...", "propertyId": "..."}
        Повторне додавання не створює дублікатів.
        """
        user_id, property_id = await self._read_favourite_request(request)
        favourites = await self.favourites_service.add_favourite(user_id, property_id)

        await EventLogger(self.db, {"_id": user_id}).log_favourite_event("added", property_id)

        return Response.success({
            "success": True,
            "userId": user_id,
            "favourites": convert_objectid(list(favourites))
        })

    async def remove_favourite_property(self, request: Request) -> JSONResponse:
        """🔒 Видалити об'єкт з обраних. Якщо його там не було, список не змінюється."""
        user_id, property_id = await self._read_favourite_request(request)
        favourites = await self.favourites_service.remove_favourite(user_id, property_id)

        await EventLogger(self.db, {"_id": user_id}).log_favourite_event("removed", property_id)

        return Response.success({
            "success": True,
            "userId": user_id,
            "favourites": convert_objectid(list(favourites))
        })

    async def get_favourite(self, user_id: str) -> JSONResponse:
        """🌍 Обрані об'єкти користувача з повною інформацією."""
        favourites = await self.favourites_service.get_favourites(user_id)
        return Response.success({"success": True, "favourites": convert_objectid(favourites)})

    async def get_all_favourites(
        self,
        user_id: str,
        sale: Optional[str] = Query(None, description="Будь-яке непорожнє значення - тільки продаж"),
        type: Optional[str] = Query(None, description="rent - тільки оренда")
    ) -> JSONResponse:
        """
        🌍 Всі об'єкти з прапорцем isFavourite для користувача.

        Приклад відповіді:
        {
            "status": "success",
            "data": {
                "success": true,
                "properties": [
                    {"_id": "...", "name": "Grand Villa", "type": "sale", "isFavourite": true}
                ]
            }
        }
        """
        properties = await self.favourites_service.get_all_favourites(user_id, sale, type)
        return Response.success({"success": True, "properties": convert_objectid(properties)})
