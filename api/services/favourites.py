"""
Обрані об'єкти користувача.

FavouritesAnnotator позначає кожен об'єкт прапорцем isFavourite,
FavouritesService керує множиною обраних у документі користувача.
"""

from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId

from api.exceptions.listing_exceptions import ListingException, ListingErrorCode, error_handler
from tools.database import CollectionHandler, to_object_id
from tools.logger import Logger

logger = Logger()


class FavouritesAnnotator:
    @staticmethod
    def candidate_query(sale: Any = None, listing_type: Optional[str] = None) -> Dict[str, Any]:
        """
        Запит для вибору об'єктів-кандидатів.

        Будь-яке непорожнє значення sale (не обов'язково "true") має пріоритет над type.
        """
        if sale:
            return {"type": "sale"}
        if listing_type == "rent":
            return {"type": "rent"}
        return {}

    @staticmethod
    def annotate(favourite_ids: Iterable[Any], properties: List[Dict]) -> List[Dict]:
        """Повертає копії об'єктів з полем isFavourite, порядок не змінюється."""
        favourites = {str(favourite_id) for favourite_id in favourite_ids}
        return [
            {**prop, "isFavourite": str(prop.get("_id")) in favourites}
            for prop in properties
        ]


class FavouritesService:
    def __init__(self, users: CollectionHandler, listings: CollectionHandler):
        self.users = users
        self.listings = listings
        self.annotator = FavouritesAnnotator()

    async def _get_user(self, user_id: str) -> Dict:
        user = await self.users.find_one({"_id": to_object_id(user_id)})
        if not user:
            raise ListingException(ListingErrorCode.USER_NOT_FOUND)
        return user

    async def _update_favourites(self, user_id: str, update: Dict) -> List[Any]:
        user = await self.users.find_one_and_update({"_id": to_object_id(user_id)}, update)
        if not user:
            raise ListingException(ListingErrorCode.USER_NOT_FOUND)
        return user.get("favourites", [])

    async def add_favourite(self, user_id: str, property_id: str) -> List[Any]:
        """Додає об'єкт до обраних ($addToSet, без дублікатів). Повертає оновлений список."""
        if not ObjectId.is_valid(property_id):
            raise error_handler(400, f"Некоректний ідентифікатор об'єкта: {property_id}")
        favourites = await self._update_favourites(
            user_id, {"$addToSet": {"favourites": to_object_id(property_id)}}
        )
        logger.info(f"Користувач {user_id} додав {property_id} до обраних")
        return favourites

    async def remove_favourite(self, user_id: str, property_id: str) -> List[Any]:
        """Видаляє об'єкт з обраних. Видалення відсутнього об'єкта нічого не змінює."""
        favourites = await self._update_favourites(
            user_id, {"$pull": {"favourites": to_object_id(property_id)}}
        )
        logger.info(f"Користувач {user_id} видалив {property_id} з обраних")
        return favourites

    async def get_favourites(self, user_id: str) -> List[Dict]:
        """Обрані об'єкти користувача у порядку додавання. Видалені оголошення пропускаються."""
        user = await self._get_user(user_id)
        favourite_ids = user.get("favourites", [])
        if not favourite_ids:
            return []

        found = await self.listings.find_many({"_id": {"$in": list(favourite_ids)}})
        by_id = {str(listing["_id"]): listing for listing in found}
        return [by_id[str(fid)] for fid in favourite_ids if str(fid) in by_id]

    async def get_all_favourites(
        self,
        user_id: str,
        sale: Any = None,
        listing_type: Optional[str] = None
    ) -> List[Dict]:
        """Всі об'єкти (з фільтром sale/type) з прапорцем isFavourite для користувача."""
        user = await self._get_user(user_id)
        query = self.annotator.candidate_query(sale, listing_type)
        properties = await self.listings.find_many(query)
        return self.annotator.annotate(user.get("favourites", []), properties)
