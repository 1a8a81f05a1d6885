from datetime import datetime
from typing import Any, Dict

from api.exceptions.listing_exceptions import ListingException, ListingErrorCode, error_handler
from tools.database import CollectionHandler, to_object_id

REQUIRED_FIELDS = [
    "name", "description", "address", "regularPrice",
    "bathrooms", "bedrooms", "furnished", "parking", "type"
]

UPDATABLE_FIELDS = [
    "name", "description", "address", "regularPrice", "discountPrice",
    "bathrooms", "bedrooms", "furnished", "parking", "type", "offer", "imageUrls"
]


class ListingService:
    def __init__(self, listings: CollectionHandler):
        self.listings = listings

    @staticmethod
    def _validate(data: Dict[str, Any], partial: bool = False):
        if not partial:
            for field in REQUIRED_FIELDS:
                if data.get(field) is None or data.get(field) == "":
                    raise error_handler(400, f"Поле '{field}' є обов'язковим")

        if "type" in data and data["type"] not in ("sale", "rent"):
            raise error_handler(400, "Поле 'type' має бути 'sale' або 'rent'")

        for field in ("furnished", "parking", "offer"):
            if field in data and not isinstance(data[field], bool):
                raise error_handler(400, f"Поле '{field}' має бути булевим")

    async def _find_or_404(self, listing_id: str) -> Dict:
        listing = await self.listings.find_one({"_id": to_object_id(listing_id)})
        if not listing:
            raise ListingException(ListingErrorCode.LISTING_NOT_FOUND)
        return listing

    @staticmethod
    def _check_owner(listing: Dict, user_id: str):
        if str(listing.get("userRef")) != str(user_id):
            raise ListingException(ListingErrorCode.INSUFFICIENT_PERMISSIONS)

    async def create_listing(self, data: Dict[str, Any], owner_id: str) -> Dict:
        self._validate(data)

        now = datetime.utcnow()
        listing = {
            "name": data["name"],
            "description": data["description"],
            "address": data["address"],
            "regularPrice": data["regularPrice"],
            "discountPrice": data.get("discountPrice", 0),
            "bathrooms": data["bathrooms"],
            "bedrooms": data["bedrooms"],
            "furnished": data["furnished"],
            "parking": data["parking"],
            "type": data["type"],
            "offer": data.get("offer", False),
            "imageUrls": data.get("imageUrls", []),
            "userRef": str(owner_id),
            "createdAt": now,
            "updatedAt": now,
        }

        listing_id = await self.listings.create(listing)
        listing["_id"] = to_object_id(listing_id)
        return listing

    async def get_listing(self, listing_id: str) -> Dict:
        return await self._find_or_404(listing_id)

    async def update_listing(self, listing_id: str, data: Dict[str, Any], user_id: str) -> Dict:
        listing = await self._find_or_404(listing_id)
        self._check_owner(listing, user_id)

        update_data = {field: data[field] for field in UPDATABLE_FIELDS if field in data}
        self._validate(update_data, partial=True)
        update_data["updatedAt"] = datetime.utcnow()

        updated = await self.listings.find_one_and_update(
            {"_id": listing["_id"]}, {"$set": update_data}
        )
        # Оголошення могли видалити між читанням та оновленням
        if not updated:
            raise ListingException(ListingErrorCode.LISTING_NOT_FOUND)
        return updated

    async def delete_listing(self, listing_id: str, user_id: str) -> Dict:
        listing = await self._find_or_404(listing_id)
        self._check_owner(listing, user_id)
        await self.listings.delete({"_id": listing["_id"]})
        return listing
