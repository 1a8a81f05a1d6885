from typing import Optional

from fastapi import APIRouter, FastAPI, status

from api.endpoints.favourites import FavouritesEndpoints
from api.endpoints.listings import ListingsEndpoints
from api.jwt_handler import JWTHandler
from tools.database import Database


class Router:
    def __init__(self, app: FastAPI, db: Database, jwt_handler: Optional[JWTHandler] = None):
        self.app = app
        self.db = db
        self.jwt_handler = jwt_handler or JWTHandler()

    def initialize(self):
        """Ініціалізує всі ендпоінти"""
        self.listings_handler = ListingsEndpoints(self.db, self.jwt_handler)
        self.favourites_handler = FavouritesEndpoints(self.db, self.jwt_handler)

        self.listing_router = APIRouter(prefix="/api/listing", tags=["Listings"])
        self.favourites_router = APIRouter(prefix="/api/listing/favourites", tags=["Favourites"])

        self.setup_routes()

    def setup_routes(self):
        """Реєстрація маршрутів у FastAPI"""
        # Оголошення
        self.listing_router.post("/create", summary="Створити оголошення", status_code=status.HTTP_201_CREATED)(self.listings_handler.create_listing)
        self.listing_router.delete("/delete/{listing_id}", summary="Видалити оголошення")(self.listings_handler.delete_listing)
        self.listing_router.post("/update/{listing_id}", summary="Оновити оголошення")(self.listings_handler.update_listing)
        self.listing_router.get("/get/{listing_id}", summary="Отримати оголошення за ID")(self.listings_handler.get_listing)
        self.listing_router.get("/get", summary="Пошук оголошень")(self.listings_handler.get_listings)

        # Обрані
        self.favourites_router.post("/add", summary="Додати об'єкт до обраних")(self.favourites_handler.add_favourite_property)
        self.favourites_router.post("/remove", summary="Видалити об'єкт з обраних")(self.favourites_handler.remove_favourite_property)
        self.favourites_router.get("/all/{user_id}", summary="Всі об'єкти з позначкою обраних")(self.favourites_handler.get_all_favourites)
        self.favourites_router.get("/{user_id}", summary="Обрані об'єкти користувача")(self.favourites_handler.get_favourite)

        self.app.include_router(self.favourites_router)
        self.app.include_router(self.listing_router)
