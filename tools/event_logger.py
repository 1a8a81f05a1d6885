from datetime import datetime
from typing import Dict, Optional
from tools.logger import Logger
from tools.database import Database, StoreOperationError

logger = Logger()


class EventLogger:
    def __init__(self, db: Database, user: Optional[Dict] = None):
        self.db = db
        self.user = user  # Словник з даними користувача (наприклад, {"_id": "user123"})

    async def _log_event(
            self,
            event_type: str,
            description: str,
            metadata: Optional[Dict] = None
    ) -> bool:
        """Зберігає подію в колекції `logs`."""
        try:
            event_data = {
                "timestamp": datetime.utcnow(),
                "event_type": event_type,
                "description": description,
                "user_id": self.user["_id"] if self.user else None,
                "metadata": metadata or {}
            }
            await self.db.logs.create(event_data)
            return True
        except StoreOperationError as e:
            logger.error(f"Помилка логування події: {str(e)}")
            return False

    async def log_listing_event(self, action: str, listing_id: str, name: Optional[str] = None) -> bool:
        """Подія життєвого циклу оголошення: created, updated, deleted."""
        description = f"Оголошення {listing_id} ({action})"
        if name:
            description = f"Оголошення '{name}' ({action})"
        return await self._log_event(
            event_type=f"listing_{action}",
            description=description,
            metadata={"listing_id": listing_id}
        )

    async def log_favourite_event(self, action: str, property_id: str) -> bool:
        """Подія зміни обраних: added, removed."""
        return await self._log_event(
            event_type=f"favourite_{action}",
            description=f"Об'єкт {property_id} ({action}) у обраних",
            metadata={"property_id": property_id}
        )
