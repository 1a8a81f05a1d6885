from json import JSONDecodeError
from typing import Any, Dict

from fastapi import Request

from api.exceptions.listing_exceptions import error_handler


async def read_json_body(request: Request) -> Dict[str, Any]:
    """Читає JSON тіло запиту. Очікується об'єкт."""
    try:
        data = await request.json()
    except (JSONDecodeError, UnicodeDecodeError):
        raise error_handler(400, "Некоректне JSON тіло запиту")
    if not isinstance(data, dict):
        raise error_handler(400, "Тіло запиту має бути JSON об'єктом")
    return data
