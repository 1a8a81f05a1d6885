from fastapi import status
from fastapi.responses import JSONResponse
from typing import Dict, Any, Optional, Union, List

from api.exceptions.listing_exceptions import ListingException

Payload = Optional[Union[Dict[str, Any], List[Any]]]


class Response:
    @staticmethod
    def _envelope(result: str, message: str, status_code: int, **fields: Any) -> JSONResponse:
        """Конверт відповіді: status, message, status_code та додаткові поля (data або details)."""
        content = {"status": result, "message": message, **fields, "status_code": status_code}
        return JSONResponse(content=content, status_code=status_code)

    @staticmethod
    def success(
            data: Payload = None,
            message: str = "Operation successful",
            status_code: int = status.HTTP_200_OK
    ) -> JSONResponse:
        """
        Успішна відповідь.

        :param data: Дані для клієнта (словник або список).
        :param message: Повідомлення про успішне виконання.
        :param status_code: HTTP статус-код (200 або 201 для створення).
        """
        return Response._envelope("success", message, status_code, data=data)

    @staticmethod
    def error(
            message: str = "An error occurred",
            status_code: int = status.HTTP_400_BAD_REQUEST,
            details: Optional[Dict[str, Any]] = None,
            exc: Optional[ListingException] = None
    ) -> JSONResponse:
        """
        Відповідь з помилкою.

        Якщо передано ListingException, повідомлення, статус та код помилки
        беруться з нього, а details доповнюється полем code.
        """
        if exc is not None:
            message = exc.message
            status_code = exc.status_code
            details = {**(details or {}), "code": exc.error_code.value}
        return Response._envelope("error", message, status_code, details=details)
