from enum import Enum
from typing import Optional
from fastapi import HTTPException, status


class ListingErrorCode(Enum):
    # Загальні помилки
    INVALID_TOKEN = "INVALID_TOKEN"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    OPERATION_FAILED = "OPERATION_FAILED"
    CUSTOM_ERROR = "CUSTOM_ERROR"

    # Помилки користувача
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # Помилки оголошень
    LISTING_NOT_FOUND = "LISTING_NOT_FOUND"


ERROR_MESSAGES = {
    ListingErrorCode.INVALID_TOKEN: {
        "detail": "Невірний токен",
        "status_code": status.HTTP_401_UNAUTHORIZED
    },
    ListingErrorCode.INSUFFICIENT_PERMISSIONS: {
        "detail": "Недостатньо прав доступу",
        "status_code": status.HTTP_403_FORBIDDEN
    },
    ListingErrorCode.VALIDATION_ERROR: {
        "detail": "Некоректні параметри запиту",
        "status_code": status.HTTP_400_BAD_REQUEST
    },
    ListingErrorCode.OPERATION_FAILED: {
        "detail": "Помилка виконання операції",
        "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR
    },
    ListingErrorCode.USER_NOT_FOUND: {
        "detail": "Користувача не знайдено",
        "status_code": status.HTTP_404_NOT_FOUND
    },
    ListingErrorCode.LISTING_NOT_FOUND: {
        "detail": "Оголошення не знайдено",
        "status_code": status.HTTP_404_NOT_FOUND
    },
}


class ListingException(HTTPException):
    """Клас для винятків API оголошень."""

    def __init__(
        self,
        error_code: ListingErrorCode,
        status_code: Optional[int] = None,
        message: Optional[str] = None
    ):
        """
        Ініціалізація винятку.

        :param error_code: Код помилки.
        :param status_code: Код статусу HTTP для відповіді (перевизначає стандартний).
        :param message: Повідомлення (перевизначає стандартне).
        """
        self.error_code = error_code

        error_info = ERROR_MESSAGES.get(error_code)
        if not error_info:
            error_info = {
                "detail": "Невідома помилка",
                "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR
            }

        self.status_code = status_code or error_info["status_code"]
        self.message = message or error_info["detail"]

        super().__init__(
            status_code=self.status_code,
            detail={
                "detail": self.message,
                "code": error_code.value
            }
        )


def error_handler(status_code: int, message: str) -> ListingException:
    """Створює виняток з довільним статусом та повідомленням для обробника помилок."""
    return ListingException(ListingErrorCode.CUSTOM_ERROR, status_code=status_code, message=message)
