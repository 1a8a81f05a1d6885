from datetime import datetime, timedelta
import hmac
import hashlib
import uuid

import jwt as PyJWT
from fastapi import Request

from tools.config import Config
from tools.logger import Logger
from api.exceptions.listing_exceptions import ListingException, ListingErrorCode


class JWTHandler:
    def __init__(self):
        self.config = Config()
        self.logger = Logger()
        self.algorithm = 'HS256'
        self.base_secret_key = self.config.JWT_SECRET_KEY
        self.access_token_expire_minutes = self.config.JWT_EXPIRE_MINUTES

    def _derive_key(self, user_id: str) -> str:
        """
        Повертає модифікований секретний ключ з використанням HMAC,
        який враховує user_id.
        """
        return hmac.new(
            key=self.base_secret_key.encode('utf-8'),
            msg=user_id.encode('utf-8'),
            digestmod=hashlib.sha256
        ).hexdigest()

    def generate_token(self, user_id: str) -> str:
        """Генерує JWT-токен для користувача."""
        now = datetime.utcnow()
        payload = {
            "sub": str(user_id),
            "jti": str(uuid.uuid4()),  # Унікальний ідентифікатор токена
            "exp": now + timedelta(minutes=self.access_token_expire_minutes),
            "iat": now,
        }
        return PyJWT.encode(payload, self._derive_key(str(user_id)), algorithm=self.algorithm)

    def decode_token(self, token: str) -> dict:
        """Декодує та перевіряє токен."""
        try:
            # Спочатку декодуємо без перевірки підпису щоб отримати user_id
            unverified_payload = PyJWT.decode(token, options={"verify_signature": False})
            user_id = unverified_payload.get("sub")

            if not user_id:
                raise ListingException(ListingErrorCode.INVALID_TOKEN)

            return PyJWT.decode(
                token,
                self._derive_key(str(user_id)),
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]}
            )
        except ListingException:
            raise
        except PyJWT.PyJWTError as e:
            self.logger.warning(f"Token decode error: {str(e)}")
            raise ListingException(ListingErrorCode.INVALID_TOKEN)

    def get_user_id(self, request: Request) -> str:
        """Повертає user_id з заголовка Authorization: Bearer <token>."""
        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            raise ListingException(
                ListingErrorCode.INVALID_TOKEN,
                message="Токен авторизації обов'язковий"
            )
        token = auth_header.split(" ", 1)[1]
        return self.decode_token(token)["sub"]
