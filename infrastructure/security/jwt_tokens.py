from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError

from core.entities.user import User
from core.exceptions import AuthError
from core.services.token_issuer import TokenClaims, TokenIssuer


class JWTTokenIssuer(TokenIssuer):
    """Подписанный HS256 токен без состояния, отзыв не поддерживается"""
    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 7 * 24 * 60):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, user: User) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user.id,
            "username": user.username,
            "email": user.email,
            "iat": now,
            "exp": now + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: Optional[str]) -> TokenClaims:
        if not token:
            raise AuthError("No token provided")
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            raise AuthError("Invalid or expired token")

        user_id = payload.get("sub")
        username = payload.get("username")
        email = payload.get("email")
        if not user_id or not username or not email:
            raise AuthError("Invalid or expired token")
        return TokenClaims(user_id=user_id, username=username, email=email)
