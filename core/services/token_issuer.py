from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from core.entities.user import User


@dataclass
class TokenClaims:
    user_id: str
    username: str
    email: str


class TokenIssuer(ABC):
    @abstractmethod
    def issue(self, user: User) -> str: ...

    @abstractmethod
    def verify(self, token: Optional[str]) -> TokenClaims: ...
