from abc import ABC, abstractmethod
from typing import Optional, List
from core.entities.user import User
from core.entities.billing_event import BillingEvent


class UserRepository(ABC):
    @abstractmethod
    def add(self, user: User) -> User:
        """Проверка уникальности email и username (без учёта регистра) и вставка атомарны.
        При совпадении бросает ConflictError."""

    @abstractmethod
    def get_by_id(self, user_id: str) -> Optional[User]:...

    @abstractmethod
    def get_by_username(self, username: str) -> Optional[User]:...

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:...

    @abstractmethod
    def update(self, user: User) -> User:...

    @abstractmethod
    def count(self) -> int:...

    @abstractmethod
    def log_billing_event(self, event: BillingEvent) -> None:...

    @abstractmethod
    def list_billing_events(self, user_id: str, limit: int = 100) -> List[BillingEvent]:...
