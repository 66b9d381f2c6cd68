from abc import ABC, abstractmethod
from typing import List
from core.entities.database import Database


class DatabaseRepository(ABC):
    @abstractmethod
    def list_by_owner(self, owner_id: str) -> List[Database]:...

    @abstractmethod
    def count(self) -> int:...
