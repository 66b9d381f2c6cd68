from abc import ABC, abstractmethod
from typing import Optional, List
from core.entities.server import Server


class ServerRepository(ABC):
    @abstractmethod
    def add(self, server: Server) -> Server:...

    @abstractmethod
    def add_within_quota(self, server: Server, quota: int) -> Optional[Server]:
        """Вставляет сервер, только если у владельца меньше quota серверов.
        Подсчёт и вставка атомарны. None, если лимит уже исчерпан."""

    @abstractmethod
    def get(self, server_id: str) -> Optional[Server]:...

    @abstractmethod
    def update(self, server: Server) -> Server:...

    @abstractmethod
    def list_by_owner(self, owner_id: str) -> List[Server]:...

    @abstractmethod
    def delete(self, server_id: str) -> bool:...

    @abstractmethod
    def count(self) -> int:...
