from abc import ABC, abstractmethod
from typing import Callable


class Scheduler(ABC):
    """Однократный отложенный вызов. Отмена не поддерживается."""
    @abstractmethod
    def schedule(self, delay_seconds: float, callback: Callable[[], None]) -> None: ...
