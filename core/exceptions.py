"""
Ошибки домена. Веб-слой превращает их в JSON {"error": message}.
"""


class HostingError(Exception):
    """Базовая ошибка сервиса"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(HostingError):
    """Некорректный или отсутствующий ввод"""


class ConflictError(HostingError):
    """Имя пользователя или email уже заняты"""


class AuthError(HostingError):
    """Неверные учётные данные или токен"""


class NotFoundError(HostingError):
    """Ресурс не найден или принадлежит другому пользователю"""


class QuotaError(HostingError):
    """Достигнут лимит тарифа"""
