import uuid
from typing import Optional, Union


class AuthenticatedUser:
    """Пользователь с активной сессией внешнего auth сервиса"""

    is_guest = False
    kind = "authenticated"

    def __init__(self, id: str, email: Optional[str] = None):
        self.id = id
        self.email = email

    def __eq__(self, other) -> bool:
        if not isinstance(other, AuthenticatedUser):
            return False
        return self.id == other.id

    def __repr__(self) -> str:
        return f"AuthenticatedUser(id={self.id}, email={self.email})"


class GuestUser:
    """Гость: локально сгенерированный идентификатор вместо аккаунта"""

    is_guest = True
    kind = "guest"
    email = None

    def __init__(self, id: str):
        self.id = id

    def to_dict(self) -> dict:
        """Сериализованный вид для локального хранилища"""
        return {"id": self.id, "isAnonymous": True}

    @classmethod
    def create_guest(cls) -> "GuestUser":
        """Создание гостя со случайным 128-битным идентификатором"""
        return cls(id=str(uuid.uuid4()))

    def __eq__(self, other) -> bool:
        if not isinstance(other, GuestUser):
            return False
        return self.id == other.id

    def __repr__(self) -> str:
        return f"GuestUser(id={self.id})"


# None означает, что личность не определена (или пользователь вышел)
Identity = Optional[Union[AuthenticatedUser, GuestUser]]
