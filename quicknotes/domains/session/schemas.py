from pydantic import BaseModel


class Notification(BaseModel):
    """Уведомление для пользователя (toast на стороне интерфейса)"""
    title: str
    description: str
    variant: str = "default"

    @classmethod
    def success(cls, description: str) -> "Notification":
        return cls(title="Success", description=description)

    @classmethod
    def error(cls, description: str) -> "Notification":
        return cls(title="Error", description=description, variant="destructive")
