from quicknotes.domains.session.entities import AccountPrompt
from quicknotes.domains.session.schemas import Notification

__all__ = [
    "AccountPrompt",
    "Notification"
]
