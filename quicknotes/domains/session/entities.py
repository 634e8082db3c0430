from datetime import datetime
from typing import Optional


class AccountPrompt:
    """Состояние "предложить создать аккаунт" с отложенным черновиком.

    Черновик хранится только в памяти и повторно не отправляется
    автоматически: пользователь должен повторить действие сам.
    """

    def __init__(self):
        self.active = False
        self.pending_draft = None
        self.raised_at: Optional[datetime] = None

    def hold(self, draft) -> None:
        """Показ предложения с сохранением черновика"""
        self.active = True
        self.pending_draft = draft
        self.raised_at = datetime.utcnow()

    def dismiss(self) -> None:
        """Закрытие предложения и удаление черновика"""
        self.active = False
        self.pending_draft = None
        self.raised_at = None

    def __repr__(self) -> str:
        return f"AccountPrompt(active={self.active}, pending_draft={self.pending_draft!r})"
