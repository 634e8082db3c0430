class QuickNotesError(Exception):
    """Базовая ошибка клиента заметок"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(QuickNotesError):
    """Нарушено предусловие на стороне клиента (например, нет id при обновлении)"""


class AuthRequiredError(QuickNotesError):
    """Удаленный сервис отклонил запись из-за отсутствия валидных учетных данных"""


class FetchError(QuickNotesError):
    """Не удалось получить данные из удаленного сервиса"""


class WriteError(QuickNotesError):
    """Не удалось записать данные в удаленный сервис"""


class AuthError(QuickNotesError):
    """Ошибка входа, регистрации или подтверждения email"""


class ConfigurationError(QuickNotesError):
    """Удаленный сервис не сконфигурирован"""
