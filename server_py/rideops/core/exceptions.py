"""Доменные исключения, общие для сервисов и обработчиков роутов."""


class RideOpsError(Exception):
    """Базовое исключение: хранит HTTP статус, которым ответит API."""

    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.default_message


class ConfigurationError(RideOpsError):
    """Нет учетных данных или нужных таблиц/колонок."""
    status_code = 500
    default_message = "Service is not configured"


class InvalidRequestError(RideOpsError):
    """Некорректный запрос или неизвестное значение."""
    status_code = 400
    default_message = "Invalid request"


class ConflictError(RideOpsError):
    """Учетная запись с таким email уже есть."""
    status_code = 409
    default_message = "An account with this email already exists"


class NotFoundError(RideOpsError):
    status_code = 404
    default_message = "Record not found"


class RideNotFoundError(NotFoundError):
    """Поездки нет или она чужая; для пользователя это одно и то же."""
    default_message = "Ride not found or unauthorized"


class IdentityProviderError(RideOpsError):
    """Провайдер учетных записей отклонил запрос или недоступен."""
    status_code = 502
    default_message = "Identity provider error"


class ProfileCreationError(RideOpsError):
    """Профиль не создан, учетная запись откатывается."""
    status_code = 500
    default_message = "Failed to create profile"


class RideEditRejectedError(RideOpsError):
    """Изменение поездки запрещено правилами редактирования."""
    status_code = 400
    default_message = "Ride update rejected"


class RideClosedError(RideEditRejectedError):
    default_message = "Cannot update completed or cancelled rides"
