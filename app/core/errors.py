"""Типизированные ошибки сервиса заметок.

Каждая ошибка несет машиночитаемый код и HTTP-статус, чтобы граница
(API или клиент) могла однозначно сопоставить ее с ответом.
"""
from enum import Enum
from typing import Any, Dict, Optional, Type


class ErrorCode(str, Enum):
    """Коды ошибок"""

    UNAUTHENTICATED = "unauthenticated"
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    INVALID_REFERENCE = "invalid_reference"
    STORAGE_FAILURE = "storage_failure"


class NotebookError(Exception):
    """Базовая ошибка сервиса заметок

    Attributes:
        message: сообщение для человека
        code: машиночитаемый код
        details: дополнительный контекст
    """

    code: ErrorCode = ErrorCode.INVALID_INPUT
    status_code: int = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.value}, message={self.message!r})"


class Unauthenticated(NotebookError):
    """Нет проверенной личности пользователя"""

    code = ErrorCode.UNAUTHENTICATED
    status_code = 401


class NotFound(NotebookError):
    """Сущность отсутствует или принадлежит другому пользователю"""

    code = ErrorCode.NOT_FOUND
    status_code = 404


class InvalidInput(NotebookError):
    """Пустое имя/заголовок или некорректный запрос"""

    code = ErrorCode.INVALID_INPUT
    status_code = 400


class InvalidReference(NotebookError):
    """folder_id указывает на папку, которой нет у пользователя"""

    code = ErrorCode.INVALID_REFERENCE
    status_code = 400


class StorageFailure(NotebookError):
    """Ошибка хранилища"""

    code = ErrorCode.STORAGE_FAILURE
    status_code = 503


ERRORS_BY_CODE: Dict[ErrorCode, Type[NotebookError]] = {
    error_class.code: error_class
    for error_class in (Unauthenticated, NotFound, InvalidInput, InvalidReference, StorageFailure)
}


def error_from_dict(payload: Dict[str, Any]) -> NotebookError:
    """Восстановление типизированной ошибки из тела ответа"""
    try:
        code = ErrorCode(payload.get("code"))
    except ValueError:
        code = ErrorCode.STORAGE_FAILURE
    error_class = ERRORS_BY_CODE[code]
    return error_class(payload.get("message") or code.value, payload.get("details"))
