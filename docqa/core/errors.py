from __future__ import annotations

from typing import Optional


class AppError(Exception):
    """Error carrying an HTTP status and a stable machine-readable code."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str = "Internal Server Error",
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code


class ExtractionError(AppError):
    status_code = 422
    code = "UNPROCESSABLE"


class GenerationError(AppError):
    status_code = 502
    code = "LLM_ERROR"


class ConfigError(AppError):
    status_code = 500
    code = "CONFIG_ERROR"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class DuplicateDocumentError(AppError):
    status_code = 409
    code = "DUPLICATE_DOC"

    def __init__(self, doc_id: str):
        super().__init__(f"Duplicate document: {doc_id}")
        self.doc_id = doc_id
