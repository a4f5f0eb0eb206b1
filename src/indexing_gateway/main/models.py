from http import HTTPStatus

from pydantic import BaseModel


class GeneralError(BaseModel):
    error: str
    message: str
    code: int
    error_code: int | None = None

    @classmethod
    def from_status(
        cls, status_code: int, message: str, error_code: int | None = None
    ) -> "GeneralError":
        return cls(
            error=HTTPStatus(status_code).phrase,
            message=message,
            code=status_code,
            error_code=error_code,
        )
