from fastapi import HTTPException
from pydantic import BaseModel
from typing import Optional


class ProblemDetail(BaseModel):
    """RFC 7807 compliant error response."""

    type: str = "about:blank"
    title: str
    detail: Optional[str] = None
    status: int
    instance: Optional[str] = None
    code: str


class DomainException(Exception):
    """Base class for domain-specific exceptions."""

    def __init__(
        self,
        status_code: int,
        title: str,
        *,
        code: str,
        detail: str | None = None,
        type_: str = "about:blank",
    ) -> None:
        super().__init__(detail or title)
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type = type_
        self.code = code


class InvalidServeConfiguration(DomainException):
    def __init__(self, server: str, receiver: str) -> None:
        super().__init__(
            status_code=422,
            title="Invalid serve configuration",
            detail=f"'{server}' cannot open service against '{receiver}'",
            code="serve_configuration_invalid",
        )


class ServeConfigurationLocked(DomainException):
    def __init__(self, set_number: int) -> None:
        super().__init__(
            status_code=409,
            title="Serve configuration locked",
            detail=f"set {set_number} already has points; its serve configuration is fixed",
            code="serve_configuration_locked",
        )


def http_problem(
    status_code: int,
    detail: str,
    code: str,
    *,
    headers: Optional[dict[str, str]] = None,
) -> HTTPException:
    """Create an HTTPException with an attached problem code."""

    exc = HTTPException(status_code=status_code, detail=detail, headers=headers)
    setattr(exc, "code", code)
    return exc
