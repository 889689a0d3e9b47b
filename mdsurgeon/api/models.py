"""Request and error models for the HTTP API."""

from typing import Literal

from pydantic import BaseModel, Field


class WriteRequest(BaseModel):
    """Body of ``PUT /v1/sections/{id}``."""

    path: str = Field(..., description="File path relative to the root")
    content: str
    deep: bool = False


class AppendRequest(BaseModel):
    """Body of ``POST /v1/append``.

    Without ``section_id`` the content goes at the end of the file, or at
    the very top when ``before`` is set.
    """

    path: str
    content: str
    section_id: str | None = None
    deep: bool = False
    before: bool = False


class EmptyRequest(BaseModel):
    path: str
    deep: bool = False


class MetaSetRequest(BaseModel):
    """Body of ``PUT /v1/meta``."""

    path: str
    key: str = Field(..., min_length=1, description="Dotted key path")
    value: str


class ErrorDetail(BaseModel):
    """Error detail."""

    message: str
    type: Literal["not_found_error", "invalid_request_error", "server_error"] = "server_error"
    code: str | None = None
    file: str | None = None
    section_id: str | None = None


class ErrorResponse(BaseModel):
    """Error response wrapper."""

    error: ErrorDetail
