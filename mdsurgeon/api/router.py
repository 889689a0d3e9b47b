"""FastAPI router exposing the section commands under /v1.

Files are addressed by a ``path`` relative to the configured root. Every
endpoint is a thin wrapper over ``mdsurgeon.commands``; failures surface as
``SurgeonError`` and are turned into an ``ErrorResponse`` by
``surgeon_error_handler``.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from mdsurgeon import commands
from mdsurgeon.api.models import (
    AppendRequest,
    EmptyRequest,
    ErrorDetail,
    ErrorResponse,
    MetaSetRequest,
    WriteRequest,
)
from mdsurgeon.commands import SurgeonDependencies
from mdsurgeon.dependencies import (
    CodecError,
    DocumentStore,
    FileNotFoundInStoreError,
    InvalidIdError,
    KeyNotFoundError,
    MalformedRequestError,
    SectionNotFoundError,
    SurgeonError,
    get_document_store,
    logger,
)

router = APIRouter(prefix="/v1", tags=["sections"])

NOT_FOUND_ERRORS = (FileNotFoundInStoreError, SectionNotFoundError, KeyNotFoundError)
BAD_REQUEST_ERRORS = (InvalidIdError, MalformedRequestError, CodecError)


def error_status(error: SurgeonError) -> tuple[int, str]:
    """HTTP status code and error type for a surgeon error."""
    if isinstance(error, NOT_FOUND_ERRORS):
        return status.HTTP_404_NOT_FOUND, "not_found_error"
    if isinstance(error, BAD_REQUEST_ERRORS):
        return status.HTTP_400_BAD_REQUEST, "invalid_request_error"
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "server_error"


async def surgeon_error_handler(request: Request, exc: SurgeonError) -> JSONResponse:
    """Render a SurgeonError as ``{"detail": {"error": {...}}}``."""
    status_code, error_type = error_status(exc)
    logger.warning(
        "request_failed",
        extra={"path": request.url.path, "error": exc.code, "status_code": status_code},
    )
    body = ErrorResponse(
        error=ErrorDetail(
            message=exc.message,
            type=error_type,
            code=exc.code,
            file=exc.file,
            section_id=exc.section_id,
        )
    )
    return JSONResponse(status_code=status_code, content={"detail": body.model_dump()})


async def get_surgeon_deps(
    store: DocumentStore = Depends(get_document_store),
) -> SurgeonDependencies:
    """FastAPI dependency provider for command dependencies."""
    return SurgeonDependencies(store=store)


# =============================================================================
# Sections
# =============================================================================


@router.get("/outline")
async def get_outline(
    path: str,
    after: str | None = None,
    deps: SurgeonDependencies = Depends(get_surgeon_deps),
) -> list[dict[str, Any]]:
    """List the sections of a file."""
    sections = await commands.outline(deps, path, after)
    return [s.to_json_dict() for s in sections]


@router.get("/sections/{section_id}")
async def get_section(
    section_id: str,
    path: str,
    deep: bool = False,
    deps: SurgeonDependencies = Depends(get_surgeon_deps),
) -> dict[str, Any]:
    """Read one section."""
    result = await commands.read(deps, path, section_id, deep)
    return result.to_json_dict()


@router.put("/sections/{section_id}")
async def put_section(
    section_id: str,
    request: WriteRequest,
    deps: SurgeonDependencies = Depends(get_surgeon_deps),
) -> dict[str, Any]:
    """Replace a section body."""
    result = await commands.write(deps, request.path, section_id, request.content, request.deep)
    return result.to_json_dict()


@router.post("/sections/{section_id}/empty")
async def post_empty_section(
    section_id: str,
    request: EmptyRequest,
    deps: SurgeonDependencies = Depends(get_surgeon_deps),
) -> dict[str, Any]:
    """Delete a section body, keeping its heading."""
    result = await commands.empty(deps, request.path, section_id, request.deep)
    return result.to_json_dict()


@router.delete("/sections/{section_id}")
async def delete_section(
    section_id: str,
    path: str,
    deps: SurgeonDependencies = Depends(get_surgeon_deps),
) -> dict[str, Any]:
    """Remove a section with its subsections."""
    result = await commands.remove(deps, path, section_id)
    return result.to_json_dict()


@router.post("/append")
async def post_append(
    request: AppendRequest,
    deps: SurgeonDependencies = Depends(get_surgeon_deps),
) -> dict[str, Any]:
    """Insert content relative to a section or the whole file."""
    result = await commands.append(
        deps, request.path, request.section_id, request.content, request.deep, request.before
    )
    return result.to_json_dict()


@router.get("/search")
async def get_search(
    path: str,
    pattern: str = Query(..., min_length=1),
    summary: bool = False,
    deps: SurgeonDependencies = Depends(get_surgeon_deps),
) -> list[dict[str, Any]]:
    """Search a file for a literal pattern."""
    results = await commands.search(deps, path, pattern)
    items = results.summaries if summary else results.matches
    return [item.to_json_dict() for item in items]


# =============================================================================
# Frontmatter
# =============================================================================


@router.get("/meta")
async def get_meta(
    path: str,
    key: str | None = None,
    deps: SurgeonDependencies = Depends(get_surgeon_deps),
) -> dict[str, Any]:
    """Read one frontmatter key, or the raw block when no key is given."""
    result = await commands.meta_get(deps, path, key)
    return result.model_dump(mode="json")


@router.put("/meta")
async def put_meta(
    request: MetaSetRequest,
    deps: SurgeonDependencies = Depends(get_surgeon_deps),
) -> dict[str, str]:
    """Set a frontmatter key."""
    message = await commands.meta_set(deps, request.path, request.key, request.value)
    return {"message": message}


@router.delete("/meta")
async def delete_meta(
    path: str,
    key: str,
    deps: SurgeonDependencies = Depends(get_surgeon_deps),
) -> dict[str, str]:
    """Delete a frontmatter key."""
    message = await commands.meta_delete(deps, path, key)
    return {"message": message}
