"""FastAPI application entry point."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mdsurgeon.api.router import router as sections_router
from mdsurgeon.api.router import surgeon_error_handler
from mdsurgeon.config import get_settings
from mdsurgeon.dependencies import SurgeonError, logger

settings = get_settings()

app = FastAPI(title="Markdown Surgeon", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(SurgeonError, surgeon_error_handler)
app.include_router(sections_router)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": "0.1.0",
        "root_path": str(get_settings().root_path),
    }


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {"name": "Markdown Surgeon", "version": "0.1.0", "docs": "/docs"}


logger.info("app_startup", extra={"host": settings.host, "port": settings.port})
