"""Shared dependencies: error hierarchy, DocumentStore and structured logger."""

import glob
import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from mdsurgeon.config import get_settings

# Attributes every LogRecord carries; anything else was passed through `extra`.
_RESERVED_RECORD_ATTRS = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {
    "message",
    "asctime",
}


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        data: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS:
                data[key] = value
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def setup_logging() -> logging.Logger:
    """Configure and return the application logger."""
    settings = get_settings()
    logger = logging.getLogger("mdsurgeon")
    logger.setLevel(getattr(logging, settings.log_level.upper()))
    logger.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger


logger = setup_logging()


# =============================================================================
# Errors
# =============================================================================


class SurgeonError(Exception):
    """Base exception for every failure surfaced to a caller.

    Attributes:
        code: Stable machine-readable error kind
        file: Path of the file involved, when known
        section_id: Section id involved, when known
    """

    code = "error"

    def __init__(self, message: str, file: str | None = None, section_id: str | None = None):
        super().__init__(message)
        self.message = message
        self.file = file
        self.section_id = section_id

    def format(self) -> str:
        """Render the two-line form written to stderr by the CLI."""
        return f"error: {self.code}\n{self.message}"


class FileNotFoundInStoreError(SurgeonError):
    """Raised when a target file does not exist."""

    code = "file_not_found"


class SectionNotFoundError(SurgeonError):
    """Raised when no section carries the requested id."""

    code = "section_not_found"


class KeyNotFoundError(SurgeonError):
    """Raised when a frontmatter key to delete does not exist."""

    code = "key_not_found"


class InvalidIdError(SurgeonError):
    """Raised when a supplied id does not have the shape of a section id."""

    code = "invalid_id"


class MalformedRequestError(SurgeonError):
    """Raised on conflicting flags or missing required values."""

    code = "parse_error"


class CodecError(SurgeonError):
    """Raised when frontmatter text cannot be decoded."""

    code = "codec_error"


class StoreIOError(SurgeonError):
    """Raised when reading or writing a file fails for a reason other than absence."""

    code = "io_error"


class StoreSecurityError(StoreIOError):
    """Raised when a path escapes the confined root."""

    pass


# =============================================================================
# Storage
# =============================================================================


class DocumentStore(Protocol):
    """Storage port used by the command layer."""

    async def read_file(self, path: str) -> str: ...

    async def write_file(self, path: str, content: str) -> None: ...

    async def file_exists(self, path: str) -> bool: ...

    async def glob(self, pattern: str) -> list[str]: ...


@dataclass
class FileStore:
    """DocumentStore backed by the local filesystem.

    Relative paths are resolved against ``root_path``. With ``confine`` set,
    any path resolving outside the root is rejected.
    """

    root_path: Path
    confine: bool = False

    def _resolve(self, path: str) -> Path:
        """Resolve a path against the root.

        Args:
            path: Absolute path or path relative to the root

        Returns:
            Resolved absolute path

        Raises:
            StoreSecurityError: If confined and the path escapes the root
        """
        full_path = (self.root_path / path).resolve()
        if self.confine and not full_path.is_relative_to(self.root_path.resolve()):
            raise StoreSecurityError(f"Path traversal detected: {path}", file=path)
        return full_path

    async def read_file(self, path: str) -> str:
        """Read a whole file as UTF-8 text.

        Raises:
            FileNotFoundInStoreError: If the file does not exist
            StoreIOError: If the file exists but cannot be read
        """
        full_path = self._resolve(path)
        try:
            with open(full_path, encoding="utf-8", newline="") as fh:
                return fh.read()
        except FileNotFoundError:
            raise FileNotFoundInStoreError(f"File not found: {path}", file=path)
        except (OSError, UnicodeDecodeError) as e:
            raise StoreIOError(f"Failed to read file: {path} ({e})", file=path)

    async def write_file(self, path: str, content: str) -> None:
        """Write text to a file, creating or overwriting it.

        Raises:
            StoreIOError: If the write fails
        """
        full_path = self._resolve(path)
        try:
            with open(full_path, "w", encoding="utf-8", newline="") as fh:
                fh.write(content)
        except OSError as e:
            raise StoreIOError(f"Failed to write file: {path} ({e})", file=path)

    async def file_exists(self, path: str) -> bool:
        """Check if a regular file exists at the path."""
        try:
            return self._resolve(path).is_file()
        except StoreSecurityError:
            return False

    async def glob(self, pattern: str) -> list[str]:
        """Expand a glob pattern into matching markdown files.

        Args:
            pattern: Glob pattern, ``**`` allowed, relative to the root or absolute

        Returns:
            Sorted list of matching ``.md`` file paths
        """
        base = pattern if Path(pattern).is_absolute() else str(self.root_path / pattern)
        matches = []
        for match in glob.glob(base, recursive=True):
            full_path = Path(match)
            if not full_path.is_file() or full_path.suffix != ".md":
                continue
            if self.confine and not full_path.resolve().is_relative_to(self.root_path.resolve()):
                continue
            matches.append(match)
        return sorted(matches)


async def get_document_store() -> AsyncIterator[FileStore]:
    """FastAPI dependency provider for a store confined to the configured root."""
    yield FileStore(root_path=get_settings().root_path, confine=True)
