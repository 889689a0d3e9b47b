"""Shared pytest fixtures."""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load environment variables before importing package modules
load_dotenv()

# Set test defaults if not provided
if not os.environ.get("MD_ROOT_PATH"):
    os.environ["MD_ROOT_PATH"] = "/tmp/md-surgeon-test"

from fastapi.testclient import TestClient  # noqa: E402

from mdsurgeon.commands import SurgeonDependencies  # noqa: E402
from mdsurgeon.config import get_settings  # noqa: E402
from mdsurgeon.dependencies import FileStore, get_document_store  # noqa: E402
from mdsurgeon.main import app  # noqa: E402

SAMPLE_NOTE = """---
title: Sample
tags: [alpha, beta]
---

# Sample

Intro paragraph.

## Tasks

- [ ] first
- [x] second

### Details

Nested body.

## Notes

Closing thoughts.
"""


@pytest.fixture
def docs_root(tmp_path: Path) -> Path:
    """Create a temporary directory holding one sample note."""
    root = tmp_path / "docs"
    root.mkdir()
    (root / "note.md").write_text(SAMPLE_NOTE)
    return root


@pytest.fixture
def store(docs_root: Path) -> FileStore:
    """Create a FileStore rooted at the temporary directory."""
    return FileStore(root_path=docs_root)


@pytest.fixture
def deps(store: FileStore) -> SurgeonDependencies:
    """Create command dependencies backed by the temporary store."""
    return SurgeonDependencies(store=store)


@pytest.fixture
def client(docs_root: Path):
    """Create a FastAPI test client whose store is confined to the temporary directory."""

    async def _store():
        yield FileStore(root_path=docs_root, confine=True)

    app.dependency_overrides[get_document_store] = _store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def cli_root(docs_root: Path, monkeypatch: pytest.MonkeyPatch):
    """Point the CLI settings at the temporary directory."""
    monkeypatch.setenv("MD_ROOT_PATH", str(docs_root))
    get_settings.cache_clear()
    yield docs_root
    get_settings.cache_clear()
