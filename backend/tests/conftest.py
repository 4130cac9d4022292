"""
Shared fixtures for the backend test suite.
"""

import os
import tempfile

# Point the public directory at a scratch location before the settings load
os.environ.setdefault("PUBLIC_DIR", tempfile.mkdtemp(prefix="picstore-public-"))

import pytest

from services.ingestion import ImageIngestionService, IngestionConfig


@pytest.fixture
def ingestion_service(tmp_path):
    """Ingestion service writing under a per-test public directory."""
    return ImageIngestionService(IngestionConfig(public_dir=tmp_path / "public"))


@pytest.fixture
def upload_dir(ingestion_service):
    return ingestion_service.storage.upload_dir


def stored_files(directory):
    """Names of the files currently in a directory (empty if it is missing)."""
    if not directory.exists():
        return []
    return sorted(p.name for p in directory.iterdir() if p.is_file())


@pytest.fixture
def list_files():
    return stored_files
