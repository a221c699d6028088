from __future__ import annotations

import logging
from pathlib import Path

import pytest

from reverso.logging import reset_logging
from tests._fixtures.project_builder import ProjectBuilder


@pytest.fixture
def project_builder(tmp_path: Path) -> ProjectBuilder:
    """Provide a reusable project builder rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_reverso_logger():
    """Undo CLI logging configuration so caplog sees reverso records."""
    yield
    logger = logging.getLogger("reverso")
    reset_logging(logger)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
