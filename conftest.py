"""
Repository-level pytest configuration.

Why this exists:
  - Provide safe defaults for local and CI runs (headless browser, verbose logs)
  - Initialize the loguru logger once per session
  - Keep behavior explicit and discoverable

Values set here are defaults only; anything already exported in the
environment wins.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest

from stepchain.common import init_logger


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _safe_env_defaults() -> Generator[None, None, None]:
    """
    Set environment defaults if not already provided by the user/CI.

    Keeps local runs predictable: no visible browser windows, debug logs.
    """
    defaults = {
        "BROWSER_HEADLESS": "true",
        "LOGGING_LEVEL": "DEBUG",
    }

    for k, v in defaults.items():
        os.environ.setdefault(k, v)

    init_logger(force=True)

    yield
