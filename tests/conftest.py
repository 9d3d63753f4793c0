from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest


def pytest_report_header(config: pytest.Config) -> list[str]:
    headers: list[str] = []
    addopts: str = os.environ.get("PYTEST_ADDOPTS", "")
    if addopts:
        headers.append(f"PYTEST_ADDOPTS: {addopts}")
    return headers


PYTEST_PLUGINS_PACKAGE = f"{__package__}.pytest_plugins"


pytest_plugins = [
    f"{PYTEST_PLUGINS_PACKAGE}.auto_markers",
    f"{PYTEST_PLUGINS_PACKAGE}.flaky_tests",
    f"{PYTEST_PLUGINS_PACKAGE}.unix_sockets",
]

if TYPE_CHECKING:
    # Import pytest plugins so Pylance can suggest defined fixtures

    from .pytest_plugins import (  # noqa: F401
        auto_markers as auto_markers,
        flaky_tests as flaky_tests,
        unix_sockets as unix_sockets,
    )
