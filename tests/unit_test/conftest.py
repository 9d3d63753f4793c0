from __future__ import annotations

from typing import TYPE_CHECKING

from uds_timeouts.config import ExperimentConfig
from uds_timeouts.lowlevel.transports.socket import UnixStreamConnection, UnixStreamListener

import pytest

if TYPE_CHECKING:
    from unittest.mock import MagicMock

    from pytest_mock import MockerFixture


@pytest.fixture
def config() -> ExperimentConfig:
    return ExperimentConfig(
        connect_retries=3,
        client_retry_wait=0.5,
        client_connect_deadline=2.0,
        server_connect_deadline=2.0,
    )


@pytest.fixture
def mock_connection(mocker: MockerFixture) -> MagicMock:
    mock_connection = mocker.NonCallableMagicMock(spec=UnixStreamConnection)
    mock_connection.send.side_effect = lambda data: len(data)
    mock_connection.is_closed.return_value = False
    return mock_connection


@pytest.fixture
def mock_listener(mocker: MockerFixture) -> MagicMock:
    mock_listener = mocker.NonCallableMagicMock(spec=UnixStreamListener)
    mock_listener.is_closed.return_value = False
    return mock_listener


@pytest.fixture
def mock_time_sleep(mocker: MockerFixture) -> MagicMock:
    return mocker.patch("time.sleep", autospec=True, return_value=None)
