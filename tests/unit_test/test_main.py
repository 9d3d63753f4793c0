from __future__ import annotations

import errno
import logging
from typing import TYPE_CHECKING

from uds_timeouts.__main__ import main
from uds_timeouts.config import ExperimentConfig
from uds_timeouts.exceptions import AllocationError

import pytest

if TYPE_CHECKING:
    from unittest.mock import MagicMock

    from pytest_mock import MockerFixture


@pytest.fixture(autouse=True)
def mock_logging_basicConfig(mocker: MockerFixture) -> MagicMock:
    return mocker.patch("logging.basicConfig", autospec=True)


@pytest.fixture
def mock_run_experiment(mocker: MockerFixture) -> MagicMock:
    return mocker.patch("uds_timeouts.__main__.run_experiment", autospec=True)


def test____main____default_arguments(
    mock_run_experiment: MagicMock,
    mock_logging_basicConfig: MagicMock,
    mocker: MockerFixture,
) -> None:
    # Arrange

    # Act
    exit_code = main([])

    # Assert
    assert exit_code == 0
    mock_run_experiment.assert_called_once_with(ExperimentConfig(), socket_dir=None)
    mock_logging_basicConfig.assert_called_once_with(level=logging.INFO, format=mocker.ANY)


def test____main____custom_arguments(
    mock_run_experiment: MagicMock,
    mock_logging_basicConfig: MagicMock,
    mocker: MockerFixture,
) -> None:
    # Arrange
    argv = [
        "-v",
        "--connect-retries",
        "5",
        "--retry-wait",
        "0.2",
        "--client-deadline",
        "0.5",
        "--server-deadline",
        "0.7",
        "--socket-dir",
        "/run/sockets",
    ]

    # Act
    exit_code = main(argv)

    # Assert
    assert exit_code == 0
    mock_run_experiment.assert_called_once_with(
        ExperimentConfig(
            connect_retries=5,
            client_retry_wait=0.2,
            client_connect_deadline=0.5,
            server_connect_deadline=0.7,
        ),
        socket_dir="/run/sockets",
    )
    mock_logging_basicConfig.assert_called_once_with(level=logging.DEBUG, format=mocker.ANY)


def test____main____aborted_run(
    mock_run_experiment: MagicMock,
    capsys: pytest.CaptureFixture[str],
) -> None:
    # Arrange
    mock_run_experiment.side_effect = AllocationError(errno.ENOSPC, "cannot create a temporary file: No space left on device")

    # Act
    exit_code = main([])

    # Assert
    assert exit_code == 1
    assert "cannot create a temporary file" in capsys.readouterr().err


def test____main____invalid_configuration(
    mock_run_experiment: MagicMock,
    capsys: pytest.CaptureFixture[str],
) -> None:
    # Arrange

    # Act & Assert
    with pytest.raises(SystemExit) as exc_info:
        main(["--connect-retries", "0"])

    # Assert
    assert exc_info.value.code == 2
    assert "connect_retries must be a strictly positive integer" in capsys.readouterr().err
    mock_run_experiment.assert_not_called()
