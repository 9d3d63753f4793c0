from __future__ import annotations

import os
import pathlib

from uds_timeouts.client import ClientState
from uds_timeouts.config import ExperimentConfig
from uds_timeouts.exceptions import ConnectError, DeadlineExceededError
from uds_timeouts.experiment import Phase, run_experiment

import pytest

from ..tools import TimeLimit


@pytest.mark.flaky(retries=3, delay=0.1)
def test____run_experiment____three_phases(
    tmp_path_factory: pytest.TempPathFactory,
    fast_config: ExperimentConfig,
    caplog: pytest.LogCaptureFixture,
) -> None:
    # Arrange
    socket_dir: pathlib.Path = tmp_path_factory.mktemp("exp")
    caplog.set_level("INFO", "uds_timeouts")

    # Act
    with TimeLimit(3 * fast_config.max_client_run_time()):
        report = run_experiment(fast_config, socket_dir=socket_dir)

    # Assert
    assert os.path.dirname(report.address) == os.fspath(socket_dir)
    assert not os.path.exists(report.address)

    dead_server = report.get(Phase.DEAD_SERVER)
    assert dead_server.server is None
    assert dead_server.client.connect_attempts == fast_config.connect_retries
    assert isinstance(dead_server.client.error, ConnectError)

    not_accepting = report.get(Phase.NOT_ACCEPTING)
    assert not_accepting.client.connect_attempts == 1
    assert not_accepting.client.state is ClientState.AWAITING_RESPONSE
    assert isinstance(not_accepting.client.error, DeadlineExceededError)

    full_exchange = report.get(Phase.FULL_EXCHANGE)
    assert full_exchange.server is not None
    assert full_exchange.server.greeting == b"Hello!"
    assert full_exchange.server.response_sent
    assert full_exchange.client.response == b"Hey there!"
    assert full_exchange.client.error is None

    assert all(phase_report.elapsed > 0 for phase_report in report.phases)
    assert "Using Unix domain socket" in caplog.text
    assert f"Listening on {report.address}" in caplog.text
    assert "Discarded 1 stale connection(s) from the listen backlog" in caplog.text
    assert "Shutting down server..." in caplog.text
