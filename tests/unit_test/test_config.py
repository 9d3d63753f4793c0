from __future__ import annotations

import dataclasses
import math
from typing import Any

from uds_timeouts.config import DEFAULT_CONFIG, ExperimentConfig

import pytest


class TestExperimentConfig:
    def test____default____values(self) -> None:
        # Arrange

        # Act
        config = DEFAULT_CONFIG

        # Assert
        assert config.connect_retries == 3
        assert config.client_retry_wait == 1.0
        assert config.client_connect_deadline == 3.0
        assert config.server_connect_deadline == 3.0
        assert config.response_read_attempts == 3
        assert config.recv_bufsize == 50
        assert config.greeting == b"Hello!"
        assert config.response == b"Hey there!"

    def test____dunder_init____frozen(self) -> None:
        # Arrange
        config = ExperimentConfig()

        # Act & Assert
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.connect_retries = 12  # type: ignore[misc]

    def test____dunder_init____keyword_only(self) -> None:
        # Arrange

        # Act & Assert
        with pytest.raises(TypeError):
            ExperimentConfig(3)  # type: ignore[misc]

    def test____dunder_init____delays_converted_to_float(self) -> None:
        # Arrange

        # Act
        config = ExperimentConfig(client_retry_wait=2, client_connect_deadline=1, server_connect_deadline=0)

        # Assert
        assert type(config.client_retry_wait) is float
        assert type(config.client_connect_deadline) is float
        assert type(config.server_connect_deadline) is float

    @pytest.mark.parametrize(
        "kwargs",
        [
            pytest.param({"connect_retries": 0}, id="connect_retries"),
            pytest.param({"response_read_attempts": 0}, id="response_read_attempts"),
            pytest.param({"recv_bufsize": 0}, id="recv_bufsize"),
            pytest.param({"client_retry_wait": -1.0}, id="client_retry_wait"),
            pytest.param({"client_connect_deadline": math.nan}, id="client_connect_deadline"),
            pytest.param({"server_connect_deadline": -0.5}, id="server_connect_deadline"),
            pytest.param({"greeting": b""}, id="empty_greeting"),
            pytest.param({"response": b""}, id="empty_response"),
            pytest.param({"greeting": b"x" * 51}, id="greeting_too_long"),
            pytest.param({"recv_bufsize": 4}, id="response_does_not_fit"),
        ],
    )
    def test____dunder_init____invalid_value(self, kwargs: dict[str, Any]) -> None:
        # Arrange

        # Act & Assert
        with pytest.raises(ValueError):
            ExperimentConfig(**kwargs)

    def test____dunder_init____message_must_be_bytes(self) -> None:
        # Arrange

        # Act & Assert
        with pytest.raises(TypeError, match=r"^greeting must be a bytes object"):
            ExperimentConfig(greeting="Hello!")  # type: ignore[arg-type]

    def test____max_client_run_time____default(self) -> None:
        # Arrange

        # Act
        max_time = DEFAULT_CONFIG.max_client_run_time()

        # Assert
        assert max_time == pytest.approx(3 * (1.0 + 3.0) + 3.0 * 3)
