from __future__ import annotations

from uds_timeouts.config import ExperimentConfig

import pytest


@pytest.fixture
def fast_config() -> ExperimentConfig:
    return ExperimentConfig(
        connect_retries=3,
        client_retry_wait=0.1,
        client_connect_deadline=0.3,
        server_connect_deadline=0.3,
    )
