# Copyright 2021-2025, Francis Clairicia-Rose-Claire-Josephine
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
#
"""Experiment configuration module."""

from __future__ import annotations

__all__ = ["DEFAULT_CONFIG", "ExperimentConfig"]

import dataclasses
from typing import Final

from .lowlevel import _utils, constants


@dataclasses.dataclass(kw_only=True, frozen=True, slots=True)
class ExperimentConfig:
    """
    Timing and payload settings of the experiment. Every component receives it explicitly.

    Delays are in seconds.
    """

    connect_retries: int = constants.CONNECT_RETRIES
    """Number of connection attempts done by the client."""

    client_retry_wait: float = constants.CLIENT_RETRY_WAIT
    """Time to wait between two connection attempts."""

    client_connect_deadline: float = constants.CLIENT_CONNECT_DEADLINE
    """Delay given to each client read and write operation."""

    server_connect_deadline: float = constants.SERVER_CONNECT_DEADLINE
    """Delay given to each server read and write operation."""

    response_read_attempts: int = constants.RESPONSE_READ_ATTEMPTS
    """Number of reads attempted by the client while waiting for the response."""

    recv_bufsize: int = constants.RECV_BUFSIZE
    """Size of the read buffers."""

    greeting: bytes = constants.GREETING_MESSAGE
    """Message sent by the client."""

    response: bytes = constants.RESPONSE_MESSAGE
    """Message sent back by the server."""

    def __post_init__(self) -> None:
        if self.connect_retries < 1:
            raise ValueError("connect_retries must be a strictly positive integer")
        if self.response_read_attempts < 1:
            raise ValueError("response_read_attempts must be a strictly positive integer")
        if self.recv_bufsize < 1:
            raise ValueError("recv_bufsize must be a strictly positive integer")
        for field in ("client_retry_wait", "client_connect_deadline", "server_connect_deadline"):
            object.__setattr__(self, field, _utils.validate_timeout_delay(getattr(self, field), positive_check=True))
        for field in ("greeting", "response"):
            message = getattr(self, field)
            if not isinstance(message, bytes):
                raise TypeError(f"{field} must be a bytes object, got {message!r}")
            if not message:
                raise ValueError(f"{field} must not be empty")
            if len(message) > self.recv_bufsize:
                raise ValueError(f"{field} does not fit in a {self.recv_bufsize}-byte read buffer")

    def max_client_run_time(self) -> float:
        """
        The upper bound of a client run duration: every connect attempt with its wait,
        then every response read attempt.
        """
        return (
            self.connect_retries * (self.client_retry_wait + self.client_connect_deadline)
            + self.client_connect_deadline * self.response_read_attempts
        )


DEFAULT_CONFIG: Final[ExperimentConfig] = ExperimentConfig()
