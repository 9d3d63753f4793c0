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
from __future__ import annotations

__all__ = [
    "ElapsedTime",
    "WarnCallback",
    "check_socket_is_connected",
    "convert_socket_bind_error",
    "deadline_after",
    "error_from_errno",
    "is_socket_connected",
    "remaining_time",
    "validate_optional_deadline",
    "validate_timeout_delay",
]

import errno as _errno
import math
import os
import socket as _socket
import time
from abc import abstractmethod
from collections.abc import Callable
from typing import Any, Protocol, Self, overload

from . import constants


def error_from_errno(errno: int, msg: str = "{strerror}") -> OSError:
    return OSError(errno, msg.format(strerror=os.strerror(errno)))


def validate_timeout_delay(delay: float, *, positive_check: bool) -> float:
    if math.isnan(delay):
        raise ValueError("Invalid delay: NaN (not a number)")
    if positive_check and delay < 0.0:
        raise ValueError("Invalid delay: negative value")
    return float(delay)


def validate_optional_deadline(deadline: float | None) -> float | None:
    if deadline is None:
        return None
    if math.isnan(deadline):
        raise ValueError("Invalid deadline: NaN (not a number)")
    return float(deadline)


def deadline_after(delay: float) -> float:
    """Returns the absolute :func:`time.monotonic` time `delay` seconds from now."""
    delay = validate_timeout_delay(delay, positive_check=True)
    return time.monotonic() + delay


def remaining_time(deadline: float | None) -> float:
    if deadline is None:
        return math.inf
    return max(deadline - time.monotonic(), 0.0)


def is_socket_connected(sock: _socket.socket) -> bool:
    try:
        sock.getpeername()
    except OSError as exc:
        if exc.errno not in constants.NOT_CONNECTED_SOCKET_ERRNOS:
            raise
        connected = False
    else:
        connected = True
    return connected


def check_socket_is_connected(sock: _socket.socket) -> None:
    if not is_socket_connected(sock):
        raise error_from_errno(_errno.ENOTCONN)


def convert_socket_bind_error(exc: OSError, addr: Any) -> OSError:
    if exc.errno:
        msg = f"error while attempting to bind on address {addr!r}: {exc.strerror}"
        return OSError(exc.errno, msg).with_traceback(exc.__traceback__)
    else:
        msg = f"error while attempting to bind on address {addr!r}: {exc}"
        return OSError(_errno.EINVAL, msg).with_traceback(exc.__traceback__)


class WarnCallback(Protocol):
    @overload
    @abstractmethod
    def __call__(
        self,
        /,
        message: str,
        category: type[Warning] | None = None,
        stacklevel: int = 1,
        source: Any | None = None,
    ) -> None: ...

    @overload
    @abstractmethod
    def __call__(
        self,
        /,
        message: Warning,
        category: Any = None,
        stacklevel: int = 1,
        source: Any | None = None,
    ) -> None: ...


class ElapsedTime:
    __slots__ = ("_current_time_func", "_start_time", "_end_time")

    def __init__(self) -> None:
        self._current_time_func: Callable[[], float] = time.perf_counter
        self._start_time: float | None = None
        self._end_time: float | None = None

    def __enter__(self) -> Self:
        if self._start_time is not None:
            raise RuntimeError("Already entered")
        self._start_time = self._current_time_func()
        return self

    def __exit__(self, *args: Any) -> None:
        end_time = self._current_time_func()
        if self._end_time is not None:
            raise RuntimeError("Already exited")
        self._end_time = end_time

    def get_elapsed(self) -> float:
        start_time = self._start_time
        if start_time is None:
            raise RuntimeError("Not entered")
        end_time = self._end_time
        if end_time is None:
            raise RuntimeError("Within context")
        return end_time - start_time
