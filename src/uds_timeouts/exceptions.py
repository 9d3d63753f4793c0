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
"""Exceptions definition module.

Here are all the exception classes defined and used by the experiment.
"""

from __future__ import annotations

__all__ = [
    "AcceptError",
    "AllocationError",
    "CloseError",
    "ConnectError",
    "ConnectionClosedError",
    "DeadlineExceededError",
    "ListenerClosedError",
    "ShortWriteError",
]

import errno as _errno
import os


class AllocationError(OSError):
    """Error raised when a unique socket address could not be provisioned."""


class ConnectError(ConnectionError):
    """Error raised when all the connection attempts failed."""

    def __init__(self, message: str, attempts: int) -> None:
        """
        Parameters:
            message: Error message.
            attempts: Number of failed connection attempts.
        """

        super().__init__(message)

        self.attempts: int = attempts
        """Number of failed connection attempts."""


class DeadlineExceededError(TimeoutError):
    """Error raised when a read or write deadline has elapsed."""

    def __init__(self, operation: str) -> None:
        """
        Parameters:
            operation: The name of the timed out operation (e.g. ``"read"``).
        """

        super().__init__(_errno.ETIMEDOUT, f"{operation} deadline exceeded: {os.strerror(_errno.ETIMEDOUT)}")

        self.operation: str = operation
        """The name of the timed out operation."""


class ShortWriteError(OSError):
    """Error raised when a write operation did not send the whole message."""

    def __init__(self, expected: int, written: int) -> None:
        """
        Parameters:
            expected: The message length.
            written: The number of bytes actually written.
        """

        super().__init__(f"Supposed to write {expected} bytes, but wrote {written}")

        self.expected: int = expected
        """The message length."""

        self.written: int = written
        """The number of bytes actually written."""


class AcceptError(OSError):
    """Error raised when the listener failed to accept a new connection."""


class ListenerClosedError(AcceptError):
    """Error raised when trying to accept on a closed listener, or when the listener is closed during accept."""


class CloseError(OSError):
    """Error raised when a connection or a listener could not be released.

    This error is logged and never propagated by the experiment.
    """


class ConnectionClosedError(ConnectionError):
    """Error raised when trying to do an operation on a closed connection."""
