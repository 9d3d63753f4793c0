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
"""uds-timeouts's constants module."""

from __future__ import annotations

__all__ = [
    "CLIENT_CONNECT_DEADLINE",
    "CLIENT_RETRY_WAIT",
    "CLOSED_SOCKET_ERRNOS",
    "CONNECT_RETRIES",
    "DEFAULT_RETRY_INTERVAL",
    "GREETING_MESSAGE",
    "NOT_CONNECTED_SOCKET_ERRNOS",
    "RECV_BUFSIZE",
    "RESPONSE_MESSAGE",
    "RESPONSE_READ_ATTEMPTS",
    "SERVER_CONNECT_DEADLINE",
    "SOCKET_PATH_PREFIX",
]

import errno as _errno
from typing import Final

# Number of connection attempts done by a client
CONNECT_RETRIES: Final[int] = 3

# Wait between two connection attempts of a client
CLIENT_RETRY_WAIT: Final[float] = 1.0

# Read/write deadlines (in seconds from the operation start)
CLIENT_CONNECT_DEADLINE: Final[float] = 3.0
SERVER_CONNECT_DEADLINE: Final[float] = 3.0

# Number of reads attempted by the client while waiting for the response
RESPONSE_READ_ATTEMPTS: Final[int] = 3

# Buffer size for a recv(2) operation
RECV_BUFSIZE: Final[int] = 50

GREETING_MESSAGE: Final[bytes] = b"Hello!"
RESPONSE_MESSAGE: Final[bytes] = b"Hey there!"

# Prefix of the temporary file used to derive a socket path
SOCKET_PATH_PREFIX: Final[str] = "unix-domain-sock-timeouts-"

# Maximum time spent in a single select() call before checking the socket state again
DEFAULT_RETRY_INTERVAL: Final[float] = 1.0

# Errors that socket operations can return if the socket is closed
CLOSED_SOCKET_ERRNOS: Final[frozenset[int]] = frozenset(
    {
        # Unix
        _errno.EBADF,
        # Windows
        _errno.ENOTSOCK,
    }
)

# Errors that socket operations can return if the socket is not connected
NOT_CONNECTED_SOCKET_ERRNOS: Final[frozenset[int]] = frozenset(
    {
        # Most of the operating systems
        _errno.ENOTCONN,
        # macOS
        _errno.EINVAL,
    }
)
