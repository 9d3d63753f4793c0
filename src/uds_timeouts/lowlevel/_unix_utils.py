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
    "check_unix_socket_family",
    "convert_unix_socket_address",
    "is_unix_socket_family",
    "remove_stale_socket_file",
]

import contextlib
import os
import socket as _socket
import stat

from .socket import UnixSocketAddress


def is_unix_socket_family(family: int) -> bool:
    try:
        AF_UNIX: _socket.AddressFamily = _socket.AddressFamily["AF_UNIX"]
    except KeyError:
        return False
    return family == AF_UNIX


def check_unix_socket_family(family: int) -> None:
    if not is_unix_socket_family(family):
        raise ValueError("Only these families are supported: AF_UNIX")


def convert_unix_socket_address(path: str | os.PathLike[str] | UnixSocketAddress) -> str:
    if isinstance(path, str):
        path = UnixSocketAddress.from_raw(path)
    elif not isinstance(path, UnixSocketAddress):
        path = UnixSocketAddress.from_pathname(path)
    pathname = path.as_pathname()
    if pathname is None:
        raise ValueError(f"{path!r} is not a pathname address")
    return os.fspath(pathname)


def remove_stale_socket_file(path: str) -> bool:
    """Removes the socket file left at `path` by a previous listener. Other file types are kept."""
    try:
        if not stat.S_ISSOCK(os.stat(path).st_mode):
            return False
    except FileNotFoundError:
        return False
    with contextlib.suppress(FileNotFoundError):
        os.remove(path)
    return True
