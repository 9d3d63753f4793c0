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
"""Socket address module."""

from __future__ import annotations

__all__ = ["UnixSocketAddress"]

import os
import pathlib
from typing import Any, Self


class UnixSocketAddress:
    """
    An address associated with a Unix socket.

    Only ``pathname`` and ``unnamed`` addresses are used by the experiment.
    """

    __slots__ = ("__addr",)

    def __init__(self) -> None:
        """
        Constructs an unnamed socket address::

            >>> addr = UnixSocketAddress()
            >>> addr
            UnixSocketAddress(<unnamed>)
            >>> addr.is_unnamed()
            True
        """
        self.__addr: str | None = None

    @classmethod
    def from_pathname(cls, path: str | os.PathLike[str]) -> Self:
        """
        Constructs a :class:`UnixSocketAddress` with the provided path.

        Examples:

            >>> addr = UnixSocketAddress.from_pathname("/path/to/socket")
            >>> addr
            UnixSocketAddress('/path/to/socket' <pathname>)
            >>> addr.as_pathname()
            PosixPath('/path/to/socket')

            Creating a :class:`UnixSocketAddress` with a NULL byte results in an error.

            >>> addr = UnixSocketAddress.from_pathname("/path/with/\\0/bytes")
            Traceback (most recent call last):
            ...
            ValueError: paths must not contain interior null bytes
        """
        path = os.fspath(path)
        if not isinstance(path, str):
            raise TypeError(f"Expected a str object or an os.PathLike object, got {path!r}")
        return cls.__from_pathname_unchecked(path)

    @classmethod
    def __from_pathname_unchecked(cls, path: str) -> Self:
        if "\0" in path:
            raise ValueError("paths must not contain interior null bytes")
        self = cls()
        self.__addr = path or None
        return self

    @classmethod
    def from_raw(cls, addr: Any) -> Self:
        """
        Constructs a :class:`UnixSocketAddress` from the raw `addr` supplied by the :class:`~socket.socket`
        (e.g. the result of :meth:`socket.socket.getsockname` or :meth:`socket.socket.getpeername`).
        """
        match addr:
            case str():
                return cls.__from_pathname_unchecked(addr)
            case bytes():
                return cls.__from_pathname_unchecked(os.fsdecode(addr))
            case _:
                raise TypeError(f"Cannot convert {addr!r} to a {cls.__name__}")

    def __repr__(self) -> str:
        match self.__addr:
            case str(addr):
                return f"{self.__class__.__name__}({addr!r} <pathname>)"
            case _:
                return f"{self.__class__.__name__}(<unnamed>)"

    def __str__(self) -> str:
        match self.__addr:
            case str(addr):
                return addr
            case _:
                return "(unnamed)"

    def __hash__(self) -> int:
        return hash(self.__addr)

    def __eq__(self, other: object) -> bool:
        match other:
            case UnixSocketAddress():
                return self.__addr == other.__addr
            case _:
                return NotImplemented

    def is_unnamed(self) -> bool:
        """
        Returns :data:`True` if the address is ``unnamed``.

        The client side of a connected Unix stream socket usually has an unnamed address.
        """
        return self.__addr is None

    def as_pathname(self) -> pathlib.Path | None:
        """
        Returns the contents of this address if it is a ``pathname`` address.

        Examples:

            >>> UnixSocketAddress.from_pathname("/tmp/sock").as_pathname()
            PosixPath('/tmp/sock')
            >>> print(UnixSocketAddress().as_pathname())
            None
        """
        match self.__addr:
            case str(addr):
                return pathlib.Path(addr)
            case _:
                return None
