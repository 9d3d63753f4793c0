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
"""Transport implementations module wrapping Unix stream sockets."""

from __future__ import annotations

__all__ = [
    "UnixStreamConnection",
    "UnixStreamListener",
    "connect_unix_stream",
]

import contextlib
import errno as _errno
import os
import selectors
import socket
import threading
import warnings
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING

from ...exceptions import AcceptError, ConnectionClosedError, ListenerClosedError
from .. import _unix_utils, _utils, constants
from .._wakeup_socketpair import WakeupSocketPair
from ..socket import UnixSocketAddress
from . import base_selector

if TYPE_CHECKING:
    from _typeshed import WriteableBuffer


def _close_stream_socket(sock: socket.socket) -> None:
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass
    finally:
        sock.close()


class UnixStreamConnection(base_selector.SelectorBaseTransport):
    """
    A bidirectional byte stream over a connected :data:`~socket.AF_UNIX` :data:`~socket.SOCK_STREAM` socket,
    with independent read and write deadlines.

    A deadline is an absolute :func:`time.monotonic` time. Once it has elapsed, every read (resp. write)
    fails with :exc:`.DeadlineExceededError` without blocking, until a new deadline is set.
    """

    __slots__ = ("__socket", "__read_deadline", "__write_deadline")

    def __init__(
        self,
        sock: socket.socket,
        retry_interval: float = constants.DEFAULT_RETRY_INTERVAL,
        *,
        selector_factory: Callable[[], selectors.BaseSelector] | None = None,
    ) -> None:
        """
        Parameters:
            sock: The connected Unix stream socket to wrap.
            retry_interval: The maximum wait time to wait for a blocking operation before retrying.
                            Set it to :data:`math.inf` to disable this feature.
            selector_factory: If given, the callable object to use to create a new :class:`selectors.BaseSelector` instance.
        """
        super().__init__(retry_interval=retry_interval, selector_factory=selector_factory)

        _unix_utils.check_unix_socket_family(sock.family)
        if sock.type != socket.SOCK_STREAM:
            raise ValueError("A 'SOCK_STREAM' socket is expected")
        self.__socket: socket.socket = sock
        self.__socket.setblocking(False)
        self.__read_deadline: float | None = None
        self.__write_deadline: float | None = None

    def __del__(self, *, _warn: _utils.WarnCallback = warnings.warn) -> None:
        try:
            sock: socket.socket = self.__socket
        except AttributeError:
            return
        if sock.fileno() >= 0:
            _warn(f"unclosed connection {self!r}", ResourceWarning, source=self)
            sock.close()

    def __repr__(self) -> str:
        try:
            return f"<{self.__class__.__name__} fd={self.__socket.fileno()}>"
        except AttributeError:
            return f"<{self.__class__.__name__} (partially initialized)>"

    def is_closed(self) -> bool:
        return self.__socket.fileno() < 0

    def close(self) -> None:
        _close_stream_socket(self.__socket)

    def fileno(self) -> int:
        """
        Returns the socket's file descriptor, or ``-1`` if the connection is closed.
        """
        return self.__socket.fileno()

    @property
    def read_deadline(self) -> float | None:
        """The current read deadline. Read-only attribute."""
        return self.__read_deadline

    @property
    def write_deadline(self) -> float | None:
        """The current write deadline. Read-only attribute."""
        return self.__write_deadline

    def set_read_deadline(self, deadline: float | None) -> None:
        """
        Sets the deadline for future read calls.

        Parameters:
            deadline: an absolute :func:`time.monotonic` time, or :data:`None` to wait forever.
        """
        self.__read_deadline = _utils.validate_optional_deadline(deadline)

    def set_write_deadline(self, deadline: float | None) -> None:
        """
        Sets the deadline for future write calls.

        Parameters:
            deadline: an absolute :func:`time.monotonic` time, or :data:`None` to wait forever.
        """
        self.__write_deadline = _utils.validate_optional_deadline(deadline)

    def recv_into(self, buffer: WriteableBuffer) -> int:
        """
        Read into the given `buffer`, waiting until the read deadline for data to be available.

        Raises:
            ConnectionClosedError: the connection is closed.
            DeadlineExceededError: the read deadline has elapsed.
            OSError: unrelated OS error occurred.

        Returns:
            the number of bytes written. Returning ``0`` for a non-zero buffer indicates an EOF.
        """
        with self.__convert_socket_error():
            return self._retry(lambda: self.__recv_noblock_into(buffer), self.__read_deadline, "read")
        raise AssertionError("Expected code to be unreachable.")

    def send(self, data: bytes | bytearray | memoryview) -> int:
        """
        Send the `data` bytes with a single ``send(2)`` call, waiting until the write deadline for the socket
        to be writable.

        The returned value may be less than ``len(data)``; checking it is the caller's job.

        Raises:
            ConnectionClosedError: the connection is closed.
            DeadlineExceededError: the write deadline has elapsed.
            OSError: unrelated OS error occurred.

        Returns:
            the number of bytes sent.
        """
        with self.__convert_socket_error():
            return self._retry(lambda: self.__send_noblock(data), self.__write_deadline, "write")
        raise AssertionError("Expected code to be unreachable.")

    def get_local_name(self) -> UnixSocketAddress:
        with self.__convert_socket_error():
            return UnixSocketAddress.from_raw(self.__socket.getsockname())
        raise AssertionError("Expected code to be unreachable.")

    def get_peer_name(self) -> UnixSocketAddress:
        with self.__convert_socket_error():
            return UnixSocketAddress.from_raw(self.__socket.getpeername())
        raise AssertionError("Expected code to be unreachable.")

    def __recv_noblock_into(self, buffer: WriteableBuffer) -> int:
        try:
            return self.__socket.recv_into(buffer)
        except (BlockingIOError, InterruptedError):
            raise base_selector.WouldBlockOnRead(self.__socket.fileno()) from None

    def __send_noblock(self, data: bytes | bytearray | memoryview) -> int:
        try:
            return self.__socket.send(data)
        except (BlockingIOError, InterruptedError):
            raise base_selector.WouldBlockOnWrite(self.__socket.fileno()) from None

    @contextlib.contextmanager
    def __convert_socket_error(self) -> Iterator[None]:
        if self.is_closed():
            raise ConnectionClosedError("Closed connection")
        try:
            yield
        except OSError as exc:
            if exc.errno in constants.CLOSED_SOCKET_ERRNOS and self.is_closed():
                # close() called while another thread was waiting...
                raise ConnectionClosedError("Closed connection") from exc
            raise


class UnixStreamListener(base_selector.SelectorBaseTransport):
    """
    A listener of :data:`~socket.AF_UNIX` :data:`~socket.SOCK_STREAM` connections.

    :meth:`accept` has no deadline: it blocks until a client connects or the listener is closed.
    The socket file bound by the wrapped socket is removed when the listener is closed.
    """

    __slots__ = ("__socket", "__path", "__path_inode", "__lock", "__closing", "__wakeup")

    def __init__(
        self,
        sock: socket.socket,
        retry_interval: float = constants.DEFAULT_RETRY_INTERVAL,
        *,
        selector_factory: Callable[[], selectors.BaseSelector] | None = None,
    ) -> None:
        """
        Parameters:
            sock: The bound and listening Unix stream socket to wrap.
            retry_interval: The maximum wait time to wait for a blocking operation before retrying.
            selector_factory: If given, the callable object to use to create a new :class:`selectors.BaseSelector` instance.
        """
        super().__init__(retry_interval=retry_interval, selector_factory=selector_factory)

        _unix_utils.check_unix_socket_family(sock.family)
        if sock.type != socket.SOCK_STREAM:
            raise ValueError("A 'SOCK_STREAM' socket is expected")

        self.__path: str | None = None
        self.__path_inode: int | None = None
        pathname = UnixSocketAddress.from_raw(sock.getsockname()).as_pathname()
        if pathname is not None:
            self.__path = os.fspath(pathname)
            self.__path_inode = os.stat(self.__path).st_ino

        self.__lock = threading.Lock()
        self.__closing: bool = False
        self.__wakeup = WakeupSocketPair()
        self.__socket: socket.socket = sock
        self.__socket.setblocking(False)

    def __del__(self, *, _warn: _utils.WarnCallback = warnings.warn) -> None:
        try:
            sock: socket.socket = self.__socket
        except AttributeError:
            return
        if sock.fileno() >= 0:
            _warn(f"unclosed listener {self!r}", ResourceWarning, source=self)
            sock.close()
            self.__wakeup.close()

    def __repr__(self) -> str:
        try:
            return f"<{self.__class__.__name__} path={self.__path!r} fd={self.__socket.fileno()}>"
        except AttributeError:
            return f"<{self.__class__.__name__} (partially initialized)>"

    def is_closed(self) -> bool:
        return self.__closing

    def close(self) -> None:
        """
        Closes the listener and removes its socket file. Thread-safe.

        A thread blocked in :meth:`accept` is woken up and gets a :exc:`.ListenerClosedError`.

        Can be safely called multiple times.
        """
        with self.__lock:
            if self.__closing:
                return
            self.__closing = True
            self.__wakeup.wakeup_thread_and_signal_safe()
            try:
                self.__socket.close()
            finally:
                self.__wakeup.close()
                self.__unlink_socket_file()

    def accept(self) -> UnixStreamConnection:
        """
        Waits for a new connection. Thread-safe.

        Raises:
            ListenerClosedError: the listener is closed, or has been closed while waiting.
            AcceptError: ``accept(2)`` failed.

        Returns:
            the accepted connection.
        """
        while True:
            with self.__lock:
                if self.__closing:
                    raise ListenerClosedError(_errno.EBADF, "Closed listener")
                connection = self.__accept_noblock()
                if connection is not None:
                    return connection
                selector = self._selector_factory()
                try:
                    selector.register(self.__socket.fileno(), selectors.EVENT_READ)
                    selector.register(self.__wakeup.fileno(), selectors.EVENT_READ)
                except BaseException:
                    selector.close()
                    raise
            with selector:
                selector.select(self._retry_interval)

    def accept_nowait(self) -> UnixStreamConnection | None:
        """
        Accepts a pending connection without blocking. Thread-safe.

        Raises:
            ListenerClosedError: the listener is closed.
            AcceptError: ``accept(2)`` failed.

        Returns:
            the accepted connection, or :data:`None` if there is no pending connection.
        """
        with self.__lock:
            if self.__closing:
                raise ListenerClosedError(_errno.EBADF, "Closed listener")
            return self.__accept_noblock()

    def drain_backlog(self) -> int:
        """
        Accepts and immediately closes every pending connection.

        Returns:
            the number of discarded connections.
        """
        discarded: int = 0
        while (connection := self.accept_nowait()) is not None:
            connection.close()
            discarded += 1
        return discarded

    def get_local_name(self) -> UnixSocketAddress:
        if self.__closing:
            raise ListenerClosedError(_errno.EBADF, "Closed listener")
        return UnixSocketAddress.from_raw(self.__socket.getsockname())

    def __accept_noblock(self) -> UnixStreamConnection | None:
        try:
            client_sock, _ = self.__socket.accept()
        except (BlockingIOError, InterruptedError):
            return None
        except OSError as exc:
            raise AcceptError(exc.errno, f"accept() failed: {exc.strerror}") from exc
        try:
            return UnixStreamConnection(client_sock, self._retry_interval, selector_factory=self._selector_factory)
        except BaseException:
            client_sock.close()
            raise

    def __unlink_socket_file(self) -> None:
        path = self.__path
        if path is None:
            return
        self.__path = None
        try:
            if os.stat(path).st_ino != self.__path_inode:
                # Someone else replaced the file.
                return
            os.remove(path)
        except FileNotFoundError:
            pass


def connect_unix_stream(
    path: str | os.PathLike[str] | UnixSocketAddress,
    *,
    retry_interval: float = constants.DEFAULT_RETRY_INTERVAL,
    selector_factory: Callable[[], selectors.BaseSelector] | None = None,
) -> UnixStreamConnection:
    """
    Opens a connection to the Unix stream socket bound at `path`.

    Parameters:
        path: Path of the socket.
        retry_interval: See :class:`UnixStreamConnection`.
        selector_factory: See :class:`UnixStreamConnection`.

    Raises:
        OSError: the connection failed (e.g. :exc:`FileNotFoundError` if nothing is bound at `path`,
                 :exc:`ConnectionRefusedError` if nobody listens on it).

    Returns:
        the connection.
    """
    path = _unix_utils.convert_unix_socket_address(path)
    family: int = getattr(socket, "AF_UNIX")
    sock = socket.socket(family, socket.SOCK_STREAM, 0)
    try:
        sock.connect(path)
        _utils.check_socket_is_connected(sock)
        return UnixStreamConnection(sock, retry_interval, selector_factory=selector_factory)
    except BaseException:
        sock.close()
        raise
