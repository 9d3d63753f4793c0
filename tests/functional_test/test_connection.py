from __future__ import annotations

import os
import socket
import time
from collections.abc import Iterator

from uds_timeouts.exceptions import ConnectionClosedError, DeadlineExceededError
from uds_timeouts.lowlevel._utils import deadline_after
from uds_timeouts.lowlevel.transports.socket import UnixStreamConnection

import pytest

from ..tools import TimeLimit, TimeTest


def _recv(connection: UnixStreamConnection, bufsize: int = 50) -> bytes:
    buffer = bytearray(bufsize)
    nbytes = connection.recv_into(buffer)
    return bytes(buffer[:nbytes])


class TestUnixStreamConnection:
    @pytest.fixture
    @staticmethod
    def socket_pair() -> Iterator[tuple[socket.socket, socket.socket]]:
        left, right = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
        with left, right:
            yield left, right

    @pytest.fixture
    @staticmethod
    def connection(socket_pair: tuple[socket.socket, socket.socket]) -> Iterator[UnixStreamConnection]:
        with UnixStreamConnection(socket_pair[0], retry_interval=0.1) as connection:
            yield connection

    @pytest.fixture
    @staticmethod
    def peer(socket_pair: tuple[socket.socket, socket.socket]) -> socket.socket:
        peer = socket_pair[1]
        peer.settimeout(5)
        return peer

    def test____dunder_init____invalid_socket_family(self) -> None:
        # Arrange
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            # Act & Assert
            with pytest.raises(ValueError, match=r"^Only these families are supported: AF_UNIX$"):
                UnixStreamConnection(sock)

    def test____dunder_init____invalid_socket_type(self) -> None:
        # Arrange
        left, right = socket.socketpair(socket.AF_UNIX, socket.SOCK_DGRAM)
        with left, right:
            # Act & Assert
            with pytest.raises(ValueError, match=r"^A 'SOCK_STREAM' socket is expected$"):
                UnixStreamConnection(left)

    @pytest.mark.parametrize("greeting", [b"Hello!", b"x", b"\x00" * 50, os.urandom(37)], ids=lambda b: f"len=={len(b)}")
    def test____send____received_byte_exact(
        self,
        greeting: bytes,
        connection: UnixStreamConnection,
        peer: socket.socket,
    ) -> None:
        # Arrange
        connection.set_write_deadline(deadline_after(1))

        # Act
        nbytes = connection.send(greeting)

        # Assert
        assert nbytes == len(greeting)
        assert peer.recv(50) == greeting

    def test____recv_into____data_available(
        self,
        connection: UnixStreamConnection,
        peer: socket.socket,
    ) -> None:
        # Arrange
        peer.sendall(b"Hey there!")
        connection.set_read_deadline(deadline_after(1))
        buffer = bytearray(50)

        # Act
        nbytes = connection.recv_into(buffer)

        # Assert
        assert buffer[:nbytes] == b"Hey there!"

    def test____recv_into____eof(
        self,
        connection: UnixStreamConnection,
        peer: socket.socket,
    ) -> None:
        # Arrange
        peer.shutdown(socket.SHUT_WR)

        # Act
        data = _recv(connection)

        # Assert
        assert data == b""

    @pytest.mark.parametrize("operation", ["read", "write"])
    def test____deadline____already_elapsed____fails_immediately(
        self,
        operation: str,
        connection: UnixStreamConnection,
        peer: socket.socket,
    ) -> None:
        # Arrange
        peer.sendall(b"data is available")
        connection.set_read_deadline(time.monotonic() - 1)
        connection.set_write_deadline(time.monotonic() - 1)

        # Act & Assert
        with TimeLimit(0.1), pytest.raises(DeadlineExceededError) as exc_info:
            if operation == "read":
                _recv(connection)
            else:
                connection.send(b"Hello!")

        # Assert
        assert exc_info.value.operation == operation

    @pytest.mark.flaky(retries=3, delay=0.1)
    def test____recv_into____waits_until_deadline(self, connection: UnixStreamConnection) -> None:
        # Arrange
        connection.set_read_deadline(deadline_after(0.5))

        # Act & Assert
        with TimeTest(0.5, approx=2e-1), pytest.raises(DeadlineExceededError):
            _recv(connection)

    def test____recv_into____no_deadline(
        self,
        connection: UnixStreamConnection,
        peer: socket.socket,
    ) -> None:
        # Arrange
        connection.set_read_deadline(None)
        peer.sendall(b"data")

        # Act
        data = _recv(connection)

        # Assert
        assert data == b"data"
        assert connection.read_deadline is None

    def test____deadline____properties(self, connection: UnixStreamConnection) -> None:
        # Arrange

        # Act
        connection.set_read_deadline(12)
        connection.set_write_deadline(None)

        # Assert
        assert connection.read_deadline == 12.0
        assert connection.write_deadline is None

    def test____close____idempotent(self, connection: UnixStreamConnection) -> None:
        # Arrange

        # Act
        connection.close()
        connection.close()

        # Assert
        assert connection.is_closed()
        assert connection.fileno() == -1

    @pytest.mark.parametrize("operation", ["recv_into", "send", "get_local_name", "get_peer_name"])
    def test____operation____closed_connection(self, operation: str, connection: UnixStreamConnection) -> None:
        # Arrange
        connection.close()

        # Act & Assert
        with pytest.raises(ConnectionClosedError):
            match operation:
                case "recv_into":
                    _recv(connection)
                case "send":
                    connection.send(b"Hello!")
                case _:
                    getattr(connection, operation)()

    def test____get_local_name____unnamed(self, connection: UnixStreamConnection) -> None:
        # Arrange

        # Act & Assert
        assert connection.get_local_name().is_unnamed()
        assert connection.get_peer_name().is_unnamed()

    def test____dunder_del____ResourceWarning(self, socket_pair: tuple[socket.socket, socket.socket]) -> None:
        # Arrange
        left, _ = socket_pair
        connection = UnixStreamConnection(left)

        # Act & Assert
        with pytest.warns(ResourceWarning, match=r"^unclosed connection <UnixStreamConnection fd=\d+>$"):
            del connection

        assert left.fileno() == -1
