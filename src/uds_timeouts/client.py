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
"""Experiment client module.

The client connects with a bounded number of attempts, says hello under a write deadline,
then waits for the server response under per-attempt read deadlines.
"""

from __future__ import annotations

__all__ = [
    "ClientConnector",
    "ClientOutcome",
    "ClientState",
    "run_client",
]

import concurrent.futures
import dataclasses
import enum
import logging as _logging
import time

from .config import DEFAULT_CONFIG, ExperimentConfig
from .exceptions import CloseError, ConnectError, ShortWriteError
from .lowlevel import _utils
from .lowlevel.futures import resolve_future
from .lowlevel.transports.socket import UnixStreamConnection, connect_unix_stream


@enum.unique
class ClientState(enum.Enum):
    """Steps of a client run, in order."""

    NOT_CONNECTED = enum.auto()
    CONNECTING = enum.auto()
    CONNECTED = enum.auto()
    GREETED = enum.auto()
    AWAITING_RESPONSE = enum.auto()
    DONE = enum.auto()


@dataclasses.dataclass(kw_only=True, frozen=True, slots=True)
class ClientOutcome:
    """Result of a client run."""

    state: ClientState
    """The furthest state reached before :attr:`ClientState.DONE`."""

    connect_attempts: int
    """Number of connection attempts done."""

    connected: bool
    """:data:`True` if a connection has been established."""

    greeting_sent: bool
    """:data:`True` if the whole greeting has been written."""

    read_attempts: int
    """Number of response reads attempted."""

    response: bytes | None
    """The bytes received from the server, or :data:`None`."""

    error: BaseException | None
    """The failure which ended the run, or :data:`None` if a response has been received."""


class ClientConnector:
    """
    A single client run against a Unix socket address.

    Lifecycle: ``NOT_CONNECTED → CONNECTING → CONNECTED → GREETED → AWAITING_RESPONSE → DONE``.
    Every path, including failures, ends in :attr:`ClientState.DONE`.
    """

    __slots__ = (
        "__address",
        "__config",
        "__logger",
        "__state",
        "__furthest_state",
        "__connect_attempts",
        "__greeting_sent",
        "__read_attempts",
        "__response",
        "__error",
    )

    def __init__(
        self,
        address: str,
        config: ExperimentConfig = DEFAULT_CONFIG,
        *,
        logger: _logging.Logger | None = None,
    ) -> None:
        """
        Parameters:
            address: Path of the server socket.
            config: Timing and payload settings.
            logger: If given, the logger instance to use.
        """
        self.__address: str = address
        self.__config: ExperimentConfig = config
        self.__logger: _logging.Logger = logger or _logging.getLogger(__name__)
        self.__state: ClientState = ClientState.NOT_CONNECTED
        self.__furthest_state: ClientState = ClientState.NOT_CONNECTED
        self.__connect_attempts: int = 0
        self.__greeting_sent: bool = False
        self.__read_attempts: int = 0
        self.__response: bytes | None = None
        self.__error: BaseException | None = None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} address={self.__address!r} state={self.__state.name}>"

    @property
    def state(self) -> ClientState:
        """The current state. Read-only attribute."""
        return self.__state

    def run(self) -> ClientOutcome:
        """
        Runs the client. Can be called only once.

        Failures are logged and reported in the returned outcome, not raised.

        Returns:
            the outcome of the run.
        """
        if self.__state is not ClientState.NOT_CONNECTED:
            raise RuntimeError("A client connector can run only once")
        try:
            connection = self.__connect()
            if connection is not None:
                try:
                    self.__exchange(connection)
                finally:
                    self.__close(connection)
        finally:
            self.__set_state(ClientState.DONE)
        return ClientOutcome(
            state=self.__furthest_state,
            connect_attempts=self.__connect_attempts,
            connected=self.__furthest_state.value >= ClientState.CONNECTED.value,
            greeting_sent=self.__greeting_sent,
            read_attempts=self.__read_attempts,
            response=self.__response,
            error=self.__error,
        )

    def __set_state(self, state: ClientState) -> None:
        self.__logger.debug("%s -> %s", self.__state.name, state.name)
        self.__state = state
        if state is not ClientState.DONE and state.value > self.__furthest_state.value:
            self.__furthest_state = state

    def __connect(self) -> UnixStreamConnection | None:
        logger = self.__logger
        connect_retries = self.__config.connect_retries
        last_error: OSError | None = None
        for attempt in range(1, connect_retries + 1):
            if attempt > 1:
                # There is no connection attempt delay with Unix sockets
                logger.info("Waiting to retry...")
                time.sleep(self.__config.client_retry_wait)
            self.__set_state(ClientState.CONNECTING)
            self.__connect_attempts = attempt
            logger.info("Connect attempt %d...", attempt)
            try:
                connection = connect_unix_stream(self.__address)
            except OSError as exc:
                logger.warning("Client connect failure with err=%s", exc)
                last_error = exc
                continue
            logger.info("Connect successful after %d attempts! (peer: %s)", attempt, connection.get_peer_name())
            self.__set_state(ClientState.CONNECTED)
            return connection

        error = ConnectError(f"Could not connect to {self.__address!r} after {connect_retries} attempts", connect_retries)
        error.__cause__ = last_error
        self.__error = error
        logger.error("%s", error)
        return None

    def __exchange(self, connection: UnixStreamConnection) -> None:
        logger = self.__logger
        try:
            self.__say_hello(connection)
        except OSError as exc:
            logger.warning("Failed to say hello to server in time: %s", exc)
            self.__error = exc
            return
        self.__set_state(ClientState.GREETED)
        logger.info("Successfully said hello to server")

        logger.info("Waiting for response from server...")
        self.__set_state(ClientState.AWAITING_RESPONSE)
        try:
            response = self.__recv_response(connection)
        except (OSError, EOFError) as exc:
            logger.warning("Failed to hear back from server: %s", exc)
            self.__error = exc
            return
        self.__response = response
        logger.info("Successfully heard back from server: %r", response)

    def __say_hello(self, connection: UnixStreamConnection) -> None:
        message = self.__config.greeting
        connection.set_write_deadline(_utils.deadline_after(self.__config.client_connect_deadline))
        nbytes = connection.send(message)
        if nbytes != len(message):
            raise ShortWriteError(len(message), nbytes)
        self.__greeting_sent = True

    def __recv_response(self, connection: UnixStreamConnection) -> bytes:
        logger = self.__logger
        config = self.__config
        error: OSError | EOFError | None = None
        for attempt in range(1, config.response_read_attempts + 1):
            self.__read_attempts = attempt
            logger.info("Read try %d...", attempt)
            connection.set_read_deadline(_utils.deadline_after(config.client_connect_deadline))
            buffer = bytearray(config.recv_bufsize)
            try:
                nbytes = connection.recv_into(buffer)
                if nbytes == 0:
                    raise EOFError("Connection closed by the server")
            except (OSError, EOFError) as exc:
                logger.warning("Failed to read from server: %s", exc)
                error = exc
                continue
            # The first successful read ends the loop.
            return bytes(buffer[:nbytes])

        assert error is not None  # nosec assert_used
        raise error

    def __close(self, connection: UnixStreamConnection) -> None:
        try:
            connection.close()
        except OSError as exc:
            self.__logger.warning("%s", CloseError(exc.errno, f"Failed to close connection: {exc.strerror}"))
        self.__logger.info("Connection closed.")


def run_client(
    address: str,
    completion: concurrent.futures.Future[ClientOutcome],
    config: ExperimentConfig = DEFAULT_CONFIG,
    *,
    logger: _logging.Logger | None = None,
) -> None:
    """
    Runs a :class:`ClientConnector` and resolves `completion` with its outcome.

    This is the target of the client task.

    Parameters:
        address: Path of the server socket.
        completion: The completion signal of this run, resolved exactly once.
        config: Timing and payload settings.
        logger: If given, the logger instance to use.
    """
    resolve_future(completion, ClientConnector(address, config, logger=logger).run)
