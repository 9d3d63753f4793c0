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
"""Experiment server module.

The server accepts one connection, reads the client greeting under a read deadline
and answers under a write deadline.
"""

from __future__ import annotations

__all__ = [
    "ServerOutcome",
    "bind_and_listen",
    "run_server_once",
]

import concurrent.futures
import contextlib
import dataclasses
import logging as _logging
import os
import socket as _socket

from .config import DEFAULT_CONFIG, ExperimentConfig
from .exceptions import AcceptError, ShortWriteError
from .lowlevel import _unix_utils, _utils, constants
from .lowlevel.futures import resolve_future
from .lowlevel.socket import UnixSocketAddress
from .lowlevel.transports.socket import UnixStreamConnection, UnixStreamListener


@dataclasses.dataclass(kw_only=True, frozen=True, slots=True)
class ServerOutcome:
    """Result of a server run."""

    accepted: bool
    """:data:`True` if a connection has been accepted."""

    greeting: bytes | None
    """The bytes received from the client, or :data:`None`."""

    response_sent: bool
    """:data:`True` if the whole response has been written."""

    error: BaseException | None
    """The failure which ended the run, or :data:`None`."""


def bind_and_listen(
    address: str | os.PathLike[str] | UnixSocketAddress,
    *,
    backlog: int | None = None,
    retry_interval: float = constants.DEFAULT_RETRY_INTERVAL,
    logger: _logging.Logger | None = None,
) -> UnixStreamListener:
    """
    Binds a Unix stream socket at `address` and starts listening.

    A socket file left at `address` by a previous run is removed first.

    Parameters:
        address: Path of the socket.
        backlog: The listen backlog. A default reasonable value is chosen if not given.
        retry_interval: See :class:`.UnixStreamListener`.
        logger: If given, the logger instance to use.

    Raises:
        OSError: the socket could not be bound.

    Returns:
        the listener. It owns the socket file and removes it when closed.
    """
    if logger is None:
        logger = _logging.getLogger(__name__)
    path = _unix_utils.convert_unix_socket_address(address)
    if _unix_utils.remove_stale_socket_file(path):
        logger.info("Removed stale socket file %s", path)

    family: int = getattr(_socket, "AF_UNIX")
    sock = _socket.socket(family, _socket.SOCK_STREAM, 0)
    try:
        try:
            sock.bind(path)
        except OSError as exc:
            raise _utils.convert_socket_bind_error(exc, path) from None
        try:
            if backlog is None:
                sock.listen()
            else:
                sock.listen(backlog)
            listener = UnixStreamListener(sock, retry_interval)
        except BaseException:
            with contextlib.suppress(OSError):
                os.remove(path)
            raise
    except BaseException:
        sock.close()
        raise
    logger.info("Listening on %s", listener.get_local_name())
    return listener


def run_server_once(
    listener: UnixStreamListener,
    handoff: concurrent.futures.Future[UnixStreamConnection],
    completion: concurrent.futures.Future[ServerOutcome],
    config: ExperimentConfig = DEFAULT_CONFIG,
    *,
    logger: _logging.Logger | None = None,
) -> None:
    """
    Accepts one connection, reads the greeting and sends the response.

    This is the target of the server task. The accepted connection is published on `handoff`
    and is *not* closed here: the receiver of `handoff` owns it.

    Parameters:
        listener: The listener to accept on. No accept deadline applies.
        handoff: Resolved with the accepted connection, or with the accept error.
        completion: The completion signal of this run, resolved exactly once.
        config: Timing and payload settings.
        logger: If given, the logger instance to use.
    """
    resolve_future(completion, _serve_once, listener, handoff, config, logger or _logging.getLogger(__name__))


def _serve_once(
    listener: UnixStreamListener,
    handoff: concurrent.futures.Future[UnixStreamConnection],
    config: ExperimentConfig,
    logger: _logging.Logger,
) -> ServerOutcome:
    try:
        connection = listener.accept()
    except AcceptError as exc:
        logger.error("Failed to accept client: %s", exc)
        handoff.set_exception(exc)
        return ServerOutcome(accepted=False, greeting=None, response_sent=False, error=exc)
    handoff.set_result(connection)
    logger.info("Client connected on %s", connection.get_local_name())

    try:
        greeting = _read_greeting(connection, config)
    except (OSError, EOFError) as exc:
        logger.error("Failed to read greeting from client: %s", exc)
        return ServerOutcome(accepted=True, greeting=None, response_sent=False, error=exc)
    logger.info("Got greeting from client: %r", greeting)

    logger.info("Responding to client...")
    try:
        _respond(connection, config)
    except OSError as exc:
        logger.error("Failed to respond to client: %s", exc)
        return ServerOutcome(accepted=True, greeting=greeting, response_sent=False, error=exc)
    logger.info("Successfully responded to client.")
    return ServerOutcome(accepted=True, greeting=greeting, response_sent=True, error=None)


def _read_greeting(connection: UnixStreamConnection, config: ExperimentConfig) -> bytes:
    connection.set_read_deadline(_utils.deadline_after(config.server_connect_deadline))
    buffer = bytearray(config.recv_bufsize)
    nbytes = connection.recv_into(buffer)
    if nbytes == 0:
        raise EOFError("Connection closed by the client")
    return bytes(buffer[:nbytes])


def _respond(connection: UnixStreamConnection, config: ExperimentConfig) -> None:
    message = config.response
    connection.set_write_deadline(_utils.deadline_after(config.server_connect_deadline))
    nbytes = connection.send(message)
    if nbytes != len(message):
        raise ShortWriteError(len(message), nbytes)
