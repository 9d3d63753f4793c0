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
"""Unix domain socket timeouts experiment module.

The experiment runs three phases in sequence against the same socket address:

1. the client tries to connect while nothing is bound;
2. the client connects to a listening server which never accepts;
3. the client and the server do the whole greeting exchange.
"""

from __future__ import annotations

__all__ = [
    "ExperimentReport",
    "Phase",
    "PhaseReport",
    "run_experiment",
]

import concurrent.futures
import contextlib
import dataclasses
import enum
import logging as _logging
import os

from .address import allocate_unique_address
from .client import ClientOutcome, run_client
from .config import DEFAULT_CONFIG, ExperimentConfig
from .exceptions import AcceptError, CloseError
from .lowlevel import _utils
from .lowlevel.futures import start_task
from .lowlevel.transports.socket import UnixStreamConnection, UnixStreamListener
from .server import ServerOutcome, bind_and_listen, run_server_once


@enum.unique
class Phase(enum.Enum):
    """Phases of the experiment, in execution order."""

    DEAD_SERVER = "Try to connect to dead server"
    NOT_ACCEPTING = "Connect to listening server, but nobody's accepting"
    FULL_EXCHANGE = "Connect to listening server, with server accepting"


@dataclasses.dataclass(kw_only=True, frozen=True, slots=True)
class PhaseReport:
    """Outcomes of a phase."""

    phase: Phase
    client: ClientOutcome
    server: ServerOutcome | None
    """:data:`None` if no server task runs during the phase."""

    elapsed: float
    """Phase duration, in seconds."""


@dataclasses.dataclass(kw_only=True, frozen=True, slots=True)
class ExperimentReport:
    """Outcomes of a whole run."""

    address: str
    phases: tuple[PhaseReport, ...]

    def get(self, phase: Phase) -> PhaseReport:
        """
        Returns the report of `phase`.

        Raises:
            KeyError: `phase` did not run.
        """
        for report in self.phases:
            if report.phase is phase:
                return report
        raise KeyError(phase)


def run_experiment(
    config: ExperimentConfig = DEFAULT_CONFIG,
    *,
    address: str | None = None,
    socket_dir: str | os.PathLike[str] | None = None,
    logger: _logging.Logger | None = None,
) -> ExperimentReport:
    """
    Runs the three phases of the experiment.

    A failing phase is logged and recorded in the report; the next phase runs anyway.

    Parameters:
        config: Timing and payload settings, given to every task.
        address: The socket path to use. A new one is allocated if not given.
        socket_dir: The directory where the socket path is allocated (ignored if `address` is given).
        logger: If given, the logger instance to use for the phase markers.

    Raises:
        AllocationError: no socket path could be allocated.
        OSError: the server socket could not be bound.

    Returns:
        the report of the run.
    """
    if logger is None:
        logger = _logging.getLogger(__name__)
    if address is None:
        address = allocate_unique_address(dir=socket_dir)
    logger.info("Using Unix domain socket: %s", address)

    reports: list[PhaseReport] = []
    with contextlib.ExitStack() as stack:
        reports.append(_run_client_only_phase(Phase.DEAD_SERVER, address, config, logger))

        listener = bind_and_listen(address)
        stack.callback(_close_listener, listener, logger)

        reports.append(_run_client_only_phase(Phase.NOT_ACCEPTING, address, config, logger))
        reports.append(_run_full_exchange_phase(address, listener, config, logger))

    return ExperimentReport(address=address, phases=tuple(reports))


def _run_client_only_phase(
    phase: Phase,
    address: str,
    config: ExperimentConfig,
    logger: _logging.Logger,
) -> PhaseReport:
    _log_phase_start(phase, logger)
    with _utils.ElapsedTime() as elapsed:
        client_outcome = _start_client(phase, address, config).result()
    _log_client_outcome(client_outcome, logger)
    return PhaseReport(phase=phase, client=client_outcome, server=None, elapsed=elapsed.get_elapsed())


def _run_full_exchange_phase(
    address: str,
    listener: UnixStreamListener,
    config: ExperimentConfig,
    logger: _logging.Logger,
) -> PhaseReport:
    phase = Phase.FULL_EXCHANGE
    _log_phase_start(phase, logger)

    # Connections queued during the previous phase were closed by their client.
    try:
        discarded = listener.drain_backlog()
    except AcceptError as exc:
        logger.warning("Could not drain the listen backlog: %s", exc)
    else:
        if discarded:
            logger.info("Discarded %d stale connection(s) from the listen backlog", discarded)

    handoff: concurrent.futures.Future[UnixStreamConnection] = concurrent.futures.Future()
    server_completion: concurrent.futures.Future[ServerOutcome] = concurrent.futures.Future()

    with _utils.ElapsedTime() as elapsed:
        start_task(f"server-{phase.name.lower()}", run_server_once, listener, handoff, server_completion, config)
        client_completion = _start_client(phase, address, config)
        try:
            client_outcome = client_completion.result()
            if not client_outcome.connected:
                logger.warning("The client never connected, closing the listener to release the pending accept()")
                _close_listener(listener, logger)
            server_outcome = server_completion.result()
        finally:
            if handoff.done() and handoff.exception() is None:
                _close_server_connection(handoff.result(), logger)

    _log_client_outcome(client_outcome, logger)
    _log_server_outcome(server_outcome, logger)
    return PhaseReport(phase=phase, client=client_outcome, server=server_outcome, elapsed=elapsed.get_elapsed())


def _start_client(phase: Phase, address: str, config: ExperimentConfig) -> concurrent.futures.Future[ClientOutcome]:
    completion: concurrent.futures.Future[ClientOutcome] = concurrent.futures.Future()
    start_task(f"client-{phase.name.lower()}", run_client, address, completion, config)
    return completion


def _close_server_connection(connection: UnixStreamConnection, logger: _logging.Logger) -> None:
    logger.info("Closing client connection...")
    try:
        connection.close()
    except OSError as exc:
        logger.warning("%s", CloseError(exc.errno, f"Failed to close client connection: {exc.strerror}"))
    else:
        logger.info("Client connection closed.")


def _close_listener(listener: UnixStreamListener, logger: _logging.Logger) -> None:
    if listener.is_closed():
        return
    logger.info("Shutting down server...")
    try:
        listener.close()
    except OSError as exc:
        logger.warning("%s", CloseError(exc.errno, f"Failed to shut down server: {exc.strerror}"))
    else:
        logger.info("Server shut down.")


def _log_phase_start(phase: Phase, logger: _logging.Logger) -> None:
    logger.info("------ TEST %d: %s", list(Phase).index(phase) + 1, phase.value)


def _log_client_outcome(outcome: ClientOutcome, logger: _logging.Logger) -> None:
    if outcome.error is not None:
        logger.warning("Client run failed at %s: %s", outcome.state.name, outcome.error)
    else:
        logger.info("Client run succeeded with response %r", outcome.response)


def _log_server_outcome(outcome: ServerOutcome, logger: _logging.Logger) -> None:
    if outcome.error is not None:
        logger.warning("Server run failed: %s", outcome.error)
    else:
        logger.info("Server run succeeded with greeting %r", outcome.greeting)
