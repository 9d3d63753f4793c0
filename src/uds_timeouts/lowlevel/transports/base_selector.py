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
""":mod:`selectors` transports module.

Here are abstract base classes which use :mod:`selectors` module to perform I/O polling
until an absolute deadline.

See Also:

    :external+python:doc:`library/selectors`
        High-level interface for I/O polling
"""

from __future__ import annotations

__all__ = [
    "SelectorBaseTransport",
    "WouldBlockOnRead",
    "WouldBlockOnWrite",
]

import errno as _errno
import math
import selectors
import time
from abc import ABCMeta, abstractmethod
from collections.abc import Callable
from types import TracebackType
from typing import Self, TypeVar

from ...exceptions import DeadlineExceededError
from .. import _utils

_T_Return = TypeVar("_T_Return")


class WouldBlockOnRead(Exception):
    """The operation would block when reading the pipe."""

    def __init__(self, fileno: int) -> None:
        super().__init__(fileno)

        self.fileno: int = fileno
        """The file descriptor to wait for."""


class WouldBlockOnWrite(Exception):
    """The operation would block when writing on the pipe."""

    def __init__(self, fileno: int) -> None:
        super().__init__(fileno)

        self.fileno: int = fileno
        """The file descriptor to wait for."""


class SelectorBaseTransport(metaclass=ABCMeta):
    """
    Base class for transports using the :mod:`selectors` module for blocking operations polling.
    """

    __slots__ = (
        "_retry_interval",
        "_selector_factory",
        "__weakref__",
    )

    def __init__(self, retry_interval: float, selector_factory: Callable[[], selectors.BaseSelector] | None = None) -> None:
        """
        Parameters:
            retry_interval: The maximum wait time to wait for a blocking operation before retrying.
                            Set it to :data:`math.inf` to disable this feature.
            selector_factory: If given, the callable object to use to create a new :class:`selectors.BaseSelector` instance.
                              Otherwise, the selector used by default is:

                              * :class:`selectors.PollSelector` on Unix platforms.

                              * :class:`selectors.SelectSelector` on Windows.
        """
        super().__init__()

        if selector_factory is None:
            selector_factory = getattr(selectors, "PollSelector", selectors.SelectSelector)
        self._selector_factory: Callable[[], selectors.BaseSelector] = selector_factory

        self._retry_interval: float = _utils.validate_timeout_delay(retry_interval, positive_check=False)
        if self._retry_interval <= 0:
            raise ValueError("retry_interval must be a strictly positive float")

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Calls :meth:`close`."""
        self.close()

    @abstractmethod
    def is_closed(self) -> bool:
        """
        Checks if the transport is closed.

        Returns:
            :data:`True` if the transport is closed.
        """
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        """
        Closes the transport.

        Can be safely called multiple times.
        """
        raise NotImplementedError

    def _retry(
        self,
        callback: Callable[[], _T_Return],
        deadline: float | None,
        operation: str,
    ) -> _T_Return:
        """
        Calls `callback` without argument and returns the output.

        If the callable raises :class:`WouldBlockOnRead` or :class:`WouldBlockOnWrite`, waits for
        :attr:`~.WouldBlockOnRead.fileno` to be available for reading or writing respectively, and retries to call the callback.

        The deadline is checked *before* each call: an already elapsed deadline fails immediately,
        even if the file descriptor is ready.

        Parameters:
            callback: the function to call.
            deadline: the absolute :func:`time.monotonic` time after which the operation fails,
                      or :data:`None` to wait forever.
            operation: the operation name, used in the error message.

        Raises:
            DeadlineExceededError: the deadline has elapsed.

        Returns:
            the result of the callback.

        :meta public:
        """
        retry_interval = self._retry_interval
        event: int
        fileno: int
        while True:
            if deadline is not None and time.monotonic() >= deadline:
                raise DeadlineExceededError(operation)
            try:
                return callback()
            except WouldBlockOnRead as exc:
                event = selectors.EVENT_READ
                fileno = exc.fileno
            except WouldBlockOnWrite as exc:
                event = selectors.EVENT_WRITE
                fileno = exc.fileno
            wait_time: float = min(_utils.remaining_time(deadline), retry_interval)
            with self._selector_factory() as selector:
                try:
                    selector.register(fileno, event)
                except ValueError as exc:
                    raise _utils.error_from_errno(_errno.EBADF) from exc
                if wait_time == math.inf:
                    selector.select()
                else:
                    selector.select(wait_time)
