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
"""One-shot completion signals built on :mod:`concurrent.futures`."""

from __future__ import annotations

__all__ = ["resolve_future", "start_task"]

import concurrent.futures
import threading
from collections.abc import Callable
from typing import ParamSpec, TypeVar

_P = ParamSpec("_P")
_T = TypeVar("_T")


def resolve_future(
    future: concurrent.futures.Future[_T],
    func: Callable[_P, _T],
    /,
    *args: _P.args,
    **kwargs: _P.kwargs,
) -> None:
    """
    Calls ``func(*args, **kwargs)`` and resolves `future` with the outcome, exactly once.

    Nothing is called if `future` has been cancelled beforehand.
    """
    if not future.set_running_or_notify_cancel():
        return
    try:
        result: _T = func(*args, **kwargs)
    except BaseException as exc:
        future.set_exception(exc)
        raise
    else:
        future.set_result(result)
    finally:
        del future, func


def start_task(name: str, target: Callable[_P, object], /, *args: _P.args, **kwargs: _P.kwargs) -> threading.Thread:
    """
    Runs ``target(*args, **kwargs)`` in a new daemon thread.

    The caller synchronizes with the task through the futures given in the arguments, not with
    :meth:`threading.Thread.join`.
    """
    thread = threading.Thread(target=target, args=args, kwargs=kwargs, name=name, daemon=True)
    thread.start()
    return thread
