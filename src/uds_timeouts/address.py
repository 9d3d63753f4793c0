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
"""Socket address provisioning module."""

from __future__ import annotations

__all__ = ["allocate_unique_address"]

import os
import tempfile

from .exceptions import AllocationError
from .lowlevel import constants


def allocate_unique_address(
    *,
    prefix: str = constants.SOCKET_PATH_PREFIX,
    dir: str | os.PathLike[str] | None = None,
) -> str:
    """
    Returns a path suitable to bind a Unix socket on.

    The name comes from a temporary file which is created then removed, so nothing exists
    at this path when the function returns and no resource is kept open.

    Parameters:
        prefix: The file name prefix.
        dir: The directory where the path is created. Defaults to :func:`tempfile.gettempdir`.

    Raises:
        AllocationError: the temporary file could not be created or removed.

    Returns:
        the socket path.
    """
    try:
        fd, path = tempfile.mkstemp(prefix=prefix, dir=dir)
    except OSError as exc:
        raise AllocationError(exc.errno, f"cannot create a temporary file: {exc.strerror}") from exc
    try:
        os.close(fd)
        os.remove(path)
    except OSError as exc:
        raise AllocationError(exc.errno, f"cannot remove temporary file {path!r}: {exc.strerror}") from exc
    return path
