from __future__ import annotations

from collections.abc import Callable

import pytest


def make_recv_into_side_effect(to_write: bytes | BaseException | list[bytes | BaseException]) -> Callable[[bytearray], int]:
    def write_in_buffer(buffer: bytearray, to_write: bytes | BaseException) -> int:
        if isinstance(to_write, BaseException):
            raise to_write
        nbytes = len(to_write)
        with memoryview(buffer) as view:
            view[:nbytes] = to_write
        return nbytes

    match to_write:
        case bytes() | BaseException():

            def recv_into_side_effect(buffer: bytearray) -> int:
                return write_in_buffer(buffer, to_write)

        case list():
            iterator = iter(to_write)

            def recv_into_side_effect(buffer: bytearray) -> int:
                return write_in_buffer(buffer, next(iterator))

        case _:
            pytest.fail("Invalid setup")

    return recv_into_side_effect
