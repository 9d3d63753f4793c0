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
"""Command line entry point: ``python -m uds_timeouts``."""

from __future__ import annotations

__all__ = ["main"]

import argparse
import logging
import sys
from collections.abc import Sequence

from .config import ExperimentConfig
from .experiment import run_experiment
from .lowlevel import constants


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="uds-timeouts",
        description="Observe timeout and retry behavior of Unix domain stream sockets.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "-v",
        "--verbose",
        dest="log_level",
        action="store_const",
        const="DEBUG",
        default="INFO",
        help="Increase verbose level",
    )
    parser.add_argument(
        "--connect-retries",
        dest="connect_retries",
        type=int,
        default=constants.CONNECT_RETRIES,
        help="Number of client connection attempts",
    )
    parser.add_argument(
        "--retry-wait",
        dest="client_retry_wait",
        type=float,
        default=constants.CLIENT_RETRY_WAIT,
        help="Seconds between two connection attempts",
    )
    parser.add_argument(
        "--client-deadline",
        dest="client_connect_deadline",
        type=float,
        default=constants.CLIENT_CONNECT_DEADLINE,
        help="Seconds given to each client read and write",
    )
    parser.add_argument(
        "--server-deadline",
        dest="server_connect_deadline",
        type=float,
        default=constants.SERVER_CONNECT_DEADLINE,
        help="Seconds given to each server read and write",
    )
    parser.add_argument(
        "--socket-dir",
        dest="socket_dir",
        default=None,
        help="Directory of the socket file (system temporary directory if not given)",
    )

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format="[ %(levelname)s ] [ %(name)s ] %(message)s")

    try:
        config = ExperimentConfig(
            connect_retries=args.connect_retries,
            client_retry_wait=args.client_retry_wait,
            client_connect_deadline=args.client_connect_deadline,
            server_connect_deadline=args.server_connect_deadline,
        )
    except (TypeError, ValueError) as exc:
        parser.error(str(exc))

    try:
        run_experiment(config, socket_dir=args.socket_dir)
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        pass
