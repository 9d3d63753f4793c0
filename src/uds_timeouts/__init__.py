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
"""Timeout and retry behavior of Unix domain stream sockets.

A client and a server exchange a greeting over a Unix socket under connect retries,
read deadlines and write deadlines, against a dead server, a listening server which
never accepts, then a server which answers.
"""

from __future__ import annotations

__all__ = [
    "ClientOutcome",
    "DEFAULT_CONFIG",
    "ExperimentConfig",
    "ExperimentReport",
    "Phase",
    "PhaseReport",
    "ServerOutcome",
    "run_experiment",
]

__version__ = "1.0.0"

from .client import ClientOutcome
from .config import DEFAULT_CONFIG, ExperimentConfig
from .experiment import ExperimentReport, Phase, PhaseReport, run_experiment
from .server import ServerOutcome
