# /*
# Copyright 2026 The k3d-gitops-bootstrap Authors.
#
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
# */

"""Exception types shared across the bootstrap workflows."""

from __future__ import annotations


class BootstrapError(RuntimeError):
    """Base class for errors that abort a bootstrap workflow."""


class PreconditionError(BootstrapError):
    """A hard dependency is missing or a required external call failed."""


class ReadinessTimeout(BootstrapError):
    """A bounded wait ran out where the calling flow cannot continue without it."""

    def __init__(self, check: str, elapsed: float, last_state: str) -> None:
        self.check = check
        self.elapsed = elapsed
        self.last_state = last_state
        detail = f": {last_state}" if last_state else ""
        super().__init__(f"Timed out after {elapsed:.0f}s waiting for {check}{detail}")


class NotReadyError(Exception):
    """Raised by a readiness predicate to report that its resource is not ready yet.

    The poller always retries on this signal, independent of the error policy.
    """
