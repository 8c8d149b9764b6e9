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

"""Bounded readiness poller.

A :class:`Check` wraps a read-only predicate against external state. :func:`poll`
evaluates it immediately, then at a fixed interval, until it reports ready, the
policy's maximum duration runs out, or the predicate fails hard. The result is
always returned as one of :class:`Success`, :class:`TimedOut` or :class:`Failed`;
the poller never raises for a timeout, so the caller decides whether waiting
longer would have mattered.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Union

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception,
    retry_if_result,
    wait_fixed,
)

from gitops_bootstrap import logger
from gitops_bootstrap.config import PollPolicy
from gitops_bootstrap.errors import BootstrapError, NotReadyError, ReadinessTimeout


@dataclass(frozen=True)
class CheckResult:
    """What a single predicate evaluation observed.

    Attributes:
        ready: Whether the resource reached the desired state.
        message: Human-readable description of the observed state.
        payload: Value handed to the caller on success.
    """

    ready: bool
    message: str = ""
    payload: Any = None


Predicate = Callable[[], Union[CheckResult, bool]]


@dataclass(frozen=True)
class Check:
    """A named readiness predicate.

    Attributes:
        name: Identifier used in log lines and error messages.
        predicate: Side-effect-free callable returning a CheckResult or bool.
            Raising NotReadyError means "not ready yet"; any other exception
            is a hard error.
    """

    name: str
    predicate: Predicate


@dataclass(frozen=True)
class Success:
    check: str
    payload: Any
    attempts: int
    elapsed: float

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class TimedOut:
    check: str
    last_state: str
    attempts: int
    elapsed: float

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class Failed:
    check: str
    error: Exception
    attempts: int
    elapsed: float

    @property
    def ok(self) -> bool:
        return False


PollOutcome = Union[Success, TimedOut, Failed]


def _as_result(value: CheckResult | bool) -> CheckResult:
    if isinstance(value, CheckResult):
        return value
    if isinstance(value, bool):
        return CheckResult(ready=value)
    raise TypeError(f"Readiness predicate returned {type(value).__name__}, expected CheckResult or bool")


def _observed_state(retry_state: RetryCallState) -> str:
    outcome = retry_state.outcome
    if outcome is None:
        return ""
    if outcome.failed:
        return str(outcome.exception())
    return outcome.result().message


def poll(
    check: Check,
    policy: PollPolicy,
    *,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> PollOutcome:
    """Evaluate *check* until it is ready, times out, or fails.

    Args:
        check: The readiness check to evaluate.
        policy: Interval, maximum duration and error treatment.
        sleep: Function used to wait between attempts.
        clock: Monotonic clock used to measure elapsed time.

    Returns:
        Success with the predicate's payload, TimedOut with the last observed
        state, or Failed with the predicate's hard error.
    """
    attempts = 0
    start = clock()

    def _attempt() -> CheckResult:
        nonlocal attempts
        attempts += 1
        result = _as_result(check.predicate())
        logger.debug("%s attempt %d: ready=%s %s", check.name, attempts, result.ready, result.message)
        return result

    def _retryable(exc: BaseException) -> bool:
        if not isinstance(exc, Exception):
            return False
        return isinstance(exc, NotReadyError) or not policy.errors_fatal

    def _past_deadline(retry_state: RetryCallState) -> bool:
        return clock() - start >= policy.max_duration

    def _before_sleep(retry_state: RetryCallState) -> None:
        logger.debug("%s not ready (%s), retrying in %ss",
                     check.name, _observed_state(retry_state) or "no detail", policy.interval)

    retrying = Retrying(
        stop=_past_deadline,
        wait=wait_fixed(policy.interval),
        retry=retry_if_result(lambda r: not r.ready) | retry_if_exception(_retryable),
        sleep=sleep,
        before_sleep=_before_sleep,
    )

    try:
        result = retrying(_attempt)
    except RetryError as err:
        elapsed = clock() - start
        last_attempt = err.last_attempt
        if last_attempt.failed:
            last_state = str(last_attempt.exception())
        else:
            last_state = last_attempt.result().message
        logger.info("%s timed out after %.1fs (%d attempts): %s", check.name, elapsed, attempts, last_state)
        return TimedOut(check=check.name, last_state=last_state, attempts=attempts, elapsed=elapsed)
    except Exception as exc:
        elapsed = clock() - start
        logger.info("%s failed after %d attempts: %s", check.name, attempts, exc)
        return Failed(check=check.name, error=exc, attempts=attempts, elapsed=elapsed)

    elapsed = clock() - start
    logger.debug("%s ready after %d attempts (%.1fs)", check.name, attempts, elapsed)
    return Success(check=check.name, payload=result.payload, attempts=attempts, elapsed=elapsed)


def require_success(outcome: PollOutcome) -> Any:
    """Return the payload of a Success, raising for the other outcomes.

    For flows where the wait is not advisory: nothing after it can work
    without the resource.

    Raises:
        ReadinessTimeout: If the outcome is TimedOut.
        BootstrapError: If the outcome is Failed, chained to the predicate's error.
    """
    if isinstance(outcome, TimedOut):
        raise ReadinessTimeout(outcome.check, outcome.elapsed, outcome.last_state)
    if isinstance(outcome, Failed):
        raise BootstrapError(f"{outcome.check} failed: {outcome.error}") from outcome.error
    return outcome.payload
