# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

import time
from typing import Callable


def wait_until(
    condition: Callable[[], bool],
    *,
    timeout: float,
    interval: float,
    on_retry: Callable[[int], None] | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """
    Poll *condition* until it returns True or *timeout* seconds elapse.

    condition: checked once immediately, then every *interval* seconds
    on_retry: callback(attempt) after each failed check
    Returns False on timeout; never raises on its own.
    """
    deadline = clock() + timeout
    attempt = 0
    while True:
        attempt += 1
        if condition():
            return True
        if on_retry:
            on_retry(attempt)
        remaining = deadline - clock()
        if remaining <= 0:
            return False
        sleep(min(interval, remaining))
