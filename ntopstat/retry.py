# -------------------------------------------------------------------------------
# MIT License
#
# Copyright (c) 2025 - 2026 Advanced Micro Devices, Inc. All Rights Reserved.
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
# -------------------------------------------------------------------------------

"""Bounded retry with exponential backoff

The backoff policy is independent of the operation being retried: any
callable can be wrapped with retry_with_backoff(). Backoff state is local to
one call, so independent operations always start again at attempt 0.

With the default policy (40 retries, 1 second base, growth factor 1.2) the
waits are 1, 1, 1, 2, 2, ... seconds, reaching 1469 seconds on the last
retry. A failing operation is attempted max_retries + 1 times in total (41
with the defaults) and no wait follows the final failure, so the policy
delays are exactly the waits between consecutive attempts.
"""

import logging
import time


class RetriesExhausted(Exception):
    """Raised when an operation keeps failing after all retries."""

    def __init__(self, description, attempts, last_error):
        super().__init__(f"{description} failed after {attempts} attempt(s): {last_error}")
        self.description = description
        self.attempts = attempts
        self.last_error = last_error


class BackoffPolicy:
    def __init__(self, max_retries=40, base_secs=1.0, factor=1.2):
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0 (got {max_retries})")
        if base_secs < 0:
            raise ValueError(f"base_secs must be >= 0 (got {base_secs})")
        if factor < 1.0:
            raise ValueError(f"factor must be >= 1.0 (got {factor})")

        self.max_retries = max_retries
        self.base_secs = base_secs
        self.factor = factor

    def delay(self, attempt: int) -> int:
        """Wait in whole seconds before the given retry attempt (1-based)."""
        return int(self.base_secs * self.factor**attempt)

    def delays(self):
        return [self.delay(attempt) for attempt in range(1, self.max_retries + 1)]

    def __repr__(self):
        return f"BackoffPolicy(max_retries={self.max_retries}, base_secs={self.base_secs}, factor={self.factor})"


def retry_with_backoff(fn, policy: BackoffPolicy, retry_on=(Exception,), sleep=time.sleep, description="operation"):
    """Call fn() until it succeeds or the policy runs out of retries.

    Exceptions not listed in retry_on propagate immediately. Only the initial
    call plus policy.max_retries retries are performed; there is no wait after
    the final failure.

    Args:
        fn (callable): Operation to perform, called with no arguments.
        policy (BackoffPolicy): Retry count and backoff parameters.
        retry_on (tuple): Exception types considered transient.
        sleep (callable): Function used to wait between attempts.
        description (str): Human readable name of the operation for logging.

    Returns:
        Result of the first successful call to fn().

    Raises:
        RetriesExhausted: fn() failed on every attempt.
    """
    attempt = 0
    while True:
        try:
            return fn()
        except retry_on as e:
            if attempt >= policy.max_retries:
                logging.error(f"Giving up on {description} after {attempt + 1} attempt(s)")
                raise RetriesExhausted(description, attempt + 1, e) from e

            attempt += 1
            wait = policy.delay(attempt)
            logging.warning(
                f"Error: Unable to complete {description} ({e}). "
                f"Retrying with {wait} second backoff ({attempt}/{policy.max_retries})."
            )
            sleep(wait)
