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

"""Counter reconciliation

Converts absolute counter values reported by ntopng into increments for
locally published Prometheus counters. Prometheus counters only support
adding, so each observation is turned into the amount to add since the last
observation. ntopng counters may reset to zero (service restart or operator
action); a reset is detected as a decrease and counting resumes from the new
absolute value. The increments lost between the last observation and the
reset are not recovered.
"""

import logging


def reconcile(previous: int, current: int):
    """Reconcile a newly observed absolute value against the tracked one.

    Args:
        previous (int): Last absolute value observed (tracked state).
        current (int): Absolute value just reported by upstream.

    Returns:
        tuple: (value to track, non-negative delta to add to published counter)
    """
    if previous < 0 or current < 0:
        raise ValueError(f"counter values must be non-negative (previous={previous}, current={current})")

    if current > previous:
        return current, current - previous

    if current < previous:
        logging.info("Counter reset detected (%d -> %d); resuming from new value" % (previous, current))
        return current, current

    return current, 0
