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

# ntopng ZMQ collector counters tracked by ntopstat. Each entry maps a metric
# key to its location under the interface data response and to one exported
# counter series (ntopstat_<name>_total).

DATA_PATH_PREFIX = "rsp.zmqRecvStats"

TRACKED_METRICS = [
    {
        "name": "zmq_msg_rcvd",
        "path": DATA_PATH_PREFIX + ".zmq_msg_rcvd",
        "description": "# of ZMQ messages received by ntopng",
    },
    {
        "name": "dropped_flows",
        "path": DATA_PATH_PREFIX + ".dropped_flows",
        "description": "# of flow records dropped by ntopng",
    },
    {
        "name": "zmq_msg_drops",
        "path": DATA_PATH_PREFIX + ".zmq_msg_drops",
        "description": "# of ZMQ messages dropped by ntopng",
    },
    {
        "name": "zmq_avg_msg_flows",
        "path": DATA_PATH_PREFIX + ".zmq_avg_msg_flows",
        "description": "Average # of ZMQ messages per flow reported by ntopng",
    },
]


def select(names=None):
    """Return tracked metric definitions, optionally restricted to given names.

    Raises:
        ValueError: a requested name is not a known metric.
    """
    if not names:
        return list(TRACKED_METRICS)

    known = {item["name"]: item for item in TRACKED_METRICS}
    unknown = [name for name in names if name not in known]
    if unknown:
        raise ValueError(f"unknown ntopng metric(s): {', '.join(unknown)}")
    return [known[name] for name in names]
