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

"""Reconciling poller

Background loop that keeps the published ntopng counters current. On start
it enumerates interfaces once and allocates tracked state for every
(metric, interface) pair. Each poll cycle then scans metrics (outer loop) and
interfaces (inner loop) sequentially: fetch the interface data, extract the
counter, reconcile it against the tracked value and add the resulting delta
to the published counter. Cycles are separated by a fixed idle interval
which does not account for how long the cycle itself took.

Cancellation is cooperative and only checked between cycles.
"""

import logging
import threading
import time

from ntopstat import utils
from ntopstat.ntopng import EnumerationError, InvalidPayload, NtopngError, is_sentinel, extract_counter
from ntopstat.reconcile import reconcile
from ntopstat.retry import RetriesExhausted

ENUMERATION_POLICIES = ["degrade", "fail"]

# Reasons for skipping a (metric, interface) item in one cycle.
SKIP_REASONS = ["unavailable", "invalid", "hostname"]


class Poller:
    def __init__(
        self,
        client,
        definitions,
        handles,
        interval_secs=2.0,
        hostname=utils.getHostname,
        on_enumeration_failure="degrade",
        on_fatal=utils.terminate,
    ):
        """Initialize the reconciling poller.

        Args:
            client (NtopngClient): Upstream client (enumeration and data fetch).
            definitions (list): Tracked metric definitions (see metric_definitions).
            handles (dict): Metric name -> handle exposing addDelta(labels, value).
            interval_secs (float): Idle delay between poll cycles.
            hostname (callable): Returns hostname label value; may raise OSError.
            on_enumeration_failure (str): "degrade" to continue with no interfaces,
                "fail" to terminate when interfaces cannot be enumerated.
            on_fatal (callable): Called with an exit code on unrecoverable errors.
        """
        if on_enumeration_failure not in ENUMERATION_POLICIES:
            raise ValueError(f"invalid enumeration failure policy: {on_enumeration_failure}")

        missing = [item["name"] for item in definitions if item["name"] not in handles]
        if missing:
            raise ValueError(f"no counter handle for metric(s): {', '.join(missing)}")

        self.__client = client
        self.__definitions = definitions
        self.__handles = handles
        self.__interval = interval_secs
        self.__hostname = hostname
        self.__enumeration_policy = on_enumeration_failure
        self.__on_fatal = on_fatal

        self.__interfaces = []
        self.__tracked = {}

        self.__stop_event = threading.Event()
        self.__thread = None

        # Statistics consumed by the scrape-side collector
        self.__stats_lock = threading.Lock()
        self.__cycles = 0
        self.__cycle_secs = 0.0
        self.__skipped = {reason: 0 for reason in SKIP_REASONS}

    @property
    def interfaces(self):
        return list(self.__interfaces)

    def trackedValue(self, metric, ifid):
        return self.__tracked[(metric, ifid)]

    def stats(self):
        """Snapshot of poller statistics: cycles, last cycle duration, skips by reason."""
        with self.__stats_lock:
            return {
                "cycles": self.__cycles,
                "cycle_secs": self.__cycle_secs,
                "interfaces": len(self.__interfaces),
                "skipped": dict(self.__skipped),
            }

    # --------------------------------------------------------------------------------------
    # Lifecycle

    def start(self):
        """Initialize and run the poll loop in a background thread."""
        self.__thread = threading.Thread(target=self.__main, daemon=True, name="ntopng poller")
        self.__thread.start()
        logging.info(f"--> initiated background ntopng polling thread (interval: {self.__interval} sec)")

    def stop(self, grace_secs=2.0):
        """Signal cancellation and wait up to grace_secs for the loop to exit."""
        logging.info("Stopping ntopng poller")
        self.__stop_event.set()
        if self.__thread is None:
            return
        self.__thread.join(timeout=grace_secs)
        if self.__thread.is_alive():
            logging.warning(f"ntopng poller still busy after {grace_secs} sec grace period; exiting anyway")

    def __main(self):
        try:
            self.initialize()
            self.run()
        except (NtopngError, RetriesExhausted) as e:
            logging.critical(f"[ERROR]: Unrecoverable ntopng poller failure: {e}")
            self.__on_fatal(4)

    # --------------------------------------------------------------------------------------
    # States

    def initialize(self):
        """Enumerate interfaces and allocate tracked state for every pair."""
        try:
            interfaces = self.__client.enumerateInterfaces()
        except (RetriesExhausted, EnumerationError) as e:
            if self.__enumeration_policy == "fail":
                logging.error(f"Error: Unable to enumerate ntopng interfaces: {e}")
                raise
            logging.error(f"Error: Unable to enumerate ntopng interfaces, continuing without interfaces: {e}")
            interfaces = []

        self.__interfaces = interfaces
        self.__tracked = {}
        for item in self.__definitions:
            for ifid in self.__interfaces:
                self.__tracked[(item["name"], ifid)] = 0

        if not self.__interfaces:
            logging.warning("No ntopng interfaces to monitor; no counters will be published")

    def run(self):
        """Poll until stopped; cancellation is checked between cycles only."""
        while not self.__stop_event.is_set():
            self.pollCycle()
            self.__stop_event.wait(self.__interval)
        logging.info("ntopng poller stopped")

    def pollCycle(self):
        """One full sweep over all tracked (metric, interface) pairs."""
        start_time = time.perf_counter()

        for item in self.__definitions:
            for ifid in self.__interfaces:
                self.__pollItem(item, ifid)

        elapsed = time.perf_counter() - start_time
        with self.__stats_lock:
            self.__cycles += 1
            self.__cycle_secs = elapsed
        logging.debug(f"Completed ntopng poll cycle in {elapsed:.3f} sec")

    # --------------------------------------------------------------------------------------
    # Helpers

    def __pollItem(self, item, ifid):
        metric = item["name"]

        try:
            body = self.__client.fetchInterfaceData(ifid)
        except RetriesExhausted as e:
            logging.error(f"Error: Unable to query ntopng for interface {ifid} data; skipping this cycle: {e}")
            self.__skip("unavailable")
            return

        if is_sentinel(body):
            logging.warning(f"Error: ntopng returned no data for interface {ifid}; skipping interface")
            self.__skip("invalid")
            return

        try:
            current = extract_counter(body, item["path"])
        except InvalidPayload as e:
            logging.warning(f"Error: Invalid {metric} data for interface {ifid}; skipping: {e}")
            self.__skip("invalid")
            return

        try:
            hostname = self.__hostname()
        except OSError as e:
            logging.error(f"Error: Unable to detect hostname; dropping {metric} update for interface {ifid}: {e}")
            self.__skip("hostname")
            return

        key = (metric, ifid)
        tracked, delta = reconcile(self.__tracked[key], current)
        self.__tracked[key] = tracked
        self.__handles[metric].addDelta({"hostname": hostname, "interface_id": str(ifid)}, delta)

    def __skip(self, reason):
        with self.__stats_lock:
            self.__skipped[reason] += 1
