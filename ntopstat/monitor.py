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

# Prometheus exporter for ntopng ZMQ collector statistics.
#
# Supporting monitor class to implement a prometheus data collector with one
# or more custom collector(s).
# --

import importlib
import logging
import os
import platform
import sys
import time

from prometheus_client import REGISTRY, Gauge, generate_latest

from ntopstat import utils
from ntopstat.collector_definitions import COLLECTORS


class Monitor:
    def __init__(self, config, logFile=None, registry=REGISTRY, environ=None):

        self.config = config  # cache runtime configuration

        logLevel = os.environ.get("NTOPSTAT_LOG_LEVEL", "INFO").upper()
        if logFile:
            hostname = platform.node().split(".", 1)[0]
            logging.basicConfig(
                format=f"[{hostname}: %(asctime)s] %(message)s",
                level=logLevel,
                filename=logFile,
                datefmt="%H:%M:%S",
            )
        else:
            logging.basicConfig(format="%(message)s", level=logLevel, stream=sys.stdout)

        for section in ["ntopstat", "ntopstat.collectors"]:
            if not self.config.has_section(section):
                self.config.add_section(section)

        # environment overrides take precedence over the config file
        if environ is not None:
            utils.applyEnvOverrides(self.config, environ)

        self.enforce_global_runtime_constraints()

        self.__registry = registry

        # initialize collection of data collectors
        self.__collectors = []

        logging.debug("Completed collector initialization (base class)")
        return

    def enforce_global_runtime_constraints(self):
        server = self.config["ntopstat"]

        try:
            port = server.getint("port", 8888)
        except ValueError:
            logging.error("[ERROR]: Invalid scrape port = %s" % server.get("port"))
            sys.exit(1)
        if not 0 < port < 65536:
            logging.error("[ERROR]: Scrape port out of range = %d" % port)
            sys.exit(1)

        metrics_path = server.get("metrics_path", "/metrics")
        if not metrics_path.startswith("/"):
            logging.error("")
            logging.error("[ERROR]: Scrape path must start with '/' (metrics_path = %s)" % metrics_path)
            logging.error("")
            sys.exit(1)

        # at least one collector must remain enabled
        collectors = self.config["ntopstat.collectors"]
        enabled = [c for c in COLLECTORS if collectors.getboolean(c["runtime_option"], c["enabled_by_default"])]
        if not enabled:
            logging.error("")
            logging.error("[ERROR]: No data collectors enabled in runtime config")
            logging.error("")
            sys.exit(1)

    def initMetrics(self):

        for collector in COLLECTORS:
            runtime_option = collector["runtime_option"]
            default = collector["enabled_by_default"]
            if runtime_option:
                enabled = self.config["ntopstat.collectors"].getboolean(runtime_option, default)
            else:
                enabled = default
            if enabled:
                module = importlib.import_module(collector["file"])
                cls = getattr(module, collector["className"])
                self.__collectors.append(cls(config=self.config, registry=self.__registry))

        # Initialize all metrics
        prefix_filter = utils.PrefixFilter("   ")
        for collector in self.__collectors:
            logging.info("\nRegistering metrics for collector: %s" % collector.__class__.__name__)
            logging.getLogger().addFilter(prefix_filter)
            collector.registerMetrics()
            logging.getLogger().removeFilter(prefix_filter)

        # Register performance runtime metric(s)
        labels = ["collector"]
        logging.info("\nRegistering performance metrics for collector timing")

        self.__perfMetric = Gauge(
            "ntopstat_perf_runtime_seconds",
            "Time to complete one scrape update in seconds",
            labelnames=labels,
            registry=self.__registry,
        )

        # Gather metrics on startup
        self.updateAllMetrics()

    @property
    def collectors(self):
        return list(self.__collectors)

    def updateAllMetrics(self):
        start_time_total = time.perf_counter()

        for collector in self.__collectors:
            start_time = time.perf_counter()
            collector.updateMetrics()
            elapsed_time = time.perf_counter() - start_time
            self.__perfMetric.labels(collector.__class__.__name__).set(elapsed_time)

        elapsed_time_total = time.perf_counter() - start_time_total
        self.__perfMetric.labels("total").set(elapsed_time_total)

        return generate_latest(self.__registry)

    def shutdown(self, grace_secs=2.0):
        """Stop all collectors; background work gets at most grace_secs to finish."""
        logging.info("Shutting down ntopstat collectors")
        for collector in self.__collectors:
            collector.shutdown(grace_secs)
