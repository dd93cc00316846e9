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

"""ntopng ZMQ counters

Republishes cumulative ZMQ collector statistics reported by ntopng for each
monitored interface as prometheus counters. Values are kept current by a
background poller (see ntopstat.poller); scrapes only refresh poller health
gauges. Example metrics:

ntopstat_zmq_msg_rcvd_total{hostname="collector01",interface_id="0"} 1.235e+06
ntopstat_dropped_flows_total{hostname="collector01",interface_id="0"} 12.0
ntopstat_poll_cycle_seconds 0.042
ntopstat_poll_skipped_items{reason="unavailable"} 0.0
ntopstat_num_interfaces 2.0

Configuration (runtime config):
[ntopstat.collectors.ntopng]
url = http://localhost
port = 3000
username = admin
password = admin
interval_secs = 2
max_retries = 40
backoff_base_secs = 1
backoff_factor = 1.2
on_enumeration_failure = degrade
"""

import configparser
import logging
import re
import sys

from prometheus_client import REGISTRY, Counter, Gauge

import ntopstat.metric_definitions as metric_definitions
import ntopstat.utils as utils
from ntopstat.collector_base import Collector
from ntopstat.ntopng import NtopngClient
from ntopstat.poller import ENUMERATION_POLICIES, SKIP_REASONS, Poller
from ntopstat.retry import BackoffPolicy

SECTION = "ntopstat.collectors.ntopng"


class CounterHandle:
    """Add-only handle to one labelled prometheus counter."""

    def __init__(self, counter: Counter):
        self.__counter = counter

    def addDelta(self, labels: dict, value: int):
        if value < 0:
            raise ValueError(f"counter delta must be non-negative (got {value})")
        self.__counter.labels(**labels).inc(value)


class NTOPNG(Collector):
    def __init__(self, config: configparser.ConfigParser, registry=REGISTRY):
        """Initialize the NTOPNG data collector.

        Args:
            config (configparser.ConfigParser): Cached copy of runtime configuration.
            registry (CollectorRegistry, optional): Registry for exported metrics.
        """
        logging.debug("Initializing ntopng data collector")

        self.__prefix = "ntopstat_"
        self.__registry = registry
        self.__counters = {}
        self.__gauges = {}
        self.__poller = None

        if not config.has_section(SECTION):
            config.add_section(SECTION)
        section = config[SECTION]

        self.__url = utils.ntopngUrl(section)
        username = utils.removeQuotes(section.get("username", "admin"))
        password = utils.removeQuotes(section.get("password", "admin"))
        self.__token = utils.encodeCredentials(username, password)

        try:
            self.__policy = BackoffPolicy(
                max_retries=section.getint("max_retries", 40),
                base_secs=section.getfloat("backoff_base_secs", 1.0),
                factor=section.getfloat("backoff_factor", 1.2),
            )
            self.__interval = section.getfloat("interval_secs", 2.0)
            self.__timeout = section.getfloat("request_timeout_secs", None)
            names = [x for x in re.split(r",\s*", section.get("metrics", "").strip()) if x]
            self.__definitions = metric_definitions.select(names)
        except ValueError as e:
            logging.error(f"[ERROR]: Invalid [{SECTION}] runtime config: {e}")
            sys.exit(1)

        self.__enumeration_policy = section.get("on_enumeration_failure", "degrade")
        if self.__enumeration_policy not in ENUMERATION_POLICIES:
            logging.error(f"[ERROR]: Invalid on_enumeration_failure = {self.__enumeration_policy}")
            logging.error(f"Please choose one of {ENUMERATION_POLICIES} in runtime config")
            sys.exit(1)

        logging.debug(
            f"ntopng retry policy = {self.__policy} (up to {sum(self.__policy.delays())} sec of backoff per request)"
        )

    # --------------------------------------------------------------------------------------
    # Required child methods

    def registerMetrics(self):
        """Register metrics of interest"""

        labels = ["hostname", "interface_id"]
        handles = {}
        for item in self.__definitions:
            metric = self.__prefix + item["name"]
            self.__counters[item["name"]] = Counter(
                metric, item["description"], labelnames=labels, registry=self.__registry
            )
            handles[item["name"]] = CounterHandle(self.__counters[item["name"]])
            logging.info("--> [registered] %s (counter)" % metric)

        metric = self.__prefix + "poll_cycle_seconds"
        self.__gauges["cycle_secs"] = Gauge(
            metric, "Time to complete the last ntopng poll cycle in seconds", registry=self.__registry
        )
        logging.info("--> [registered] %s (gauge)" % metric)

        metric = self.__prefix + "poll_skipped_items"
        self.__gauges["skipped"] = Gauge(
            metric, "Cumulative # of ntopng items skipped by reason", labelnames=["reason"], registry=self.__registry
        )
        for reason in SKIP_REASONS:
            self.__gauges["skipped"].labels(reason=reason).set(0)
        logging.info("--> [registered] %s (gauge)" % metric)

        metric = self.__prefix + "num_interfaces"
        self.__gauges["interfaces"] = Gauge(metric, "# of ntopng interfaces monitored", registry=self.__registry)
        logging.info("--> [registered] %s (gauge)" % metric)

        client = NtopngClient(self.__url, self.__token, policy=self.__policy, timeout=self.__timeout)
        logging.info(f"--> ntopng API url = {client.url}")
        self.__poller = Poller(
            client,
            self.__definitions,
            handles,
            interval_secs=self.__interval,
            on_enumeration_failure=self.__enumeration_policy,
        )
        self.__poller.start()

    def updateMetrics(self):
        """Update registered metrics of interest"""
        stats = self.__poller.stats()
        self.__gauges["cycle_secs"].set(stats["cycle_secs"])
        self.__gauges["interfaces"].set(stats["interfaces"])
        for reason, count in stats["skipped"].items():
            self.__gauges["skipped"].labels(reason=reason).set(count)
        return

    def shutdown(self, grace_secs: float):
        if self.__poller is not None:
            self.__poller.stop(grace_secs)
