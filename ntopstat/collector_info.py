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

"""Info metric

Implements an info metric to log execution details including code version,
the upstream ntopng instance and scrape schema. Example:

ntopstat_info{schema="1.0",upstream="http://localhost:3000",version="1.0.0"} 1.0
"""

import configparser
import logging

from prometheus_client import REGISTRY, Gauge

import ntopstat.utils as utils
from ntopstat.collector_base import Collector


class INFO(Collector):
    def __init__(self, config: configparser.ConfigParser, registry=REGISTRY):
        """Initialize info metric.

        Args:
            config (configparser.ConfigParser): Cached copy of runtime configuration.
            registry (CollectorRegistry, optional): Registry for exported metrics.
        """
        logging.debug(f"Initializing {self.__class__.__name__} data collector")

        self.__version = utils.getVersion()
        self.__schema = 1.0
        self.__registry = registry

        self.__upstream = "unknown"
        if config.has_section("ntopstat.collectors.ntopng"):
            self.__upstream = utils.ntopngUrl(config["ntopstat.collectors.ntopng"])

    def registerMetrics(self):
        """Register metrics of interest"""

        labels = ["version", "upstream", "schema"]
        self.__info = Gauge("ntopstat_info", "Info metric", labelnames=labels, registry=self.__registry)
        self.__info.labels(version=self.__version, upstream=self.__upstream, schema=self.__schema).set(1)
        logging.info("--> [registered] ntopstat_info (gauge)")

    def updateMetrics(self):
        """Update registered metrics of interest"""

        return
