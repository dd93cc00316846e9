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
# Server entry point: exposes collected metrics on a scrape endpoint served
# by gunicorn. A single worker is used so that only one poller talks to
# ntopng. Collectors are initialized after the worker forks, and stopped
# from the worker exit hook on SIGINT/SIGTERM.
# --

import argparse
import logging
import os

import gunicorn.app.base
from flask import Flask
from prometheus_client import CONTENT_TYPE_LATEST

from ntopstat import utils
from ntopstat.monitor import Monitor


class NtopstatServer(gunicorn.app.base.BaseApplication):
    def __init__(self, app, options=None):
        self.options = options or {}
        self.application = app
        super().__init__()

    def load_config(self):
        config = {key: value for key, value in self.options.items() if key in self.cfg.settings and value is not None}
        for key, value in config.items():
            self.cfg.set(key.lower(), value)

    def load(self):
        return self.application


def create_app(monitor, metrics_path="/metrics"):
    """Flask application serving monitor metrics at metrics_path."""
    app = Flask("ntopstat")

    @app.route(metrics_path)
    def metrics():
        return monitor.updateAllMetrics(), {"Content-Type": CONTENT_TYPE_LATEST}

    return app


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--configfile", type=str, help="runtime config file", default=None)
    parser.add_argument("--logfile", type=str, help="log file (default: stdout)", default=None)
    args = parser.parse_args()

    configFile = utils.findConfigFile(args.configfile)
    config = utils.readConfig(configFile)

    monitor = Monitor(config, logFile=args.logfile, environ=os.environ)
    logging.info("The PID of this process is: %d" % os.getpid())
    logging.info("Reading runtime config from %s" % configFile)

    server = config["ntopstat"]
    listen = utils.removeQuotes(server.get("listen_address", "0.0.0.0"))
    port = server.getint("port", 8888)
    metrics_path = server.get("metrics_path", "/metrics")
    grace_secs = server.getfloat("shutdown_grace_secs", 2.0)

    app = create_app(monitor, metrics_path)

    def post_fork(server, worker):
        monitor.initMetrics()

    def worker_exit(server, worker):
        monitor.shutdown(grace_secs)
        logging.info("Exiting...")

    options = {
        "bind": f"{listen}:{port}",
        "workers": 1,
        "post_fork": post_fork,
        "worker_exit": worker_exit,
        "graceful_timeout": grace_secs + 1,
    }

    logging.info("Serving metrics on %s:%d%s" % (listen, port, metrics_path))
    NtopstatServer(app, options).run()


if __name__ == "__main__":
    main()
