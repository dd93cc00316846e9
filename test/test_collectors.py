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

import configparser
import json
from unittest.mock import patch

import pytest
from prometheus_client import CollectorRegistry
from prometheus_client.parser import text_string_to_metric_families

from ntopstat.collector_ntopng import NTOPNG
from ntopstat.monitor import Monitor
from ntopstat.node_monitoring import create_app
from ntopstat.poller import Poller

COUNTER_METRICS = [
    "ntopstat_zmq_msg_rcvd",
    "ntopstat_dropped_flows",
    "ntopstat_zmq_msg_drops",
    "ntopstat_zmq_avg_msg_flows",
]

GAUGE_METRICS = [
    "ntopstat_poll_cycle_seconds",
    "ntopstat_poll_skipped_items",
    "ntopstat_num_interfaces",
    "ntopstat_perf_runtime_seconds",
]

CONFIG = """
[ntopstat]
port = 8888
metrics_path = /metrics

[ntopstat.collectors]
enable_ntopng = True
enable_info = True

[ntopstat.collectors.ntopng]
url = http://ntopng.example
port = 3000
username = admin
password = admin
"""


class FakeClient:
    def __init__(self, url, token, **kwargs):
        self.url = url
        self.value = 0

    def enumerateInterfaces(self):
        return [0, 9]

    def fetchInterfaceData(self, ifid):
        stats = {"zmq_msg_rcvd": self.value, "dropped_flows": 1, "zmq_msg_drops": 2, "zmq_avg_msg_flows": 3}
        return json.dumps({"rsp": {"zmqRecvStats": stats}})


def generate_config(config_string=CONFIG):
    config = configparser.ConfigParser()
    config.read_string(config_string)
    return config


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def monitor(registry):
    with patch.object(Poller, "start"):
        monitor = Monitor(generate_config(), registry=registry)
        monitor.initMetrics()
        yield monitor


class TestCollectors:
    def test_collector_metrics(self, monitor):
        app = create_app(monitor, "/metrics")
        response = app.test_client().get("/metrics")
        assert response.status_code == 200
        assert response.headers["Content-Type"].startswith("text/plain")

        text = response.get_data(as_text=True)
        for metric in COUNTER_METRICS:
            assert f"# TYPE {metric} counter" in text, f"Missing counter {metric}"

        available_metrics = {metric.name for metric in text_string_to_metric_families(text)}
        for metric in GAUGE_METRICS + ["ntopstat_info"]:
            assert metric in available_metrics, f"Missing metric {metric}"

    def test_custom_metrics_path(self, monitor):
        client = create_app(monitor, "/custom").test_client()
        assert client.get("/custom").status_code == 200
        assert client.get("/metrics").status_code == 404

    def test_disabled_collector(self, registry):
        config = generate_config()
        config["ntopstat.collectors"]["enable_info"] = "False"
        with patch.object(Poller, "start"):
            monitor = Monitor(config, registry=registry)
            monitor.initMetrics()

        assert [c.__class__.__name__ for c in monitor.collectors] == ["NTOPNG"]
        assert b"ntopstat_info" not in monitor.updateAllMetrics()

    def test_info_metric(self, monitor, registry):
        families = {f.name: f for f in text_string_to_metric_families(monitor.updateAllMetrics().decode())}
        (sample,) = families["ntopstat_info"].samples
        assert sample.labels["upstream"] == "http://ntopng.example:3000"
        assert sample.value == 1.0

    def test_shutdown_stops_poller(self, monitor):
        with patch.object(Poller, "stop") as stop:
            monitor.shutdown(2.0)
        stop.assert_called_once_with(2.0)

    @pytest.mark.parametrize(
        "section,option,value",
        [
            ("ntopstat", "port", "http"),
            ("ntopstat", "port", "70000"),
            ("ntopstat", "metrics_path", "metrics"),
        ],
    )
    def test_invalid_server_config(self, registry, section, option, value):
        config = generate_config()
        config[section][option] = value
        with pytest.raises(SystemExit):
            Monitor(config, registry=registry)

    def test_environment_fixes_server_config(self, registry):
        config = generate_config()
        config["ntopstat"]["port"] = "http"
        config["ntopstat"]["metrics_path"] = "metrics"
        environ = {"PROMETHEUS_PORT": "9100", "PROMETHEUS_ENDPOINT": "/ntopng"}

        Monitor(config, registry=registry, environ=environ)

        assert config["ntopstat"].getint("port") == 9100
        assert config["ntopstat"]["metrics_path"] == "/ntopng"

    def test_environment_breaks_server_config(self, registry):
        with pytest.raises(SystemExit):
            Monitor(generate_config(), registry=registry, environ={"PROMETHEUS_PORT": "0"})

    def test_all_collectors_disabled(self, registry):
        config = generate_config()
        config["ntopstat.collectors"]["enable_info"] = "False"
        config["ntopstat.collectors"]["enable_ntopng"] = "False"
        with pytest.raises(SystemExit):
            Monitor(config, registry=registry)


class TestNtopngCollector:
    @pytest.fixture
    def collector(self, registry):
        with patch("ntopstat.collector_ntopng.NtopngClient", FakeClient), patch.object(Poller, "start"):
            collector = NTOPNG(generate_config(), registry=registry)
            collector.registerMetrics()
            yield collector

    def test_counters_published(self, collector, registry):
        poller = collector._NTOPNG__poller
        poller._Poller__hostname = lambda: "node01"
        client = poller._Poller__client
        poller.initialize()

        client.value = 100
        poller.pollCycle()
        client.value = 5
        poller.pollCycle()
        collector.updateMetrics()

        for ifid in ("0", "9"):
            labels = {"hostname": "node01", "interface_id": ifid}
            assert registry.get_sample_value("ntopstat_zmq_msg_rcvd_total", labels) == 105
            assert registry.get_sample_value("ntopstat_dropped_flows_total", labels) == 1
            assert registry.get_sample_value("ntopstat_zmq_msg_drops_total", labels) == 2
            assert registry.get_sample_value("ntopstat_zmq_avg_msg_flows_total", labels) == 3

        assert registry.get_sample_value("ntopstat_num_interfaces") == 2
        assert registry.get_sample_value("ntopstat_poll_skipped_items", {"reason": "invalid"}) == 0

    def test_metric_subset(self, registry):
        config = generate_config()
        config["ntopstat.collectors.ntopng"]["metrics"] = "zmq_msg_rcvd, zmq_msg_drops"
        with patch.object(Poller, "start"):
            collector = NTOPNG(config, registry=registry)
            collector.registerMetrics()

        definitions = collector._NTOPNG__poller._Poller__definitions
        assert [item["name"] for item in definitions] == ["zmq_msg_rcvd", "zmq_msg_drops"]

    def test_startup_logging(self, registry, caplog):
        with caplog.at_level("DEBUG"), patch.object(Poller, "start"):
            collector = NTOPNG(generate_config(), registry=registry)
            collector.registerMetrics()

        assert "ntopng API url = http://ntopng.example:3000" in caplog.text
        assert "sec of backoff per request" in caplog.text

    @pytest.mark.parametrize(
        "option,value",
        [
            ("metrics", "zmq_msg_rcvd, bogus"),
            ("on_enumeration_failure", "retry"),
            ("max_retries", "-1"),
            ("backoff_factor", "fast"),
        ],
    )
    def test_invalid_config(self, registry, option, value):
        config = generate_config()
        config["ntopstat.collectors.ntopng"][option] = value
        with pytest.raises(SystemExit):
            NTOPNG(config, registry=registry)
