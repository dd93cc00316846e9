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

import json
from unittest.mock import Mock, PropertyMock

import pytest
import requests

from ntopstat.ntopng import (
    INTERFACE_DATA_ENDPOINT,
    INTERFACES_ENDPOINT,
    EnumerationError,
    InvalidPayload,
    NtopngClient,
    UpstreamStreamError,
    extract_counter,
    is_sentinel,
    parse_interfaces,
)
from ntopstat.retry import BackoffPolicy, RetriesExhausted

URL = "http://ntopng.example:3000"
TOKEN = "YWRtaW46YWRtaW4="


def interfaces_body(entries):
    return json.dumps({"rc": 0, "rc_str": "OK", "rsp": entries})


def mock_response(text, status_code=200):
    response = Mock()
    response.text = text
    response.status_code = status_code
    response.ok = status_code < 400
    return response


class TestParsing:
    def test_aggregate_interface_filtered(self):
        body = interfaces_body([{"ifid": 0, "ifname": "eth0"}, {"ifid": 9, "ifname": "view:all"}])
        assert parse_interfaces(body) == [0]

    def test_upstream_order_preserved(self):
        body = interfaces_body(
            [
                {"ifid": 3, "ifname": "tcp://*:5556"},
                {"ifid": 1, "ifname": "tcp://*:5557"},
                {"ifid": 2, "ifname": "eth1"},
            ]
        )
        assert parse_interfaces(body) == [3, 1, 2]

    def test_malformed_entries_ignored(self):
        body = interfaces_body([{"ifname": "eth0"}, "eth1", {"ifid": "4", "ifname": "eth4"}])
        assert parse_interfaces(body) == [4]

    def test_empty_list(self):
        assert parse_interfaces(interfaces_body([])) == []

    @pytest.mark.parametrize("body", ["not json", "1", json.dumps({"rc": -1}), json.dumps({"rsp": {}})])
    def test_invalid_interface_list(self, body):
        with pytest.raises(EnumerationError):
            parse_interfaces(body)

    def test_sentinel(self):
        assert is_sentinel("1")
        assert not is_sentinel("1\n")
        assert not is_sentinel('{"rsp": 1}')

    def test_extract_counter(self):
        body = json.dumps({"rsp": {"zmqRecvStats": {"zmq_msg_rcvd": 1234, "zmq_avg_msg_flows": 2.75}}})
        assert extract_counter(body, "rsp.zmqRecvStats.zmq_msg_rcvd") == 1234
        assert extract_counter(body, "rsp.zmqRecvStats.zmq_avg_msg_flows") == 2

    @pytest.mark.parametrize(
        "stats",
        [{}, {"zmq_msg_rcvd": "many"}, {"zmq_msg_rcvd": True}, {"zmq_msg_rcvd": -5}, {"zmq_msg_rcvd": None}],
    )
    def test_extract_counter_invalid(self, stats):
        body = json.dumps({"rsp": {"zmqRecvStats": stats}})
        with pytest.raises(InvalidPayload):
            extract_counter(body, "rsp.zmqRecvStats.zmq_msg_rcvd")

    def test_extract_counter_not_json(self):
        with pytest.raises(InvalidPayload):
            extract_counter("<html>", "rsp.zmqRecvStats.zmq_msg_rcvd")

    @pytest.mark.parametrize("value", ["Infinity", "-Infinity", "NaN", "1e400"])
    def test_extract_counter_not_finite(self, value):
        body = '{"rsp": {"zmqRecvStats": {"zmq_msg_rcvd": ' + value + "}}}"
        with pytest.raises(InvalidPayload):
            extract_counter(body, "rsp.zmqRecvStats.zmq_msg_rcvd")

    @pytest.mark.parametrize("value", ["Infinity", "NaN", "1e400"])
    def test_interface_id_not_finite(self, value):
        body = '{"rsp": [{"ifid": ' + value + ', "ifname": "eth0"}, {"ifid": 1, "ifname": "eth1"}]}'
        assert parse_interfaces(body) == [1]


class TestNtopngClient:
    @pytest.fixture
    def session(self):
        return Mock()

    @pytest.fixture
    def sleep(self):
        return Mock()

    @pytest.fixture
    def client(self, session, sleep):
        return NtopngClient(URL + "/", TOKEN, policy=BackoffPolicy(max_retries=3), session=session, sleep=sleep)

    def test_enumerate_interfaces(self, client, session):
        session.get.return_value = mock_response(
            interfaces_body([{"ifid": 0, "ifname": "eth0"}, {"ifid": 9, "ifname": "view:all"}])
        )

        assert client.enumerateInterfaces() == [0]

        session.get.assert_called_once()
        args, kwargs = session.get.call_args
        assert args[0] == URL + INTERFACES_ENDPOINT
        assert kwargs["headers"] == {"Authorization": "Basic " + TOKEN}

    def test_fetch_interface_data(self, client, session):
        body = json.dumps({"rsp": {"zmqRecvStats": {"zmq_msg_rcvd": 1}}})
        response = mock_response(body)
        session.get.return_value = response

        assert client.fetchInterfaceData(7) == body

        args, kwargs = session.get.call_args
        assert args[0] == URL + INTERFACE_DATA_ENDPOINT
        assert kwargs["params"] == {"ifid": 7}
        response.close.assert_called_once()

    def test_sentinel_returned_without_retry(self, client, session, sleep):
        session.get.return_value = mock_response("1")
        assert client.fetchInterfaceData(0) == "1"
        assert session.get.call_count == 1
        sleep.assert_not_called()

    def test_transport_error_retried(self, client, session, sleep):
        body = interfaces_body([{"ifid": 2, "ifname": "eth2"}])
        session.get.side_effect = [
            requests.ConnectionError("refused"),
            requests.Timeout("timed out"),
            mock_response(body),
        ]

        assert client.enumerateInterfaces() == [2]
        assert session.get.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [1, 1]

    def test_retries_exhausted(self, client, session, sleep):
        session.get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(RetriesExhausted):
            client.fetchInterfaceData(0)

        assert session.get.call_count == 4
        assert sleep.call_count == 3

    @pytest.mark.parametrize(
        "error",
        [
            requests.exceptions.ChunkedEncodingError("truncated"),
            requests.ConnectionError("Read timed out."),
        ],
    )
    def test_body_read_error_not_retried(self, client, session, sleep, error):
        response = Mock()
        type(response).text = PropertyMock(side_effect=error)
        session.get.return_value = response

        with pytest.raises(UpstreamStreamError):
            client.fetchInterfaceData(0)

        assert session.get.call_count == 1
        sleep.assert_not_called()
        response.close.assert_called_once()

    def test_http_error_status_returns_body(self, client, session, sleep, caplog):
        session.get.return_value = mock_response("Unauthorized", status_code=401)

        with caplog.at_level("WARNING"):
            assert client.fetchInterfaceData(0) == "Unauthorized"

        assert "HTTP 401" in caplog.text
        sleep.assert_not_called()

    def test_invalid_enumeration_payload(self, client, session):
        session.get.return_value = mock_response("<html>maintenance</html>")
        with pytest.raises(EnumerationError):
            client.enumerateInterfaces()

    def test_url_normalized(self, client):
        assert client.url == URL
