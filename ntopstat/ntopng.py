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

"""ntopng REST API client

Minimal client for the two ntopng v2 REST endpoints used by ntopstat:

  GET <url>/lua/rest/v2/get/ntopng/interfaces.lua
  GET <url>/lua/rest/v2/get/interface/data.lua?ifid=<id>

Every request is wrapped with retry_with_backoff(); transport failures are
retried, whereas failures while reading a response body are unrecoverable.
Responses are streamed, so a request timeout that fires while the body is
being read is a body read failure, not a retryable transport error.
"""

import json
import logging
import math
import time
from typing import List, Optional

import requests

from ntopstat import utils
from ntopstat.retry import BackoffPolicy, retry_with_backoff

INTERFACES_ENDPOINT = "/lua/rest/v2/get/ntopng/interfaces.lua"
INTERFACE_DATA_ENDPOINT = "/lua/rest/v2/get/interface/data.lua"

# Aggregate pseudo-interface; exporting it would double sum() results in queries.
AGGREGATE_INTERFACE = "view:all"

# Body returned by ntopng for an interface it cannot report on.
SENTINEL_BODY = "1"


class NtopngError(Exception):
    """Base class for ntopng client errors."""


class UpstreamStreamError(NtopngError):
    """Response body could not be read."""


class EnumerationError(NtopngError):
    """Interface list payload is malformed."""


class InvalidPayload(NtopngError):
    """Interface data payload is missing the requested counter."""


def is_sentinel(body: str) -> bool:
    return body == SENTINEL_BODY


def parse_interfaces(body: str) -> List[int]:
    """Extract interface IDs from an interfaces.lua response, in response order."""
    try:
        document = json.loads(body)
    except ValueError as e:
        raise EnumerationError(f"interface list is not valid JSON: {e}") from e

    entries = document.get("rsp") if isinstance(document, dict) else None
    if not isinstance(entries, list):
        raise EnumerationError("interface list has no 'rsp' array")

    interfaces = []
    for entry in entries:
        if not isinstance(entry, dict):
            logging.warning(f"Ignoring malformed interface entry: {entry}")
            continue
        if entry.get("ifname") == AGGREGATE_INTERFACE:
            logging.debug(f"Skipping aggregate interface {AGGREGATE_INTERFACE}")
            continue
        try:
            ifid = int(entry["ifid"])
        except (KeyError, TypeError, ValueError, OverflowError):
            logging.warning(f"Ignoring interface entry without a valid ifid: {entry}")
            continue
        interfaces.append(ifid)

    return interfaces


def extract_counter(body: str, path: str) -> int:
    """Extract a non-negative integer counter at a dotted path of a JSON body.

    Fractional values are truncated.
    """
    try:
        document = json.loads(body)
    except ValueError as e:
        raise InvalidPayload(f"response is not valid JSON: {e}") from e

    value = utils.extractPath(document, path)
    if value is None:
        raise InvalidPayload(f"response has no field {path}")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidPayload(f"field {path} is not numeric: {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidPayload(f"field {path} is not finite: {value!r}")

    value = int(value)
    if value < 0:
        raise InvalidPayload(f"field {path} is negative: {value}")
    return value


class NtopngClient:
    def __init__(
        self,
        url: str,
        token: str,
        policy: Optional[BackoffPolicy] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        sleep=time.sleep,
    ):
        """Initialize ntopng API client.

        Args:
            url (str): Base URL of the ntopng instance, including port.
            token (str): Pre-encoded HTTP Basic credential.
            policy (BackoffPolicy, optional): Retry policy applied to every request.
            timeout (float, optional): Per-attempt request timeout in seconds.
            session (requests.Session, optional): Session used to issue requests.
            sleep (callable, optional): Wait function used between retries.
        """
        self.__url = url.rstrip("/")
        self.__headers = {"Authorization": "Basic " + token}
        self.__policy = policy or BackoffPolicy()
        self.__timeout = timeout
        self.__session = session or requests.Session()
        self.__sleep = sleep

    @property
    def url(self):
        return self.__url

    def enumerateInterfaces(self) -> List[int]:
        """Query ntopng for monitored interface IDs, excluding the aggregate view."""
        body = self.__get(INTERFACES_ENDPOINT, description="ntopng interface enumeration")
        interfaces = parse_interfaces(body)
        logging.info(f"Discovered {len(interfaces)} ntopng interface(s): {interfaces}")
        return interfaces

    def fetchInterfaceData(self, ifid: int) -> str:
        """Raw interface data body for one interface (may be the sentinel)."""
        return self.__get(
            INTERFACE_DATA_ENDPOINT,
            params={"ifid": ifid},
            description=f"ntopng query for interface {ifid} data",
        )

    def __get(self, endpoint, params=None, description="ntopng query"):
        url = self.__url + endpoint

        def attempt():
            return self.__request(url, params)

        return retry_with_backoff(
            attempt,
            self.__policy,
            retry_on=(requests.RequestException,),
            sleep=self.__sleep,
            description=description,
        )

    def __request(self, url, params):
        response = self.__session.get(url, params=params, headers=self.__headers, timeout=self.__timeout, stream=True)
        try:
            body = response.text
        except requests.RequestException as e:
            raise UpstreamStreamError(f"Failed reading response body from {url}: {e}") from e
        finally:
            response.close()

        if not response.ok:
            logging.warning(f"ntopng returned HTTP {response.status_code} for {url}")
        return body
