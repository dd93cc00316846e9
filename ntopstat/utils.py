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

"""Shared helpers for ntopstat: runtime config handling, logging filters and
small utilities used across collectors."""

import base64
import configparser
import logging
import os
import platform
import sys
from importlib.metadata import PackageNotFoundError, version

# Environment variables honored on top of the runtime config file. Each entry
# maps to (section, option, secret).
ENV_OVERRIDES = {
    "NTOPNG_API_URL": ("ntopstat.collectors.ntopng", "url", False),
    "NTOPNG_API_PORT": ("ntopstat.collectors.ntopng", "port", False),
    "NTOPNG_USERNAME": ("ntopstat.collectors.ntopng", "username", False),
    "NTOPNG_PASSWORD": ("ntopstat.collectors.ntopng", "password", True),
    "PROMETHEUS_PORT": ("ntopstat", "port", False),
    "PROMETHEUS_ENDPOINT": ("ntopstat", "metrics_path", False),
}


class PrefixFilter(logging.Filter):
    """Prepend a fixed prefix to every log message passing through."""

    def __init__(self, prefix):
        super().__init__()
        self.prefix = prefix

    def filter(self, record):
        record.msg = self.prefix + str(record.msg)
        return True


def getVersion():
    """Return installed ntopstat version, or "unknown" when running from source."""
    try:
        return version("ntopstat")
    except PackageNotFoundError:
        return "unknown"


def removeQuotes(string):
    if string.startswith('"') and string.endswith('"'):
        return string[1:-1]
    if string.startswith("'") and string.endswith("'"):
        return string[1:-1]
    return string


def findConfigFile(configFileArgument=None):
    """Locate runtime config file.

    Precedence: command-line argument, NTOPSTAT_CONFIG environment variable,
    then the default config packaged with ntopstat.
    """
    if configFileArgument:
        return configFileArgument
    if "NTOPSTAT_CONFIG" in os.environ:
        return os.environ["NTOPSTAT_CONFIG"]
    return os.path.join(os.path.dirname(__file__), "config", "ntopstat.default")


def readConfig(configFile):
    config = configparser.ConfigParser()
    if not os.path.isfile(configFile):
        logging.error("[ERROR]: Unable to find runtime config file %s" % configFile)
        sys.exit(1)
    config.read(configFile)
    return config


def applyEnvOverrides(config, environ=None):
    """Override runtime config options with the supported environment variables."""
    if environ is None:
        environ = os.environ

    for variable, (section, option, secret) in ENV_OVERRIDES.items():
        if variable not in environ:
            continue
        if not config.has_section(section):
            config.add_section(section)
        config[section][option] = environ[variable]
        if secret:
            logging.info("%s set." % variable)
        else:
            logging.info("%s: %s" % (variable, environ[variable]))
    return config


def encodeCredentials(username, password):
    """Pre-encode HTTP Basic credentials as base64("username:password")."""
    token = f"{username}:{password}".encode("utf-8")
    return base64.b64encode(token).decode("ascii")


def extractPath(document, path):
    """Walk a dotted path through nested JSON objects.

    Returns None when any component of the path is missing.
    """
    node = document
    for key in path.split("."):
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


def getHostname():
    """Short hostname of this node; raises OSError when it cannot be determined."""
    hostname = platform.node()
    if not hostname:
        raise OSError("unable to determine hostname")
    return hostname.split(".", 1)[0]


def terminate(code):
    """Exit the whole process immediately, including from a background thread."""
    logging.shutdown()
    os._exit(code)


def ntopngUrl(section):
    """Full ntopng base URL ("<url>:<port>") from the ntopng runtime config section."""
    url = removeQuotes(section.get("url", "http://localhost")).rstrip("/")
    port = section.get("port", "3000")
    return f"{url}:{port}" if port else url
