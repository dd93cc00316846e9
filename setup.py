# Packaging for ntopstat, a prometheus exporter republishing ntopng ZMQ
# collector counters. The runtime config template is shipped as package data.

from setuptools import find_packages, setup

setup(
    name="ntopstat",
    version="1.0.0",
    description="Prometheus exporter for ntopng ZMQ collector statistics",
    license="MIT",
    python_requires=">=3.8",
    packages=find_packages(include=["ntopstat", "ntopstat.*"]),
    package_data={"ntopstat": ["config/ntopstat.default"]},
    install_requires=[
        "flask",
        "gunicorn",
        "prometheus_client",
        "requests",
    ],
    extras_require={
        "test": [
            "pytest",
            "prometheus_api_client",
        ],
    },
    entry_points={
        "console_scripts": [
            "ntopstat=ntopstat.node_monitoring:main",
        ],
    },
)
