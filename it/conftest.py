"""
Pytest configuration for the multi-instance failover integration scenarios.

Needs a Docker daemon and the queue manager image named by $TEST_IMAGE.
Run with: pytest it
"""
import logging
from pathlib import Path

import pytest

from mqtest.logging_setup import setup_logging

from .fixtures import harness_config, runtime, probe, harness  # noqa: F401

_it_dir = Path(__file__).parent

setup_logging(logging.INFO)


def pytest_collection_modifyitems(config, items):
    for item in items:
        if _it_dir in item.path.parents:
            item.add_marker(pytest.mark.integration)
