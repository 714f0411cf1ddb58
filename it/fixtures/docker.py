"""
Docker environment fixtures for the integration scenarios.
"""
import logging

import pytest

from mqtest import (
    ContainerRuntime,
    MultiInstanceHarness,
    QueueManagerProbe,
    load_config,
)

logger = logging.getLogger("mqtest.it")


@pytest.fixture(scope="session")
def harness_config():
    """Harness configuration from $MQTEST_CONFIG, .env and the environment."""
    return load_config()


@pytest.fixture(scope="session")
def runtime(harness_config):
    """
    Session-scoped container runtime.

    Skips the whole suite when there is no Docker daemon or the image under
    test has not been built/pulled.
    """
    client = ContainerRuntime(
        docker_binary=harness_config.docker_binary,
        label=harness_config.resource_label,
        command_timeout=harness_config.command_timeout_sec,
    )
    if not client.is_available():
        pytest.skip("Docker daemon is not available")
    if not client.image_exists(harness_config.image):
        pytest.skip(f"Image under test {harness_config.image} is not available (set TEST_IMAGE)")
    logger.info(f"Running scenarios against {harness_config.image}")
    return client


@pytest.fixture(scope="session")
def probe(runtime):
    return QueueManagerProbe(runtime)


@pytest.fixture
def harness(runtime, probe, harness_config):
    """
    Per-scenario harness. Everything it creates is removed at teardown,
    whether the scenario passed, failed an assertion or errored.
    """
    mi = MultiInstanceHarness(runtime, probe, harness_config)
    yield mi
    logger.info("Cleaning up scenario resources...")
    mi.cleanup()
