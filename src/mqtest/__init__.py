"""
mqtest - failover harness for multi-instance queue managers in containers.

This package provides:
- Container runtime client (runtime.py)
- Queue manager status probe (probe.py)
- Bounded waits (waits.py)
- Scenario building blocks (multi_instance.py)
- Configuration (config.py) and logging setup (logging_setup.py)
- Exception hierarchy (exceptions.py)
"""

from .config import HarnessConfig, load_config
from .exceptions import (
    MQTestException,
    ConfigError,
    RuntimeClientError,
    ProbeError,
    WaitTimeoutError,
    TerminationMessageError,
    ActiveStandbyError,
    CleanupError,
)
from .multi_instance import (
    ActiveStandby,
    MultiInstanceHarness,
    MultiInstancePair,
    QueueManagerContainer,
    ResourceTracker,
    build_mounts,
    classify_pair,
)
from .probe import QueueManagerProbe, QueueManagerStatus
from .runtime import ContainerRuntime, Mount, Volume

__all__ = [
    # Config
    "HarnessConfig",
    "load_config",
    # Exceptions
    "MQTestException",
    "ConfigError",
    "RuntimeClientError",
    "ProbeError",
    "WaitTimeoutError",
    "TerminationMessageError",
    "ActiveStandbyError",
    "CleanupError",
    # Scenario helpers
    "ActiveStandby",
    "MultiInstanceHarness",
    "MultiInstancePair",
    "QueueManagerContainer",
    "ResourceTracker",
    "build_mounts",
    "classify_pair",
    # Probe
    "QueueManagerProbe",
    "QueueManagerStatus",
    # Runtime
    "ContainerRuntime",
    "Mount",
    "Volume",
]
