"""
Fixtures for the integration scenarios.

- docker.py: runtime, probe and per-scenario harness
- constants.py: literal diagnostics and statuses asserted by the scenarios
"""
from .docker import harness_config, runtime, probe, harness

__all__ = [
    "harness_config",
    "runtime",
    "probe",
    "harness",
]
