"""
Harness configuration.

Values come from (lowest to highest precedence) model defaults, an optional
YAML file and environment variables (a local ``.env`` is loaded first).
"""
import os
import logging
from typing import Optional, Dict, Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ConfigDict, ValidationError

from .exceptions import ConfigError

logger = logging.getLogger("mqtest.config")

CONFIG_FILE_ENV = "MQTEST_CONFIG"

# field name -> environment variable
ENV_OVERRIDES = {
    "image": "TEST_IMAGE",
    "queue_manager_name": "MQTEST_QMGR_NAME",
    "license": "MQTEST_LICENSE",
    "docker_binary": "MQTEST_DOCKER",
    "resource_label": "MQTEST_LABEL",
    "ready_timeout_sec": "MQTEST_READY_TIMEOUT",
    "poll_interval_sec": "MQTEST_POLL_INTERVAL",
    "termination_timeout_sec": "MQTEST_TERMINATION_TIMEOUT",
    "failover_settle_sec": "MQTEST_FAILOVER_SETTLE",
    "stop_timeout_sec": "MQTEST_STOP_TIMEOUT",
    "command_timeout_sec": "MQTEST_COMMAND_TIMEOUT",
    "enable_race_scenario": "MQTEST_ENABLE_RACE_SCENARIO",
}


class HarnessConfig(BaseModel):
    """
    Settings shared by every scenario.

    The multi-instance container environment is derived from this value
    (see multi_instance_env) and handed to each harness explicitly.
    """
    model_config = ConfigDict(extra='forbid')

    image: str = Field(default="ibmcom/mq:latest", min_length=1, description="Image under test")
    queue_manager_name: str = Field(default="QM1", min_length=1, max_length=48)
    license: str = Field(default="accept")
    docker_binary: str = Field(default="docker", min_length=1)
    resource_label: str = Field(default="mqtest", pattern=r"^[a-z0-9][a-z0-9_.-]*$",
                                description="Label and name prefix for created containers and volumes")
    ready_timeout_sec: float = Field(default=120.0, gt=0)
    poll_interval_sec: float = Field(default=1.0, gt=0)
    termination_timeout_sec: float = Field(default=30.0, gt=0)
    failover_settle_sec: float = Field(default=2.0, ge=0)
    stop_timeout_sec: int = Field(default=10, ge=0)
    command_timeout_sec: float = Field(default=120.0, gt=0)
    enable_race_scenario: bool = Field(default=False,
                                       description="Run the concurrent start scenario (needs product file locking)")

    def multi_instance_env(self) -> Dict[str, str]:
        """Environment passed to every multi-instance queue manager container."""
        return {
            "LICENSE": self.license,
            "MQ_QMGR_NAME": self.queue_manager_name,
            "MQ_MULTI_INSTANCE": "true",
        }


def _read_config_file(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        raise ConfigError(f"Configuration file '{path}' does not exist", context={"path": path})
    try:
        with open(path, 'r', encoding='utf-8') as f:
            loaded = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load configuration file '{path}': {e}", context={"path": path})
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"Configuration file '{path}' must contain a mapping", context={"path": path})
    return loaded


def load_config(config_file: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> HarnessConfig:
    """
    Build the harness configuration.

    Args:
        config_file: Optional YAML file; falls back to $MQTEST_CONFIG.
        environ: Environment mapping to read overrides from (defaults to os.environ).
    """
    if environ is None:
        load_dotenv()
        environ = dict(os.environ)

    raw: Dict[str, Any] = {}
    path = config_file or environ.get(CONFIG_FILE_ENV)
    if path:
        raw.update(_read_config_file(path))
        logger.debug(f"Loaded harness configuration from {path}")

    for field_name, env_name in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is not None and value.strip() != "":
            raw[field_name] = value.strip()

    try:
        return HarnessConfig(**raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid harness configuration: {e}", context={"errors": e.errors()})
