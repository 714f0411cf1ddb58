"""
Queue manager probe.

Runs the queue manager's own status tools inside a container. One attempt per
call; callers poll.
"""
import re
import logging
from enum import Enum
from typing import Optional

from .exceptions import ProbeError, RuntimeClientError
from .runtime import ContainerRuntime

logger = logging.getLogger("mqtest.probe")

STATUS_PATTERN = re.compile(r"STATUS\((.*?)\)")


class QueueManagerStatus(str, Enum):
    """Queue manager status as reported by dspmq."""
    RUNNING = "Running"
    STANDBY = "Running as standby"
    RUNNING_ELSEWHERE = "Running elsewhere"
    STARTING = "Starting"
    QUIESCING = "Quiescing"
    ENDING_IMMEDIATELY = "Ending immediately"
    ENDING_PREEMPTIVELY = "Ending preemptively"
    ENDED_NORMALLY = "Ended normally"
    ENDED_IMMEDIATELY = "Ended immediately"
    ENDED_UNEXPECTEDLY = "Ended unexpectedly"
    ENDED_PREEMPTIVELY = "Ended preemptively"
    NOT_AVAILABLE = "Status not available"
    UNKNOWN = "Unknown"

    @classmethod
    def from_text(cls, text: str) -> "QueueManagerStatus":
        normalized = text.strip().lower()
        for status in cls:
            if status.value.lower() == normalized:
                return status
        return cls.UNKNOWN

    @property
    def is_active(self) -> bool:
        return self is QueueManagerStatus.RUNNING

    @property
    def is_standby(self) -> bool:
        return self is QueueManagerStatus.STANDBY


def parse_status(output: str) -> Optional[str]:
    """Extract the text of the first ``STATUS(...)`` field in dspmq output."""
    match = STATUS_PATTERN.search(output)
    if match is None:
        return None
    return match.group(1)


class QueueManagerProbe:
    def __init__(self, runtime: ContainerRuntime):
        self.runtime = runtime

    def _exec(self, container_id: str, command: list[str]):
        try:
            return self.runtime.exec_in_container(container_id, command)
        except RuntimeClientError as e:
            raise ProbeError(
                f"Could not run {command[0]} in container {container_id}: {e}",
                context={"container": container_id, "command": command},
            ) from e

    def status_text(self, container_id: str, queue_manager: str) -> str:
        """Raw status string from ``dspmq -m``; empty when none was reported."""
        result = self._exec(container_id, ["dspmq", "-m", queue_manager])
        status = parse_status(result.stdout)
        if status is None:
            logger.debug(
                f"dspmq in {container_id} reported no status (rc={result.returncode}): "
                f"{(result.stdout + result.stderr).strip()}"
            )
            return ""
        return status

    def status(self, container_id: str, queue_manager: str) -> QueueManagerStatus:
        return QueueManagerStatus.from_text(self.status_text(container_id, queue_manager))

    def is_ready(self, container_id: str) -> bool:
        """True when ``chkmqready`` exits 0 (active or standby both count)."""
        result = self._exec(container_id, ["chkmqready"])
        return result.returncode == 0
