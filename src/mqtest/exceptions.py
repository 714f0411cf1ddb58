"""
mqtest exceptions.

Every harness failure derives from MQTestException so scenarios can tell
harness errors apart from plain assertion failures.
"""
from typing import Optional, Any, Dict


class MQTestException(Exception):
    """Base exception for all harness errors."""

    def __init__(self, detail: str = "An error occurred", context: Optional[Dict[str, Any]] = None):
        self.detail = detail
        self.context = context or {}
        super().__init__(detail)


class ConfigError(MQTestException):
    """Raised when the harness configuration cannot be loaded or is invalid."""

    def __init__(self, detail: str = "Configuration error", context: Optional[Dict[str, Any]] = None):
        super().__init__(detail=detail, context=context)


class RuntimeClientError(MQTestException):
    """Raised when a container runtime call fails."""

    def __init__(
        self,
        detail: str = "Container runtime error",
        command: Optional[list[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        self.command = command or []
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            detail=detail,
            context={"command": self.command, "returncode": returncode, "stderr": stderr},
        )


class ProbeError(MQTestException):
    """Raised when a probe command cannot be run inside a container."""

    def __init__(self, detail: str = "Probe failed", context: Optional[Dict[str, Any]] = None):
        super().__init__(detail=detail, context=context)


class WaitTimeoutError(MQTestException):
    """Raised when a bounded wait runs out of time."""

    def __init__(self, detail: str = "Timed out", context: Optional[Dict[str, Any]] = None):
        super().__init__(detail=detail, context=context)


class TerminationMessageError(MQTestException):
    """Raised when a container terminated with an unexpected diagnostic."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            detail=f"Expected termination message to contain {expected!r}; got {actual!r}",
            context={"expected": expected, "actual": actual},
        )


class ActiveStandbyError(MQTestException):
    """Raised when two queue managers are not in an active/standby configuration."""

    def __init__(self, first_status: str, second_status: str):
        self.first_status = first_status
        self.second_status = second_status
        super().__init__(
            detail=(
                "Expected to be running in multi instance configuration, "
                f"had status of {first_status} and {second_status}"
            ),
            context={"statuses": [first_status, second_status]},
        )


class CleanupError(MQTestException):
    """Raised after cleanup when one or more resources could not be released."""

    def __init__(self, failures: list[str]):
        self.failures = failures
        super().__init__(
            detail=f"{len(failures)} cleanup step(s) failed: " + "; ".join(failures),
            context={"failures": failures},
        )
