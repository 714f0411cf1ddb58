# src/mqtest/waits.py
import time
import logging

from .exceptions import WaitTimeoutError, TerminationMessageError

logger = logging.getLogger("mqtest.waits")


def wait_for_condition(predicate, timeout: float, poll_interval: float = 0.5, fail_msg: str = ""):
    """
    Universal polling helper: sleep, check, repeat until ``timeout``.

    Returns the first truthy value of ``predicate``.
    """
    start = time.time()
    while time.time() - start < timeout:
        time.sleep(poll_interval)
        result = predicate()
        if result:
            return result

    msg = fail_msg or f"Condition not met within {timeout}s"
    raise WaitTimeoutError(msg, context={"timeout": timeout})


def wait_for_ready(probe, container_id: str, timeout: float = 120, poll_interval: float = 1.0) -> None:
    """Block until the queue manager in ``container_id`` reports ready."""
    logger.info(f"Waiting for {container_id} to become ready (timeout: {timeout}s)...")
    start = time.time()
    wait_for_condition(
        lambda: probe.is_ready(container_id),
        timeout=timeout,
        poll_interval=poll_interval,
        fail_msg=f"Timed out waiting for container {container_id} to become ready",
    )
    logger.info(f"Container {container_id} ready after {time.time() - start:.1f}s")


def wait_for_termination_message(
    runtime,
    container_id: str,
    message: str,
    timeout: float = 30,
    poll_interval: float = 1.0,
) -> str:
    """
    Wait for the container to write its termination log and check its text.

    Raises TerminationMessageError as soon as a message appears that does not
    contain ``message``, WaitTimeoutError if none appears in time.
    """
    logger.info(f"Waiting for {container_id} to terminate with {message!r} (timeout: {timeout}s)...")
    actual = wait_for_condition(
        lambda: runtime.termination_message(container_id),
        timeout=timeout,
        poll_interval=poll_interval,
        fail_msg=f"Timed out waiting for container {container_id} to terminate",
    )
    if message not in actual:
        raise TerminationMessageError(expected=message, actual=actual)
    logger.info(f"Container {container_id} terminated with: {actual.strip()}")
    return actual
