"""
Scenario building blocks for multi-instance queue manager tests.

A MultiInstanceHarness provisions volumes and queue manager containers,
classifies an active/standby pair, mutates it (kill, stop, start) and tracks
every resource it creates so that cleanup() can release them on any exit path.
"""
import time
import logging
import threading
from dataclasses import dataclass, field
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Mapping, NamedTuple

from .config import HarnessConfig
from .exceptions import ActiveStandbyError, CleanupError, MQTestException
from .probe import QueueManagerProbe, QueueManagerStatus
from .runtime import ContainerRuntime, Mount, Volume, unique_suffix
from . import waits

logger = logging.getLogger("mqtest.multi_instance")

# Mount points expected by the queue manager image
QM_DATA_MOUNT = "/mnt/mqm"
SHARED_LOG_MOUNT = "/mnt/mqm-log"
SHARED_DATA_MOUNT = "/mnt/mqm-data"

SHARED_LOGS_LABEL = "qmsharedlogs"
SHARED_DATA_LABEL = "qmshareddata"
QM_DATA_LABEL = "qmdata"


def build_mounts(
    qm_data: Optional[str],
    shared_logs: Optional[str] = None,
    shared_data: Optional[str] = None,
) -> list[Mount]:
    """
    Mount layout for one queue manager container.

    No per-instance data volume means no mounts at all; otherwise the data
    volume goes on /mnt/mqm and each shared volume that is given is added.
    """
    if not qm_data:
        return []
    mounts = [Mount(qm_data, QM_DATA_MOUNT)]
    if shared_logs:
        mounts.append(Mount(shared_logs, SHARED_LOG_MOUNT))
    if shared_data:
        mounts.append(Mount(shared_data, SHARED_DATA_MOUNT))
    return mounts


@dataclass(frozen=True)
class QueueManagerContainer:
    container_id: str
    data_volume: Optional[str] = None


class ActiveStandby(NamedTuple):
    active: str
    standby: str


@dataclass
class MultiInstancePair:
    first: QueueManagerContainer
    second: QueueManagerContainer
    volumes: list[str] = field(default_factory=list)

    @property
    def container_ids(self) -> tuple[str, str]:
        return self.first.container_id, self.second.container_id


def classify_pair(first_id: str, first_text: str, second_id: str, second_text: str) -> ActiveStandby:
    """
    Work out which container is active from the raw dspmq status text.

    Anything but one active plus one standby is an error; the error carries
    the text exactly as dspmq printed it.
    """
    first_status = QueueManagerStatus.from_text(first_text)
    second_status = QueueManagerStatus.from_text(second_text)
    if first_status.is_active and second_status.is_standby:
        return ActiveStandby(active=first_id, standby=second_id)
    if second_status.is_active and first_status.is_standby:
        return ActiveStandby(active=second_id, standby=first_id)
    raise ActiveStandbyError(_describe(first_text), _describe(second_text))


def _describe(status_text: str) -> str:
    return status_text or f"{QueueManagerStatus.UNKNOWN.value} (no status reported)"


class ResourceTracker:
    """
    Records containers and volumes created during a scenario.

    cleanup() removes containers before volumes, newest first, and attempts
    every step even when earlier ones fail.
    """

    def __init__(self, runtime: ContainerRuntime, stop_timeout: int = 10):
        self.runtime = runtime
        self.stop_timeout = stop_timeout
        self._containers: list[str] = []
        self._volumes: list[str] = []
        self._lock = threading.Lock()

    @property
    def containers(self) -> list[str]:
        with self._lock:
            return list(self._containers)

    @property
    def volumes(self) -> list[str]:
        with self._lock:
            return list(self._volumes)

    def track_container(self, container_id: str) -> None:
        with self._lock:
            self._containers.append(container_id)

    def track_volume(self, name: str) -> None:
        with self._lock:
            self._volumes.append(name)

    def _clean_container(self, container_id: str, failures: list[str]) -> None:
        try:
            state = self.runtime.get_state(container_id)
            logger.info(
                f"Inspected container {container_id}: status={state.get('Status')} "
                f"exit_code={state.get('ExitCode')}"
            )
            logger.debug(f"Logs for {container_id}:\n{self.runtime.get_logs(container_id, tail=50)}")
        except MQTestException as e:
            logger.warning(f"Could not inspect container {container_id}: {e}")

        logger.info(f"Stopping container: {container_id}")
        try:
            self.runtime.stop_container(container_id, timeout=self.stop_timeout)
        except MQTestException as e:
            # removal below is forced, so a failed stop is only worth a log line
            logger.warning(f"Could not stop container {container_id}: {e}")

        try:
            self.runtime.remove_container(container_id, force=True, volumes=True)
        except MQTestException as e:
            logger.error(f"Could not remove container {container_id}: {e}")
            failures.append(f"container {container_id}: {e.detail}")

    def cleanup(self) -> None:
        with self._lock:
            containers = list(reversed(self._containers))
            volumes = list(reversed(self._volumes))
            self._containers.clear()
            self._volumes.clear()

        failures: list[str] = []
        for container_id in containers:
            self._clean_container(container_id, failures)
        for name in volumes:
            try:
                self.runtime.remove_volume(name)
            except MQTestException as e:
                logger.error(f"Could not remove volume {name}: {e}")
                failures.append(f"volume {name}: {e.detail}")

        if failures:
            raise CleanupError(failures)


class MultiInstanceHarness:
    """
    Drives one scenario against the image under test.

    Usage:
        with MultiInstanceHarness(runtime, probe, config) as harness:
            pair = harness.configure_multi_instance()
            ...
    """

    def __init__(
        self,
        runtime: ContainerRuntime,
        probe: QueueManagerProbe,
        config: HarnessConfig,
        tracker: Optional[ResourceTracker] = None,
    ):
        self.runtime = runtime
        self.probe = probe
        self.config = config
        self.tracker = tracker or ResourceTracker(runtime, stop_timeout=config.stop_timeout_sec)

    def __enter__(self) -> "MultiInstanceHarness":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    @property
    def queue_manager(self) -> str:
        return self.config.queue_manager_name

    def cleanup(self) -> None:
        self.tracker.cleanup()

    # ============ Provisioning ============

    def create_volume(self, label: str) -> Volume:
        volume = self.runtime.create_volume(label)
        self.tracker.track_volume(volume.name)
        return volume

    def start_queue_manager(
        self,
        data_volume: bool = True,
        shared_logs: Optional[str] = None,
        shared_data: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> QueueManagerContainer:
        """
        Create and start one queue manager container.

        A per-instance data volume is always provisioned (and tracked); it is
        only mounted when ``data_volume`` is true.
        """
        suffix = unique_suffix()
        qm_data = self.create_volume(QM_DATA_LABEL)
        mounts = build_mounts(qm_data.name if data_volume else None, shared_logs, shared_data)
        container_env = dict(env) if env is not None else self.config.multi_instance_env()

        container_id = self.runtime.create_container(
            self.config.image,
            env=container_env,
            mounts=mounts,
            name=f"{self.config.resource_label}-{self.queue_manager.lower()}-{suffix}",
        )
        self.tracker.track_container(container_id)
        self.runtime.start_container(container_id)
        return QueueManagerContainer(container_id=container_id, data_volume=qm_data.name)

    def configure_multi_instance(self) -> MultiInstancePair:
        """Two queue managers sharing one log volume and one data volume."""
        shared_logs = self.create_volume(SHARED_LOGS_LABEL)
        shared_data = self.create_volume(SHARED_DATA_LABEL)

        first = self.start_queue_manager(True, shared_logs.name, shared_data.name)
        second = self.start_queue_manager(True, shared_logs.name, shared_data.name)

        return MultiInstancePair(
            first=first,
            second=second,
            volumes=[shared_logs.name, shared_data.name, first.data_volume, second.data_volume],
        )

    def start_concurrently(self, shared_logs: str, shared_data: str, count: int = 2) -> list[QueueManagerContainer]:
        """
        Start ``count`` queue managers at the same time against one volume pair.

        All starts are joined before returning; the first failure is re-raised
        once every start has finished.
        """
        with ThreadPoolExecutor(max_workers=count, thread_name_prefix="mqtest-start") as pool:
            futures = [
                pool.submit(self.start_queue_manager, True, shared_logs, shared_data)
                for _ in range(count)
            ]
            outcomes = []
            for future in futures:
                try:
                    outcomes.append(future.result())
                except MQTestException as e:
                    outcomes.append(e)

        for outcome in outcomes:
            if isinstance(outcome, MQTestException):
                raise outcome
        return outcomes

    # ============ Observation ============

    def wait_for_ready(self, container_id: str, timeout: Optional[float] = None) -> None:
        waits.wait_for_ready(
            self.probe,
            container_id,
            timeout=self.config.ready_timeout_sec if timeout is None else timeout,
            poll_interval=self.config.poll_interval_sec,
        )

    def status(self, container_id: str) -> QueueManagerStatus:
        return self.probe.status(container_id, self.queue_manager)

    def status_text(self, container_id: str) -> str:
        """Status exactly as dspmq printed it; empty when none was reported."""
        return self.probe.status_text(container_id, self.queue_manager)

    def get_active_standby(self, first_id: str, second_id: str) -> ActiveStandby:
        pair = classify_pair(first_id, self.status_text(first_id), second_id, self.status_text(second_id))
        logger.info(f"Active queue manager in {pair.active}, standby in {pair.standby}")
        return pair

    def wait_for_termination_message(self, container_id: str, message: str, timeout: Optional[float] = None) -> str:
        return waits.wait_for_termination_message(
            self.runtime,
            container_id,
            message,
            timeout=self.config.termination_timeout_sec if timeout is None else timeout,
            poll_interval=self.config.poll_interval_sec,
        )

    # ============ Mutation ============

    def kill(self, container_id: str, signal: str = "SIGTERM") -> None:
        self.runtime.kill_container(container_id, signal)

    def stop(self, container_id: str) -> None:
        self.runtime.stop_container(container_id, timeout=self.config.stop_timeout_sec)

    def start(self, container_id: str) -> None:
        self.runtime.start_container(container_id)

    def settle(self) -> None:
        """Give the standby time to take over after the active one was killed."""
        time.sleep(self.config.failover_settle_sec)
