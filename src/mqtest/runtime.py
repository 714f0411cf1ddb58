"""
Container runtime client.

Thin wrapper over the ``docker`` CLI. Every call is attempted once; a failing
call raises RuntimeClientError and the calling scenario aborts.
"""
import io
import os
import json
import time
import tarfile
import logging
import subprocess
from dataclasses import dataclass
from typing import Optional, Mapping, Sequence, Any

from .exceptions import RuntimeClientError

logger = logging.getLogger("mqtest.runtime")

TERMINATION_LOG_PATH = "/run/termination-log"

# stderr fragments docker prints when `docker cp` cannot find the source path
_MISSING_PATH_MARKERS = ("Could not find the file", "No such container:path")


@dataclass(frozen=True)
class Volume:
    """A named volume; ``name`` is what the runtime knows, ``label`` what it is for."""
    name: str
    label: str


@dataclass(frozen=True)
class Mount:
    source: str
    target: str

    def as_arg(self) -> str:
        return f"{self.source}:{self.target}"


def unique_suffix() -> str:
    return f"{time.time_ns()}-{os.urandom(2).hex()}"


class ContainerRuntime:
    """Runs docker CLI commands for the harness."""

    def __init__(self, docker_binary: str = "docker", label: str = "mqtest", command_timeout: Optional[float] = 120):
        self.docker_binary = docker_binary
        self.label = label
        self.command_timeout = command_timeout

    def _run(
        self,
        args: Sequence[str],
        check: bool = True,
        text: bool = True,
        timeout: Optional[float] = None,
    ) -> subprocess.CompletedProcess:
        cmd = [self.docker_binary, *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=text,
                timeout=timeout if timeout is not None else self.command_timeout,
            )
        except FileNotFoundError as e:
            raise RuntimeClientError(f"Container runtime binary not found: {self.docker_binary}", command=cmd) from e
        except subprocess.TimeoutExpired as e:
            raise RuntimeClientError(f"Timed out running: {' '.join(cmd)}", command=cmd) from e

        if check and result.returncode != 0:
            stderr = result.stderr if text else result.stderr.decode("utf-8", errors="replace")
            raise RuntimeClientError(
                f"{' '.join(cmd)} failed with exit code {result.returncode}: {stderr.strip()}",
                command=cmd,
                returncode=result.returncode,
                stderr=stderr,
            )
        return result

    # ============ Environment ============

    def is_available(self) -> bool:
        """Check that the runtime binary exists and the daemon answers."""
        try:
            self._run(["version", "--format", "{{.Server.Version}}"], timeout=15)
        except RuntimeClientError as e:
            logger.debug(f"Container runtime unavailable: {e}")
            return False
        return True

    def image_exists(self, image: str) -> bool:
        result = self._run(["image", "inspect", image], check=False)
        return result.returncode == 0

    # ============ Volumes ============

    def create_volume(self, label: str) -> Volume:
        """Create a uniquely named volume tagged with the harness label."""
        name = f"{self.label}-{label}-{unique_suffix()}"
        result = self._run(["volume", "create", "--label", f"{self.label}={label}", name])
        created = result.stdout.strip() or name
        logger.info(f"Created volume {created} ({label})")
        return Volume(name=created, label=label)

    def remove_volume(self, name: str, force: bool = True) -> None:
        args = ["volume", "rm"]
        if force:
            args.append("--force")
        args.append(name)
        self._run(args)
        logger.info(f"Removed volume {name}")

    def list_volumes(self) -> list[str]:
        result = self._run(["volume", "ls", "--quiet", "--filter", f"label={self.label}"])
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    # ============ Containers ============

    def create_container(
        self,
        image: str,
        env: Optional[Mapping[str, str]] = None,
        mounts: Sequence[Mount] = (),
        name: Optional[str] = None,
    ) -> str:
        """Create (but do not start) a container and return its id."""
        args = ["create", "--label", f"{self.label}=container"]
        if name:
            args.extend(["--name", name])
        for key, value in (env or {}).items():
            args.extend(["-e", f"{key}={value}"])
        for mount in mounts:
            args.extend(["-v", mount.as_arg()])
        args.append(image)

        result = self._run(args)
        lines = result.stdout.strip().splitlines()
        if not lines:
            raise RuntimeClientError(f"docker create returned no container id for {image}", command=args)
        container_id = lines[-1]
        logger.info(f"Created container {name or container_id} from {image} ({len(mounts)} mount(s))")
        return container_id

    def start_container(self, container_id: str) -> None:
        self._run(["start", container_id])
        logger.info(f"Started container {container_id}")

    def stop_container(self, container_id: str, timeout: int = 10) -> None:
        """Stop a container gracefully, killing it after ``timeout`` seconds."""
        self._run(["stop", "-t", str(timeout), container_id])
        logger.info(f"Stopped container {container_id}")

    def kill_container(self, container_id: str, signal: str = "SIGTERM") -> None:
        self._run(["kill", "--signal", signal, container_id])
        logger.info(f"Sent {signal} to container {container_id}")

    def remove_container(self, container_id: str, force: bool = True, volumes: bool = True) -> None:
        args = ["rm"]
        if force:
            args.append("--force")
        if volumes:
            args.append("--volumes")
        args.append(container_id)
        self._run(args)
        logger.info(f"Removed container {container_id}")

    def list_containers(self) -> list[str]:
        result = self._run(["ps", "--all", "--quiet", "--filter", f"label={self.label}"])
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def exec_in_container(self, container_id: str, command: Sequence[str]) -> subprocess.CompletedProcess:
        """
        Run a command in a running container.

        A non-zero exit status of ``command`` is returned to the caller, not
        raised. Only a failure to talk to the runtime raises.
        """
        return self._run(["exec", container_id, *command], check=False)

    def get_logs(self, container_id: str, tail: Optional[int] = None) -> str:
        args = ["logs"]
        if tail is not None:
            args.extend(["--tail", str(tail)])
        args.append(container_id)
        result = self._run(args)
        return result.stdout + result.stderr

    def inspect(self, container_id: str) -> dict[str, Any]:
        result = self._run(["inspect", "--type", "container", container_id])
        data = json.loads(result.stdout)
        if not data:
            raise RuntimeClientError(f"No inspect data for container {container_id}")
        return data[0]

    def get_state(self, container_id: str) -> dict[str, Any]:
        return self.inspect(container_id).get("State", {})

    def read_file(self, container_id: str, path: str) -> Optional[str]:
        """
        Read a file out of a container, running or not.

        Returns None when the path does not exist in the container.
        """
        result = self._run(["cp", f"{container_id}:{path}", "-"], check=False, text=False)
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace")
            if any(marker in stderr for marker in _MISSING_PATH_MARKERS):
                return None
            raise RuntimeClientError(
                f"Failed to copy {path} from container {container_id}: {stderr.strip()}",
                command=[self.docker_binary, "cp", f"{container_id}:{path}", "-"],
                returncode=result.returncode,
                stderr=stderr,
            )

        # `docker cp ... -` streams a tar archive holding the single file
        with tarfile.open(fileobj=io.BytesIO(result.stdout)) as archive:
            for member in archive.getmembers():
                if member.isfile():
                    extracted = archive.extractfile(member)
                    if extracted is not None:
                        return extracted.read().decode("utf-8", errors="replace")
        return None

    def termination_message(self, container_id: str) -> str:
        """Contents of the container's termination log, or an empty string."""
        return self.read_file(container_id, TERMINATION_LOG_PATH) or ""
