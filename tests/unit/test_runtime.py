import io
import json
import subprocess
import tarfile

import pytest

from mqtest.exceptions import RuntimeClientError
from mqtest.runtime import ContainerRuntime, Mount, Volume, TERMINATION_LOG_PATH


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


def tar_bytes(name: str, content: str) -> bytes:
    buf = io.BytesIO()
    data = content.encode("utf-8")
    with tarfile.open(fileobj=buf, mode="w") as archive:
        info = tarfile.TarInfo(name=name)
        info.size = len(data)
        archive.addfile(info, io.BytesIO(data))
    return buf.getvalue()


@pytest.fixture
def runtime():
    return ContainerRuntime(docker_binary="docker", label="mqtest")


@pytest.fixture
def mock_run(mocker):
    return mocker.patch("mqtest.runtime.subprocess.run", return_value=completed())


def called_args(mock_run, index=-1):
    return mock_run.call_args_list[index].args[0]


class TestRunner:
    def test_failed_command_raises_with_details(self, runtime, mock_run):
        mock_run.return_value = completed(returncode=1, stderr="Error: No such container: abc\n")

        with pytest.raises(RuntimeClientError) as exc_info:
            runtime.start_container("abc")

        err = exc_info.value
        assert err.returncode == 1
        assert "No such container" in err.stderr
        assert err.command == ["docker", "start", "abc"]

    def test_missing_binary_raises(self, runtime, mock_run):
        mock_run.side_effect = FileNotFoundError("docker")

        with pytest.raises(RuntimeClientError, match="binary not found"):
            runtime.start_container("abc")

    def test_cli_timeout_raises(self, runtime, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="docker", timeout=1)

        with pytest.raises(RuntimeClientError, match="Timed out"):
            runtime.stop_container("abc")

    def test_default_command_timeout_is_applied(self, mock_run):
        ContainerRuntime(command_timeout=42).start_container("abc")
        assert mock_run.call_args.kwargs["timeout"] == 42

    def test_is_available(self, runtime, mock_run):
        mock_run.return_value = completed(stdout="24.0.7\n")
        assert runtime.is_available() is True

        mock_run.return_value = completed(returncode=1, stderr="Cannot connect to the Docker daemon")
        assert runtime.is_available() is False

    def test_image_exists(self, runtime, mock_run):
        mock_run.return_value = completed(returncode=1, stderr="No such image")
        assert runtime.image_exists("ibmcom/mq") is False
        assert called_args(mock_run) == ["docker", "image", "inspect", "ibmcom/mq"]


class TestVolumes:
    def test_create_volume_is_uniquely_named_and_labelled(self, runtime, mock_run):
        mock_run.side_effect = lambda cmd, **kwargs: completed(stdout=cmd[-1] + "\n")

        first = runtime.create_volume("qmsharedlogs")
        second = runtime.create_volume("qmsharedlogs")

        assert isinstance(first, Volume)
        assert first.label == "qmsharedlogs"
        assert first.name.startswith("mqtest-qmsharedlogs-")
        assert first.name != second.name
        cmd = called_args(mock_run, 0)
        assert cmd[:3] == ["docker", "volume", "create"]
        assert "--label" in cmd and "mqtest=qmsharedlogs" in cmd

    def test_remove_volume(self, runtime, mock_run):
        runtime.remove_volume("vol1")
        assert called_args(mock_run) == ["docker", "volume", "rm", "--force", "vol1"]

    def test_list_volumes_filters_by_label(self, runtime, mock_run):
        mock_run.return_value = completed(stdout="vol1\nvol2\n\n")

        assert runtime.list_volumes() == ["vol1", "vol2"]
        assert "label=mqtest" in called_args(mock_run)


class TestContainers:
    def test_create_container_renders_env_and_mounts(self, runtime, mock_run):
        mock_run.return_value = completed(stdout="0123abcd\n")

        container_id = runtime.create_container(
            "ibmcom/mq:latest",
            env={"LICENSE": "accept", "MQ_QMGR_NAME": "QM1"},
            mounts=[Mount("vol-data", "/mnt/mqm"), Mount("vol-logs", "/mnt/mqm-log")],
            name="mqtest-qm1-1",
        )

        assert container_id == "0123abcd"
        cmd = called_args(mock_run)
        assert cmd[:2] == ["docker", "create"]
        assert cmd[-1] == "ibmcom/mq:latest"
        assert ["--name", "mqtest-qm1-1"] == cmd[cmd.index("--name"):cmd.index("--name") + 2]
        assert "LICENSE=accept" in cmd
        assert "MQ_QMGR_NAME=QM1" in cmd
        assert "vol-data:/mnt/mqm" in cmd
        assert "vol-logs:/mnt/mqm-log" in cmd

    def test_create_container_without_mounts(self, runtime, mock_run):
        mock_run.return_value = completed(stdout="ffff\n")

        runtime.create_container("img")

        assert "-v" not in called_args(mock_run)

    def test_create_container_without_id_raises(self, runtime, mock_run):
        mock_run.return_value = completed(stdout="")

        with pytest.raises(RuntimeClientError, match="no container id"):
            runtime.create_container("img")

    def test_lifecycle_commands(self, runtime, mock_run):
        runtime.start_container("c1")
        runtime.stop_container("c1", timeout=5)
        runtime.kill_container("c1", "SIGTERM")
        runtime.remove_container("c1")

        assert [call.args[0] for call in mock_run.call_args_list] == [
            ["docker", "start", "c1"],
            ["docker", "stop", "-t", "5", "c1"],
            ["docker", "kill", "--signal", "SIGTERM", "c1"],
            ["docker", "rm", "--force", "--volumes", "c1"],
        ]

    def test_exec_returns_nonzero_exit_without_raising(self, runtime, mock_run):
        mock_run.return_value = completed(returncode=1, stdout="", stderr="not ready")

        result = runtime.exec_in_container("c1", ["chkmqready"])

        assert result.returncode == 1
        assert called_args(mock_run) == ["docker", "exec", "c1", "chkmqready"]

    def test_get_logs_combines_streams(self, runtime, mock_run):
        mock_run.return_value = completed(stdout="out\n", stderr="err\n")

        assert runtime.get_logs("c1", tail=20) == "out\nerr\n"
        assert called_args(mock_run) == ["docker", "logs", "--tail", "20", "c1"]

    def test_inspect_and_state(self, runtime, mock_run):
        payload = [{"Id": "c1", "State": {"Status": "exited", "ExitCode": 1}}]
        mock_run.return_value = completed(stdout=json.dumps(payload))

        assert runtime.inspect("c1")["Id"] == "c1"
        assert runtime.get_state("c1") == {"Status": "exited", "ExitCode": 1}

    def test_list_containers(self, runtime, mock_run):
        mock_run.return_value = completed(stdout="c1\nc2\n")

        assert runtime.list_containers() == ["c1", "c2"]
        assert "--all" in called_args(mock_run)


class TestTerminationLog:
    def test_reads_termination_log_from_archive(self, runtime, mock_run):
        message = "Missing required mount '/mnt/mqm-log'\n"
        mock_run.return_value = completed(stdout=tar_bytes("termination-log", message), stderr=b"")

        assert runtime.termination_message("c1") == message
        assert called_args(mock_run) == ["docker", "cp", f"c1:{TERMINATION_LOG_PATH}", "-"]
        assert mock_run.call_args.kwargs["text"] is False

    def test_missing_file_reads_as_empty(self, runtime, mock_run):
        mock_run.return_value = completed(
            returncode=1,
            stdout=b"",
            stderr=b"Error response from daemon: Could not find the file /run/termination-log in container c1\n",
        )

        assert runtime.read_file("c1", TERMINATION_LOG_PATH) is None
        assert runtime.termination_message("c1") == ""

    def test_other_copy_errors_raise(self, runtime, mock_run):
        mock_run.return_value = completed(
            returncode=1,
            stdout=b"",
            stderr=b"Error response from daemon: No such container: c1\n",
        )

        with pytest.raises(RuntimeClientError, match="No such container"):
            runtime.termination_message("c1")
