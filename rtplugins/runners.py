"""Run a pipeline task inside a Docker container next to a Docker-in-Docker daemon."""

from __future__ import annotations

import logging
import os
import posixpath
import shutil
import subprocess
import sys
import time
from dataclasses import dataclass
from pathlib import Path

from .taskverse_utils import PLUGIN_NAME, TOOL_FOLDER

DEFAULT_IMAGE = "releases-docker.jfrog.io/jfrog/pipelines-u20node:16"
NETWORK_NAME = PLUGIN_NAME
CONTAINER_NAME = PLUGIN_NAME + "-run"
DIND_CONTAINER_NAME = PLUGIN_NAME + "-dind"
CONTAINER_WORK_DIR = "/workdir"
CONTAINER_TASK_DIR = "/task"
CONTAINER_DEPENDENCIES_DIR = "/dependencies"
CONTAINER_POST_TASK_SCRIPT_PATH = "/post-task/script.sh"
DIND_START_SECONDS = 15

log = logging.getLogger(__name__)


def _run_docker(args, output=None) -> None:
    """Run a docker command, streaming its combined output to output (stdout by default)."""
    command = ["docker", *args]
    log.debug("docker %s", " ".join(args))
    out = output if output is not None else sys.stdout
    with subprocess.Popen(
        command,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        errors="replace",
    ) as process:
        for line in process.stdout:
            out.write(line)
        returncode = process.wait()
    if returncode:
        raise subprocess.CalledProcessError(returncode, command)


def _docker_output(args) -> str:
    """Run a docker command and return its combined output, stripped."""
    command = ["docker", *args]
    log.debug("docker %s", " ".join(args))
    completed = subprocess.run(
        command,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        check=True,
    )
    output = completed.stdout or ""
    log.debug("Output: %s", output)
    return output.strip()


def _write_executable(path: Path, content: bytes) -> None:
    descriptor = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o777)
    with os.fdopen(descriptor, "wb") as handle:
        handle.write(content)


@dataclass
class RunnerOptions:
    """What a runner needs to run one task."""

    path_to_task: str = ""
    path_to_dependencies: str = ""
    path_to_local_developer_folder: str = ""
    path_to_working_directory: str = ""
    path_to_post_task_script: str = ""
    script: bytes = b""
    step_json: bytes = b""
    output: object = None


@dataclass(frozen=True)
class RuntimeConfiguration:
    """Where things are found inside the environment that runs the task."""

    container_name: str = ""
    path_to_task: str = ""
    path_to_dependencies: str = ""
    path_to_developer_folder: str = ""
    path_to_step_json_file: str = ""
    path_to_steplet_script: str = ""
    path_to_post_task_script: str = ""
    os: str = ""
    os_family: str = ""
    script_extension: str = ""
    architecture: str = ""


@dataclass
class DockerRunner:
    """Runs tasks in a Linux container with access to a Docker-in-Docker daemon."""

    dind_start_seconds: float = DIND_START_SECONDS

    def runtime_configuration(self) -> RuntimeConfiguration:
        """Return the paths and platform seen inside the task container."""
        developer_folder = posixpath.join(CONTAINER_WORK_DIR, TOOL_FOLDER)
        return RuntimeConfiguration(
            container_name=CONTAINER_NAME,
            path_to_task=CONTAINER_TASK_DIR,
            path_to_dependencies=CONTAINER_DEPENDENCIES_DIR,
            path_to_developer_folder=developer_folder,
            path_to_step_json_file=posixpath.join(developer_folder, "step", "stepJson.json"),
            path_to_steplet_script=posixpath.join(developer_folder, "step", "script.sh"),
            path_to_post_task_script=CONTAINER_POST_TASK_SCRIPT_PATH,
            os="Ubuntu_20.04",
            os_family="linux",
            script_extension="sh",
            architecture="x86_64",
        )

    def docker_run_arguments(self, options: RunnerOptions) -> list[str]:
        """Return the arguments of the 'docker run' that boots the task container."""
        arguments = [
            "run",
            "-v", f"{options.path_to_task}:{CONTAINER_TASK_DIR}",
            "-v", f"{options.path_to_dependencies}:{CONTAINER_DEPENDENCIES_DIR}",
            "-v", f"{options.path_to_working_directory}:{CONTAINER_WORK_DIR}",
            "-w", CONTAINER_WORK_DIR,
            "--init",
            "--name", CONTAINER_NAME,
            "--network", NETWORK_NAME,
            "-e", f"DOCKER_HOST={DIND_CONTAINER_NAME}",
            "--rm",
            "--pull", "always",
        ]
        if options.path_to_post_task_script:
            arguments += ["-v", f"{options.path_to_post_task_script}:{CONTAINER_POST_TASK_SCRIPT_PATH}"]
        developer_folder = self.runtime_configuration().path_to_developer_folder
        arguments += [DEFAULT_IMAGE, "bash", "-c", f"{developer_folder}/step/script.sh"]
        return arguments

    @staticmethod
    def _create_folders(folder: Path) -> None:
        if folder.exists() or folder.is_symlink():
            if folder.is_dir() and not folder.is_symlink():
                shutil.rmtree(folder)
            else:
                folder.unlink()
        folder.mkdir(parents=True)
        (folder / "task").mkdir()
        (folder / "step").mkdir()

    def _boot_dind_container(self, output) -> None:
        _run_docker(["rm", "-f", DIND_CONTAINER_NAME], output)
        _run_docker(
            [
                "run",
                "--privileged",
                "--name", DIND_CONTAINER_NAME,
                "--network", NETWORK_NAME,
                "-d",
                "-e", "DOCKER_TLS_CERTDIR=",
                "--pull", "always",
                "docker:dind",
            ],
            output,
        )
        log.debug("Waiting %s seconds for dind to start", self.dind_start_seconds)
        time.sleep(self.dind_start_seconds)

    def run(self, options: RunnerOptions) -> None:
        """Prepare the developer folder, the network and the dind daemon, then run the task."""
        folder = Path(options.path_to_local_developer_folder)
        output = options.output
        log.info("Creating required folders and files at %s", folder)
        self._create_folders(folder)
        _write_executable(folder / "step" / "script.sh", options.script)
        _write_executable(folder / "step" / "stepJson.json", options.step_json)

        log.info("Checking docker network")
        if _docker_output(["network", "ls", "-f", "name=" + PLUGIN_NAME, "-q"]):
            log.info("Docker network %s is available", NETWORK_NAME)
        else:
            log.info("Creating docker network %s", NETWORK_NAME)
            _run_docker(["network", "create", NETWORK_NAME], output)

        log.info("Checking dind container")
        if _docker_output(["ps", "-f", "name=" + DIND_CONTAINER_NAME, "-q"]):
            log.info("Dind container %s is running", DIND_CONTAINER_NAME)
        else:
            log.info("Creating dind container %s", DIND_CONTAINER_NAME)
            self._boot_dind_container(output)

        log.info("Checking for stale containers from previous runs")
        _run_docker(["rm", "-f", CONTAINER_NAME], output)

        log.info("Booting task container")
        _run_docker(self.docker_run_arguments(options), output)