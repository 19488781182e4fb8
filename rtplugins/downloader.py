"""Fetch and cache the build plane tools a pipeline task needs."""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import subprocess
from enum import Enum
from pathlib import Path

from .runners import _run_docker
from .taskverse_utils import BUILD_PLANE_VERSION, PLUGIN_NAME, download_file, extract_tar_gz

REQKICK_DOCKER_IMAGE = "releases-docker.jfrog.io/jfrog/pipelines-reqkick:" + BUILD_PLANE_VERSION
CONTAINER_NAME = PLUGIN_NAME + "-reqKick"
DOCKER_CLIENT_URL = "https://download.docker.com/linux/static/stable/x86_64/docker-20.10.18.tgz"
_HEADER_SCRIPT_SOURCE = (
    "/jfrog-init/reqKick/node_modules/pipelines-core/execTemplates/steps/jfrog/v1.0/Bash/header.sh"
)

log = logging.getLogger(__name__)


class Dependency(Enum):
    """A cached tool, identified by the path of its main file under the cache folder."""

    UTILITY_FUNCTIONS = ("header.sh",)
    JFROG_CLI = ("jfrog2", "jfrog")
    PIPE_TOOL = ("pipe", "pipe")
    DOCKER = ("docker", "docker")


_CONTAINER_SOURCES = {
    Dependency.UTILITY_FUNCTIONS: ((_HEADER_SCRIPT_SOURCE, "header.sh"),),
    Dependency.JFROG_CLI: (("/jfrog-init/jfrog", "jfrog"), ("/jfrog-init/jfrog2", "jfrog2")),
    Dependency.PIPE_TOOL: (("/jfrog-init/pipe", "pipe"),),
}
_FETCH_MESSAGES = {
    Dependency.UTILITY_FUNCTIONS: "Fetching utility functions script",
    Dependency.JFROG_CLI: "Fetching JFrog CLI",
    Dependency.PIPE_TOOL: "Fetching Pipe tool",
}


def _remove_path(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


class DependenciesDownloader:
    """Keeps the build plane tools in target_dir, fetching whatever is missing."""

    def __init__(self, target_dir, output=None):
        self.target_dir = Path(target_dir)
        self.output = output

    def missing(self) -> list[Dependency]:
        """Return the dependencies not yet present in the target folder."""
        return [dep for dep in Dependency if not os.path.exists(self.target_dir.joinpath(*dep.value))]

    def _remove_container(self) -> None:
        _run_docker(["rm", "-f", CONTAINER_NAME], self.output)

    def _copy_from_container(self, source: str, target_name: str) -> None:
        target = self.target_dir / target_name
        _remove_path(target)
        _run_docker(["cp", f"{CONTAINER_NAME}:{source}", str(target)], self.output)

    def _fetch_from_container(self, tools) -> None:
        log.info("Pulling reqKick docker image to fetch dependencies")
        _run_docker(["pull", REQKICK_DOCKER_IMAGE], self.output)
        log.info("Checking for stale reqKick containers from previous runs")
        self._remove_container()
        try:
            log.info("Starting reqKick container")
            _run_docker(
                [
                    "run",
                    "-d",
                    "--name", CONTAINER_NAME,
                    "--entrypoint",
                    "tail",
                    REQKICK_DOCKER_IMAGE,
                    "-f", "/dev/null",
                ],
                self.output,
            )
            for dependency in tools:
                log.info(_FETCH_MESSAGES[dependency])
                for source, target_name in _CONTAINER_SOURCES[dependency]:
                    self._copy_from_container(source, target_name)
        finally:
            log.info("Removing reqKick container")
            with contextlib.suppress(subprocess.CalledProcessError, OSError):
                self._remove_container()

    def _download_docker(self) -> None:
        docker_dir = self.target_dir / "docker"
        docker_dir.mkdir(parents=True, exist_ok=True)
        archive = docker_dir / "docker.tgz"
        download_file(DOCKER_CLIENT_URL, str(archive))
        with open(archive, "rb") as stream:
            extract_tar_gz(stream, str(docker_dir))
        temporary = self.target_dir / "docker_tmp"
        os.rename(docker_dir / "docker", temporary)
        shutil.rmtree(docker_dir)
        os.rename(temporary, docker_dir)

    def download(self) -> None:
        """Fetch every missing dependency into the target folder."""
        self.target_dir.mkdir(parents=True, exist_ok=True)
        missing = set(self.missing())
        tools = [dep for dep in _CONTAINER_SOURCES if dep in missing]
        if not tools:
            log.info("All build plane dependencies are available")
        else:
            log.info("Downloading missing build plane dependencies")
            self._fetch_from_container(tools)

        if Dependency.DOCKER in missing:
            log.info("Downloading Docker client")
            self._download_docker()
        else:
            log.info("Docker dependency is available")