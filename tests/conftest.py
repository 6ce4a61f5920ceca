# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Shared fixtures: recording fakes of the Docker engine, the run service and the archive service.
"""
import io
import os
import tarfile
from types import SimpleNamespace
from typing import Dict, List, Optional

import pytest

from dockcopy.MODELS.build_label import BuildLabel
from dockcopy.SERVICES.archive_service import ArchiveService
from dockcopy.UTILS.port_mapping import PortMapping
from dockcopy.errors import DockerAccessError, ExtractionError


def build_tar(archive_file: str, members: Dict[str, bytes]) -> None:
    """Writes a tar archive with the given file members."""
    with tarfile.open(archive_file, "w") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name=name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))


class FakeDockerAccess:
    """
    Records engine calls. Copying writes a real tar archive with the
    members configured for the container path.
    """
    def __init__(self, calls: List[tuple], contents: Optional[Dict[str, Dict[str, bytes]]] = None,
                 fail_copy: bool = False, existing_names=()):
        self.calls = calls
        self.contents = contents or {}
        self.fail_copy = fail_copy
        self.existing_names = set(existing_names)
        self.archive_existed = []
        self.created = 0

    def copy_archive_from_container(self, container_id, container_path, archive_file):
        self.calls.append(("copy", container_id, container_path, archive_file))
        self.archive_existed.append(os.path.exists(archive_file))
        if self.fail_copy:
            raise DockerAccessError(f"No such path {container_path}")
        build_tar(archive_file, self.contents.get(container_path, {}))

    def create_container(self, image, **kwargs):
        self.created += 1
        self.calls.append(("engine_create", image, kwargs))
        return f"engine-{self.created}"

    def remove_container(self, container_id, remove_volumes=False):
        self.calls.append(("engine_remove", container_id, remove_volumes))

    def list_container_names(self):
        return set(self.existing_names)


class FakeRunService:
    """
    Records container lifecycle calls and serves tracked containers.
    """
    def __init__(self, calls: List[tuple], tracked=None, fail_remove: bool = False):
        self.calls = calls
        self.tracked = tracked or []
        self.fail_remove = fail_remove
        self.created = 0

    def create_port_mapping(self, run_config, properties):
        return PortMapping([], properties)

    def create_container(self, image_config, port_mapping, build_label, properties, base_dir,
                         container_name_pattern, build_timestamp):
        self.created += 1
        container_id = f"tmp-{self.created}"
        self.calls.append(("create", image_config.name, container_id))
        return container_id

    def remove_container(self, container_id, remove_volumes):
        self.calls.append(("remove", container_id, remove_volumes))
        if self.fail_remove:
            raise DockerAccessError(f"No such container {container_id}")

    def get_containers(self, build_label):
        self.calls.append(("get_containers", str(build_label)))
        return list(self.tracked)


class RecordingArchiveService(ArchiveService):
    """
    Real extraction, recorded. Optionally fails instead of extracting.
    """
    def __init__(self, calls: List[tuple], fail: bool = False):
        self.calls = calls
        self.fail = fail

    def extract_docker_copy_archive(self, archive_file, destination):
        self.calls.append(("extract", str(archive_file), str(destination)))
        if self.fail:
            raise ExtractionError(f"Corrupt archive {archive_file}")
        super().extract_docker_copy_archive(archive_file, destination)


@pytest.fixture
def calls():
    return []


@pytest.fixture
def docker_access(calls):
    return FakeDockerAccess(calls, contents={
        "/data": {"data/report.txt": b"report", "data/logs/app.log": b"log"},
        "/etc/app.conf": {"app.conf": b"key=value"},
    })


@pytest.fixture
def run_service(calls):
    return FakeRunService(calls)


@pytest.fixture
def archive_service(calls):
    return RecordingArchiveService(calls)


@pytest.fixture
def build_label():
    return BuildLabel(project="shop", version="1.0")


@pytest.fixture
def fakes():
    """The fake classes, for tests needing failing or preloaded variants."""
    return SimpleNamespace(
        DockerAccess=FakeDockerAccess,
        RunService=FakeRunService,
        ArchiveService=RecordingArchiveService,
        build_tar=build_tar,
    )
