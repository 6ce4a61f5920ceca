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
Copying of a single entry from a container to the host.
"""
import os
import tempfile
from typing import Optional

from loguru import logger

from ..ACCESS.docker_access import DockerAccess
from ..MODELS.copy_configuration import CopyEntry
from ..SERVICES.archive_service import ArchiveService
from ..errors import ConfigurationError, FilesystemError
from .resource_guard import FileRemover

TEMP_ARCHIVE_FILE_PREFIX = "docker-copy-"
TEMP_ARCHIVE_FILE_SUFFIX = ".tar"


def resolve_host_directory(base_dir: str, host_path: Optional[str]) -> str:
    """
    Resolves the host directory of a copy entry.

    :param base_dir: Project base directory.
    :param host_path: Absolute path, path relative to base_dir, or None/empty for base_dir itself.
    :return: The directory to extract into.
    """
    if not host_path:
        return base_dir
    if os.path.isabs(host_path):
        return host_path
    return os.path.join(base_dir, host_path)


class CopyEntryExecutor:
    """
    Copies a container path to the host: the path is streamed out of the
    container into a temporary tar file, which is then extracted into the
    host directory and deleted.
    """
    def __init__(self,
                 docker_access: DockerAccess,
                 archive_service: ArchiveService,
                 base_dir: str,
                 temp_dir: Optional[str] = None):
        """
        :param docker_access: Access to the Docker engine.
        :param archive_service: Service extracting the copied archives.
        :param base_dir: Directory relative host directories are resolved against.
        :param temp_dir: Where temporary archives are created. Defaults to the system temp dir.
        """
        self.docker_access = docker_access
        self.archive_service = archive_service
        self.base_dir = base_dir
        self.temp_dir = temp_dir

    def execute(self, container_id: str, image_name: str, entry: CopyEntry) -> str:
        """
        Copies one entry out of a container.

        :param container_id: Container to copy from.
        :param image_name: Image of the container, for diagnostics.
        :param entry: What to copy and where to.
        :return: The host directory the entry was extracted into.
        :raises ConfigurationError: If the entry has no container path.
        """
        container_path = entry.container_path
        if container_path is None:
            logger.error("containerPath of copy entry of {} container of {} image is not specified",
                         container_id, image_name)
            raise ConfigurationError(
                f"container_path should be specified (container {container_id}, image {image_name})"
            )

        host_directory = resolve_host_directory(self.base_dir, entry.host_directory)
        try:
            os.makedirs(host_directory, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Unable to create host directory {host_directory}: {e}") from e

        with FileRemover() as file_remover:
            archive_file = self._create_temp_archive()
            file_remover.assign(archive_file)
            logger.debug("Created {} temporary file for docker copy archive", archive_file)
            logger.debug("Copying {} from {} container into {} host file", container_path, container_id, archive_file)
            self.docker_access.copy_archive_from_container(container_id, container_path, archive_file)
            logger.debug("Extracting {} archive into {} directory", archive_file, host_directory)
            self.archive_service.extract_docker_copy_archive(archive_file, host_directory)

        return host_directory

    def _create_temp_archive(self) -> str:
        try:
            fd, path = tempfile.mkstemp(prefix=TEMP_ARCHIVE_FILE_PREFIX,
                                        suffix=TEMP_ARCHIVE_FILE_SUFFIX,
                                        dir=self.temp_dir)
        except OSError as e:
            raise FilesystemError(f"Unable to create temporary archive file: {e}") from e
        os.close(fd)
        return path
