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
Access to the Docker engine through the docker SDK.
"""
from typing import Optional, Dict, List, Set

import docker
from docker.errors import DockerException
from requests.exceptions import RequestException
from loguru import logger

from ..errors import DockerAccessError, FilesystemError

# Bytes requested per chunk when streaming archives out of a container
ARCHIVE_CHUNK_SIZE = 2 * 1024 * 1024


class DockerAccess:
    """
    Thin wrapper over the docker SDK client.
    Every SDK or transport failure is re-raised as DockerAccessError.
    """

    def __init__(self, client: Optional[docker.DockerClient] = None, base_url: Optional[str] = None):
        """
        Initialize Docker access.

        Args:
            client: An existing docker client. Created on first use when omitted.
            base_url: Engine URL used when creating the client, e.g. unix:///var/run/docker.sock.
                Defaults to the DOCKER_HOST environment.
        """
        self._client = client
        self._base_url = base_url

    @property
    def client(self) -> docker.DockerClient:
        """The docker client, connecting lazily."""
        if self._client is None:
            try:
                if self._base_url:
                    self._client = docker.DockerClient(base_url=self._base_url)
                else:
                    self._client = docker.from_env()
            except DockerException as e:
                raise DockerAccessError(f"Cannot connect to the Docker engine: {e}") from e
        return self._client

    def copy_archive_from_container(self, container_id: str, container_path: str, archive_file: str) -> None:
        """
        Stream a file or directory of a container as a tar archive into a host file.

        Args:
            container_id: Container to copy from. Need not be running.
            container_path: Absolute path inside the container.
            archive_file: Host file the archive is written to.
        """
        try:
            container = self.client.containers.get(container_id)
            bits, _ = container.get_archive(container_path, chunk_size=ARCHIVE_CHUNK_SIZE)
            with open(archive_file, 'wb') as f:
                # The stream is read lazily, a dropped connection surfaces here
                for chunk in bits:
                    f.write(chunk)
        except (DockerException, RequestException) as e:
            raise DockerAccessError(
                f"Unable to copy {container_path} from container {container_id}: {e}"
            ) from e
        except OSError as e:
            raise FilesystemError(f"Unable to write archive {archive_file}: {e}") from e

    def create_container(self,
                         image: str,
                         name: Optional[str] = None,
                         ports: Optional[Dict[str, int]] = None,
                         environment: Optional[Dict[str, str]] = None,
                         labels: Optional[Dict[str, str]] = None,
                         volumes: Optional[List[str]] = None,
                         command: Optional[List[str]] = None) -> str:
        """
        Create, but do not start, a container.

        Returns:
            The id assigned by the engine.
        """
        try:
            container = self.client.containers.create(
                image,
                command=command or None,
                name=name,
                ports=ports or None,
                environment=environment or None,
                labels=labels or None,
                volumes=volumes or None,
            )
        except (DockerException, RequestException) as e:
            raise DockerAccessError(f"Unable to create container from image {image}: {e}") from e
        logger.debug("Engine created container {} ({})", container.id, name)
        return container.id

    def remove_container(self, container_id: str, remove_volumes: bool = False) -> None:
        """
        Remove a container, forcing removal if it is running.

        Args:
            container_id: Container to remove.
            remove_volumes: Also remove anonymous volumes of the container.
        """
        try:
            container = self.client.containers.get(container_id)
            container.remove(v=remove_volumes, force=True)
        except (DockerException, RequestException) as e:
            raise DockerAccessError(f"Unable to remove container {container_id}: {e}") from e

    def list_container_names(self) -> Set[str]:
        """Names of all containers known to the engine, stopped ones included."""
        try:
            return {container.name for container in self.client.containers.list(all=True)}
        except (DockerException, RequestException) as e:
            raise DockerAccessError(f"Unable to list containers: {e}") from e
