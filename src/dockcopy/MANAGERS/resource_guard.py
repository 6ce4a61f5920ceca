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
Scoped cleanup of containers and files created during a copy.
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from loguru import logger


class ResourceGuard(ABC):
    """
    Releases a lazily assigned resource when its scope ends.

    Use as a context manager and assign the resource as soon as it exists.
    The release action runs at most once, whether the block returns or raises.
    Nothing happens if no resource was assigned.
    """
    def __init__(self):
        self.resource: Optional[str] = None

    def assign(self, resource: str) -> None:
        """
        Binds the resource to release.

        :param resource: A container id or file path.
        """
        self.resource = resource

    def release(self) -> None:
        """
        Releases the bound resource, if any. Later calls are no-ops.
        """
        if not self.resource:
            return
        resource, self.resource = self.resource, None
        self._destroy(resource)

    @abstractmethod
    def _destroy(self, resource: str) -> None:
        """Releases the resource."""

    def __enter__(self) -> "ResourceGuard":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        self.release()
        return False


class ContainerRemover(ResourceGuard):
    """
    Removes a container created for the copy.
    """
    def __init__(self, run_service, remove_volumes: bool = False):
        """
        :param run_service: Service performing the removal.
        :param remove_volumes: Also remove the volumes of the container.
        """
        super().__init__()
        self.run_service = run_service
        self.remove_volumes = remove_volumes

    def _destroy(self, container_id: str) -> None:
        logger.debug("Removing {} container", container_id)
        self.run_service.remove_container(container_id, self.remove_volumes)


class FileRemover(ResourceGuard):
    """
    Deletes a temporary file. A file that is already gone is not an error.
    """
    def _destroy(self, path: str) -> None:
        logger.debug("Removing {} file", path)
        Path(path).unlink(missing_ok=True)
