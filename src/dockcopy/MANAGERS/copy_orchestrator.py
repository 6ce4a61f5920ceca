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
Orchestration of copying files out of the containers of all configured images.
"""
from datetime import datetime
from typing import Dict, List, Optional

from loguru import logger

from ..ACCESS.docker_access import DockerAccess
from ..MODELS.build_label import BuildLabel
from ..MODELS.image_configuration import ImageConfiguration
from ..MODELS.project_config import ProjectConfig, DEFAULT_CONTAINER_NAME_PATTERN
from ..SERVICES.archive_service import ArchiveService
from ..SERVICES.run_service import RunService
from .container_resolution import ContainerResolver
from .copy_executor import CopyEntryExecutor


class CopyOrchestrator:
    """
    Copies the configured entries of every image out of its container.

    If a start step ran in this build, only the containers it started are
    examined. Otherwise every configured image gets a temporary container
    (created, not started) which is removed once its entries are copied,
    even if the copying failed.
    """
    def __init__(self,
                 run_service: RunService,
                 docker_access: DockerAccess,
                 archive_service: ArchiveService,
                 build_label: BuildLabel,
                 base_dir: str = ".",
                 properties: Optional[Dict[str, str]] = None,
                 container_name_pattern: str = DEFAULT_CONTAINER_NAME_PATTERN,
                 remove_volumes: bool = False,
                 build_timestamp: Optional[datetime] = None,
                 temp_dir: Optional[str] = None):
        """
        Initializes the orchestrator.

        :param run_service: Service managing containers.
        :param docker_access: Access to the Docker engine.
        :param archive_service: Service extracting copied archives.
        :param build_label: Identity of the current build.
        :param base_dir: Project base directory.
        :param properties: Project properties.
        :param container_name_pattern: Naming pattern of temporary containers.
        :param remove_volumes: Remove volumes of temporary containers with them.
        :param build_timestamp: Timestamp of the build. Defaults to the start of each run.
        :param temp_dir: Directory for temporary archives.
        """
        self.resolver = ContainerResolver(
            run_service,
            build_label,
            base_dir,
            properties=dict(properties or {}),
            container_name_pattern=container_name_pattern,
            remove_volumes=remove_volumes,
            build_timestamp=build_timestamp,
        )
        self.executor = CopyEntryExecutor(docker_access, archive_service, base_dir, temp_dir=temp_dir)
        self.copied_entries = 0
        self.build_timestamp = build_timestamp

    @classmethod
    def from_project(cls,
                     project: ProjectConfig,
                     run_service: RunService,
                     docker_access: DockerAccess,
                     archive_service: ArchiveService,
                     **overrides) -> "CopyOrchestrator":
        """
        Creates an orchestrator configured from a project file.
        Keyword overrides replace the project values.
        """
        options = dict(
            build_label=project.build_label(),
            base_dir=project.base_dir,
            properties=project.properties,
            container_name_pattern=project.container_name_pattern,
            remove_volumes=project.remove_volumes,
        )
        options.update({k: v for k, v in overrides.items() if v is not None})
        return cls(run_service, docker_access, archive_service, **options)

    def run(self, images: List[ImageConfiguration], start_invoked: bool) -> int:
        """
        Copies all configured entries.

        :param images: Configured images, in order.
        :param start_invoked: Whether a start step ran in this build.
        :return: Number of entries copied.
        """
        self.copied_entries = 0
        self.resolver.build_timestamp = self.build_timestamp or datetime.now()
        source = self.resolver.resolve_source(start_invoked, images)
        self.resolver.for_each_container(source, self._copy)
        return self.copied_entries

    def _copy(self, container_id: str, image_config: ImageConfiguration) -> None:
        """
        Copies the entries of one image from one container, in declaration order.
        """
        copy_config = image_config.copy_config
        if copy_config is None or copy_config.is_empty:
            logger.debug("No copy entries configured for {} image", image_config.name)
            return
        for entry in copy_config.entries:
            self.executor.execute(container_id, image_config.name, entry)
            self.copied_entries += 1
