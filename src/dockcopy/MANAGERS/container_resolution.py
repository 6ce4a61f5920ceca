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
Selection of the containers files are copied from.

Tracked containers were started by an earlier step of the build and are left
as they are. Standalone images get a temporary container each, created before
the copy and removed after it, even if the copy fails.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Union

from loguru import logger

from ..MODELS.build_label import BuildLabel
from ..MODELS.container_descriptor import ContainerDescriptor
from ..MODELS.image_configuration import ImageConfiguration
from ..MODELS.project_config import DEFAULT_CONTAINER_NAME_PATTERN
from ..SERVICES.run_service import RunService
from .resource_guard import ContainerRemover

# Called with (container_id, image_config) for every container to copy from
CopyAction = Callable[[str, ImageConfiguration], None]


class SourceKind(str, Enum):
    """
    Where copy containers come from.
    """
    TRACKED = "tracked"
    STANDALONE = "standalone"


@dataclass
class TrackedContainers:
    """Containers recorded by a start step. Not owned by the copy."""
    containers: List[ContainerDescriptor]
    kind: SourceKind = field(default=SourceKind.TRACKED, init=False)


@dataclass
class StandaloneImages:
    """Configured images, each copied from a temporary container."""
    images: List[ImageConfiguration]
    kind: SourceKind = field(default=SourceKind.STANDALONE, init=False)


ContainerSource = Union[TrackedContainers, StandaloneImages]


class ContainerResolver:
    """
    Resolves the container source of a run and drives a copy action over its containers.
    """
    def __init__(self,
                 run_service: RunService,
                 build_label: BuildLabel,
                 base_dir: str,
                 properties: Dict[str, str] = None,
                 container_name_pattern: str = DEFAULT_CONTAINER_NAME_PATTERN,
                 remove_volumes: bool = False,
                 build_timestamp: datetime = None):
        """
        :param run_service: Service creating, removing and looking up containers.
        :param build_label: Identity of the current build.
        :param base_dir: Project base directory, passed to container creation.
        :param properties: Project properties, passed to container creation.
        :param container_name_pattern: Naming pattern of temporary containers.
        :param remove_volumes: Remove the volumes of temporary containers with them.
        :param build_timestamp: Timestamp of the current build. Defaults to now.
        """
        self.run_service = run_service
        self.build_label = build_label
        self.base_dir = base_dir
        self.properties = properties if properties is not None else {}
        self.container_name_pattern = container_name_pattern
        self.remove_volumes = remove_volumes
        self.build_timestamp = build_timestamp or datetime.now()

        self._handlers = {
            SourceKind.TRACKED: self._copy_from_tracked,
            SourceKind.STANDALONE: self._copy_from_standalone,
        }

    def resolve_source(self, start_invoked: bool, images: List[ImageConfiguration]) -> ContainerSource:
        """
        Picks tracked containers when a start step ran in this build, otherwise the configured images.

        :param start_invoked: Whether a start step ran for the current build.
        :param images: Configured images, used in standalone mode only.
        """
        if start_invoked:
            logger.debug("Copy is invoked together with start")
            return TrackedContainers(self.run_service.get_containers(self.build_label))
        logger.debug("Copy is invoked standalone, will create temporary containers")
        return StandaloneImages(list(images))

    def for_each_container(self, source: ContainerSource, action: CopyAction) -> None:
        """
        Runs the action for every container of the source, in order.
        The first failure stops the iteration after cleaning up.
        """
        self._handlers[source.kind](source, action)

    def _copy_from_tracked(self, source: TrackedContainers, action: CopyAction) -> None:
        for descriptor in source.containers:
            image_config = descriptor.image_config
            logger.debug("Found {} container of {} image", descriptor.container_id, image_config.name)
            action(descriptor.container_id, image_config)

    def _copy_from_standalone(self, source: StandaloneImages, action: CopyAction) -> None:
        for image_config in source.images:
            with ContainerRemover(self.run_service, self.remove_volumes) as container_remover:
                container_id = self._create_container(image_config)
                container_remover.assign(container_id)
                logger.debug("Created {} container from {} image", container_id, image_config.name)
                action(container_id, image_config)

    def _create_container(self, image_config: ImageConfiguration) -> str:
        port_mapping = self.run_service.create_port_mapping(image_config.run, self.properties)
        return self.run_service.create_container(
            image_config,
            port_mapping,
            self.build_label,
            self.properties,
            self.base_dir,
            self.container_name_pattern,
            self.build_timestamp,
        )
