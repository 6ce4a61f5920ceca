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
Creation, removal and lookup of containers for configured images.
"""
import os
from datetime import datetime
from typing import Dict, List

from loguru import logger

from ..ACCESS.docker_access import DockerAccess
from ..MODELS.build_label import BuildLabel
from ..MODELS.container_descriptor import ContainerDescriptor
from ..MODELS.image_configuration import ImageConfiguration, RunConfiguration
from ..UTILS.container_naming import next_container_name
from ..UTILS.port_mapping import PortMapping
from ..UTILS.string_interpolation import PropertyInterpolator
from .container_tracker import ContainerTracker


class RunService:
    """
    Manages containers of configured images on behalf of the copy workflow.
    """
    def __init__(self, docker_access: DockerAccess, tracker: ContainerTracker):
        """
        :param docker_access: Access to the Docker engine.
        :param tracker: Record of containers started for each build.
        """
        self.docker_access = docker_access
        self.tracker = tracker

    def create_port_mapping(self, run_config: RunConfiguration, properties: Dict[str, str]) -> PortMapping:
        """
        Builds the port mapping of a run configuration, allocating dynamic host ports.

        :param run_config: The run configuration of the image.
        :param properties: Project properties, updated with dynamically allocated ports.
        """
        return PortMapping(run_config.ports, properties)

    def create_container(self,
                         image_config: ImageConfiguration,
                         port_mapping: PortMapping,
                         build_label: BuildLabel,
                         properties: Dict[str, str],
                         base_dir: str,
                         container_name_pattern: str,
                         build_timestamp: datetime) -> str:
        """
        Creates a container for an image without starting it.

        :param image_config: Image to create the container from.
        :param port_mapping: Host port bindings.
        :param build_label: Build identity, attached to the container as a label.
        :param properties: Project properties used to interpolate environment values.
        :param base_dir: Directory relative volume sources are resolved against.
        :param container_name_pattern: Pattern for the container name. %i picks the first index not in use.
        :param build_timestamp: Timestamp of the current build.
        :return: The container id.
        """
        run_config = image_config.run
        name = next_container_name(container_name_pattern, image_config.name, image_config.alias, build_timestamp,
                                   self.docker_access.list_container_names())
        context = {**os.environ, **properties}
        environment = {
            key: PropertyInterpolator.interpolate(value, context, strict=False)
            for key, value in run_config.env.items()
        }
        labels = {**run_config.labels, **build_label.to_labels()}
        volumes = [self._resolve_volume(spec, base_dir) for spec in run_config.volumes]

        logger.debug("Creating container {} from image {}", name, image_config.name)
        return self.docker_access.create_container(
            image_config.name,
            name=name,
            ports=port_mapping.to_docker_ports(),
            environment=environment,
            labels=labels,
            volumes=volumes,
            command=run_config.cmd,
        )

    def remove_container(self, container_id: str, remove_volumes: bool) -> None:
        """
        Removes a container.

        :param container_id: Container to remove.
        :param remove_volumes: Also remove volumes of the container.
        """
        self.docker_access.remove_container(container_id, remove_volumes)

    def get_containers(self, build_label: BuildLabel) -> List[ContainerDescriptor]:
        """
        Returns the containers a start step recorded for the build.
        """
        return self.tracker.get_containers(build_label)

    @staticmethod
    def _resolve_volume(spec: str, base_dir: str) -> str:
        """
        Resolves a relative host path of a bind volume against the base directory.
        Named volumes are passed through.
        """
        parts = spec.split(':')
        source = parts[0]
        if len(parts) > 1 and (source.startswith('.') or os.sep in source) and not os.path.isabs(source):
            parts[0] = os.path.abspath(os.path.join(base_dir, source))
        return ':'.join(parts)
