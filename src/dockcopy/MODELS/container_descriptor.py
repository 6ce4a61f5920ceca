"""
Containers recorded by a start step.
"""
from dataclasses import dataclass
from .image_configuration import ImageConfiguration


@dataclass
class ContainerDescriptor:
    """A tracked container and the image it was started from."""
    container_id: str
    image_config: ImageConfiguration
