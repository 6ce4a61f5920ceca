"""
Model for a complete project file.
"""
from typing import List, Dict
from pydantic import BaseModel
from .build_label import BuildLabel
from .image_configuration import ImageConfiguration

DEFAULT_CONTAINER_NAME_PATTERN = "%n-%i"


class ProjectConfig(BaseModel):
    """
    Complete configuration of a project: its images and copy options.
    Equivalent to a parsed dockcopy.yml file.
    """
    name: str = "dockcopy"
    version: str = "latest"
    base_dir: str = "."
    properties: Dict[str, str] = {}

    container_name_pattern: str = DEFAULT_CONTAINER_NAME_PATTERN
    remove_volumes: bool = False

    images: List[ImageConfiguration] = []

    def build_label(self) -> BuildLabel:
        return BuildLabel(project=self.name, version=self.version)
