"""
Models for configured images and how their containers are created.
"""
from typing import List, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field
from .copy_configuration import CopyConfiguration


class RunConfiguration(BaseModel):
    """
    Settings used when creating a container from an image.
    """
    # "8080:80", "80" or "${prop}:80"
    ports: List[str] = []
    env: Dict[str, str] = {}
    labels: Dict[str, str] = {}
    # "host:container" or "host:container:ro"
    volumes: List[str] = []
    cmd: List[str] = []


class ImageConfiguration(BaseModel):
    """
    One configured image, with its optional copy configuration.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: str
    alias: Optional[str] = None
    run: RunConfiguration = Field(default_factory=RunConfiguration)
    copy_config: Optional[CopyConfiguration] = Field(default=None, alias="copy")

    @property
    def description(self) -> str:
        if self.alias:
            return f"{self.alias} ({self.name})"
        return self.name
