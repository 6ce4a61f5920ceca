"""
Models describing what to copy out of a container and where to put it.
"""
from typing import List, Optional
from pydantic import BaseModel


class CopyEntry(BaseModel):
    """
    A single container path to host directory copy.

    If container_path points to a directory, a directory with the same name is
    created inside host_directory, i.e. the content is not flattened.
    """
    container_path: Optional[str] = None
    # Absolute, or relative to the project base directory. None means the base directory itself.
    host_directory: Optional[str] = None


class CopyConfiguration(BaseModel):
    """
    Ordered copy entries of an image. Entries run in declaration order.
    """
    entries: Optional[List[CopyEntry]] = None

    @property
    def is_empty(self) -> bool:
        return not self.entries
