"""
Build identity used to scope container lookups to the current build.
"""
from pydantic import BaseModel

LABEL_KEY = "dockcopy.build"


class BuildLabel(BaseModel):
    """
    Identifies one build of a project. Rendered as "project:version".
    """
    project: str
    version: str = "latest"

    @classmethod
    def parse(cls, value: str) -> "BuildLabel":
        """
        Parses a "project:version" string. A missing version means "latest".
        """
        project, _, version = value.partition(":")
        return cls(project=project, version=version or "latest")

    def to_labels(self) -> dict:
        return {LABEL_KEY: str(self)}

    def __str__(self) -> str:
        return f"{self.project}:{self.version}"
