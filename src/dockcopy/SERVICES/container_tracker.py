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
Record of containers started for a build.
Lets a later copy step find the containers a start step created.
"""

import json
from pathlib import Path
from typing import Dict, Any, List, Optional

from loguru import logger

from ..MODELS.build_label import BuildLabel
from ..MODELS.container_descriptor import ContainerDescriptor
from ..MODELS.image_configuration import ImageConfiguration


class ContainerTracker:
    """
    JSON index of tracked containers, keyed by build identity.
    """

    def __init__(self, state_dir: Optional[str] = None):
        """
        Initialize the tracker.

        Args:
            state_dir: Directory holding the index. Defaults to ./.dockcopy
        """
        self.state_dir = Path(state_dir) if state_dir else Path(".dockcopy")
        self.index_file = self.state_dir / "tracked.json"
        self._index = self._load_index()

    def _load_index(self) -> Dict[str, Any]:
        """Load the index from disk."""
        if self.index_file.exists():
            try:
                with open(self.index_file, 'r') as f:
                    index = json.load(f)
            except (json.JSONDecodeError, IOError) as e:
                logger.warning("Ignoring unreadable tracker index {}: {}", self.index_file, e)
            else:
                if isinstance(index, dict) and isinstance(index.get("builds"), dict):
                    return index
                logger.warning("Ignoring unreadable tracker index {}: unexpected layout", self.index_file)
        return {"builds": {}}

    def _save_index(self) -> None:
        """Save the index to disk."""
        self.state_dir.mkdir(parents=True, exist_ok=True)
        with open(self.index_file, 'w') as f:
            json.dump(self._index, f, indent=2)

    def _build(self, build_label: BuildLabel) -> Dict[str, Any]:
        return self._index["builds"].setdefault(str(build_label), {"started": False, "containers": []})

    def mark_started(self, build_label: BuildLabel) -> None:
        """Record that a start step ran for the build."""
        self._build(build_label)["started"] = True
        self._save_index()

    def start_invoked(self, build_label: BuildLabel) -> bool:
        """Whether a start step ran for the build."""
        build = self._index["builds"].get(str(build_label))
        return bool(build and build.get("started"))

    def register(self, build_label: BuildLabel, container_id: str, image_config: ImageConfiguration) -> None:
        """
        Track a container started for the build.
        Registering marks the start step as invoked.

        Args:
            build_label: Build identity
            container_id: Id of the started container
            image_config: Image the container was started from
        """
        build = self._build(build_label)
        build["started"] = True
        build["containers"].append({
            "container_id": container_id,
            "image": image_config.model_dump(by_alias=True),
        })
        self._save_index()

    def get_containers(self, build_label: BuildLabel) -> List[ContainerDescriptor]:
        """
        Containers tracked for the build, in registration order.
        """
        build = self._index["builds"].get(str(build_label), {})
        return [
            ContainerDescriptor(
                container_id=entry["container_id"],
                image_config=ImageConfiguration.model_validate(entry["image"]),
            )
            for entry in build.get("containers", [])
        ]

    def clear(self, build_label: BuildLabel) -> bool:
        """
        Forget a build.

        Returns:
            True if the build was tracked, False otherwise
        """
        if str(build_label) in self._index["builds"]:
            del self._index["builds"][str(build_label)]
            self._save_index()
            return True
        return False
