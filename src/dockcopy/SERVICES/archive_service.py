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
Extraction of archives copied out of containers.
"""
import os
import tarfile
from pathlib import Path
from typing import Union

from loguru import logger

from ..errors import ExtractionError

# Python versions with extraction filters get the 'tar' filter, which keeps
# absolute symlinks from container images but refuses to write outside the destination.
_EXTRACT_KWARGS = {'filter': 'tar'} if hasattr(tarfile, 'tar_filter') else {}


class ArchiveService:
    """
    Unpacks the tar archives produced by the Docker copy endpoint.
    """

    def extract_docker_copy_archive(self, archive_file: Union[str, Path], destination: Union[str, Path]) -> None:
        """
        Extract a Docker copy archive into a directory.

        A copied directory is re-created under its own name inside the
        destination. A copied file is placed directly in it.

        Args:
            archive_file: Tar archive written by DockerAccess.copy_archive_from_container
            destination: Host directory to extract into. Created if missing.

        Raises:
            ExtractionError: If the archive is unreadable or has members escaping the destination.
        """
        dest_dir = Path(destination)
        dest_dir.mkdir(parents=True, exist_ok=True)
        root = os.path.realpath(dest_dir)

        try:
            with tarfile.open(archive_file, mode="r:*") as tar:
                members = tar.getmembers()
                for member in members:
                    self._check_member(member, root)
                for member in members:
                    tar.extract(member, dest_dir, **_EXTRACT_KWARGS)
        except tarfile.TarError as e:
            raise ExtractionError(f"Unable to extract {archive_file}: {e}") from e
        logger.debug("Extracted {} entries of {} into {}", len(members), archive_file, dest_dir)

    @staticmethod
    def _check_member(member: tarfile.TarInfo, root: str) -> None:
        """Reject members that would land outside the destination."""
        if member.name.startswith("/") or os.path.isabs(member.name):
            raise ExtractionError(f"Archive member {member.name} has an absolute path")
        target = os.path.realpath(os.path.join(root, member.name))
        if target != root and not target.startswith(root + os.sep):
            raise ExtractionError(f"Archive member {member.name} escapes {root}")
        if member.islnk():
            link_target = os.path.realpath(os.path.join(root, member.linkname))
            if link_target != root and not link_target.startswith(root + os.sep):
                raise ExtractionError(f"Hard link {member.name} points outside {root}")
