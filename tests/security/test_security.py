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
Security tests for extraction of archives copied out of containers.
"""
import io
import tarfile
import pytest
from dockcopy.SERVICES.archive_service import ArchiveService
from dockcopy.errors import ExtractionError


def write_member(archive, info, data=b""):
    with tarfile.open(archive, "w") as tar:
        info.size = len(data)
        tar.addfile(info, io.BytesIO(data) if data else None)


def test_parent_traversal_rejected(tmp_path):
    """
    An archive member climbing out of the destination must not be written.
    """
    archive = tmp_path / "evil.tar"
    write_member(archive, tarfile.TarInfo("../escaped.txt"), b"x")
    with pytest.raises(ExtractionError):
        ArchiveService().extract_docker_copy_archive(archive, tmp_path / "out")
    assert not (tmp_path / "escaped.txt").exists()


def test_absolute_member_rejected(tmp_path):
    archive = tmp_path / "evil.tar"
    write_member(archive, tarfile.TarInfo(str(tmp_path / "absolute.txt")), b"x")
    with pytest.raises(ExtractionError):
        ArchiveService().extract_docker_copy_archive(archive, tmp_path / "out")
    assert not (tmp_path / "absolute.txt").exists()


def test_hard_link_outside_rejected(tmp_path):
    archive = tmp_path / "evil.tar"
    info = tarfile.TarInfo("link")
    info.type = tarfile.LNKTYPE
    info.linkname = "../../etc/passwd"
    write_member(archive, info)
    with pytest.raises(ExtractionError):
        ArchiveService().extract_docker_copy_archive(archive, tmp_path / "out")
    assert not (tmp_path / "out" / "link").exists()


def test_nothing_written_when_rejected(tmp_path):
    """
    Members are checked before anything is extracted.
    """
    archive = tmp_path / "evil.tar"
    with tarfile.open(archive, "w") as tar:
        good = tarfile.TarInfo("good.txt")
        good.size = 1
        tar.addfile(good, io.BytesIO(b"g"))
        bad = tarfile.TarInfo("../bad.txt")
        bad.size = 1
        tar.addfile(bad, io.BytesIO(b"b"))
    with pytest.raises(ExtractionError):
        ArchiveService().extract_docker_copy_archive(archive, tmp_path / "out")
    assert not (tmp_path / "out" / "good.txt").exists()
