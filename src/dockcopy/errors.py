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
Exceptions raised while copying files out of containers.
"""


class DockCopyError(Exception):
    """Base class for all dockcopy errors."""


class ConfigurationError(DockCopyError, ValueError):
    """
    Raised for invalid copy configuration, e.g. an entry without a container path.
    Never retried; aborts the whole run.
    """


class DockerAccessError(DockCopyError):
    """Raised when the Docker engine rejects a request or the connection to it fails."""


class ExtractionError(DockCopyError):
    """Raised when a copy archive cannot be read or unpacked."""


class FilesystemError(DockCopyError, OSError):
    """Raised when a host directory, temporary file or archive file cannot be created or written."""
