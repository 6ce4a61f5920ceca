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
Parsers for dockcopy.yml project files.
"""
import yaml
import os
from typing import Dict, Any, Optional
from loguru import logger
from pydantic import ValidationError
from ..MODELS.project_config import ProjectConfig
from ..UTILS.string_interpolation import PropertyInterpolator
from ..errors import ConfigurationError


class ProjectParser:
    """
    Parser for dockcopy.yml files.
    """
    def __init__(self, context: Optional[Dict[str, str]] = None):
        """
        Initializes the parser with an optional environment context for interpolation.

        :param context: A dictionary of variables for interpolation. Defaults to the process environment.
        """
        self.context = context if context is not None else dict(os.environ)

    def parse(self, project_path: str) -> ProjectConfig:
        """
        Parses a project file from a path.
        A relative base_dir is resolved against the directory of the file.

        :param project_path: Path to the project file.
        :return: Parsed configuration.
        """
        with open(project_path, 'r') as f:
            content = f.read()
        project_dir = os.path.dirname(os.path.abspath(project_path))
        return self.parse_from_string(content, project_dir)

    def parse_from_string(self, content: str, project_dir: str = ".") -> ProjectConfig:
        """
        Parses a project file from a string.

        :param content: YAML content of the project file.
        :param project_dir: Directory relative base directories are resolved against.
        :return: Parsed configuration.
        :raises ConfigurationError: If the content is not a valid project definition.
        """
        raw = self._load(content)

        raw_properties = raw.get('properties') or {}
        if not isinstance(raw_properties, dict):
            raise ConfigurationError("'properties' must be a mapping")
        # Properties declared in the file take part in interpolating the rest of it
        properties = {str(k): str(v) for k, v in raw_properties.items()}
        context = {**self.context, **properties}
        for name in PropertyInterpolator.unresolved(content, context):
            logger.warning("Variable {} not found, leaving placeholder in place", name)
        data = self._load(PropertyInterpolator.interpolate(content, context, strict=False))

        return self._build_config(data, properties, project_dir)

    @staticmethod
    def _load(content: str) -> Dict[str, Any]:
        try:
            data = yaml.safe_load(content)
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigurationError(f"Invalid project file: {e}") from e
        if not data:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError("Project file must contain a mapping at the top level")
        return data

    def _build_config(self, data: Dict[str, Any], properties: Dict[str, str], project_dir: str) -> ProjectConfig:
        """
        Builds the project model from the interpolated YAML data.
        """
        images = data.get('images') or []
        if not isinstance(images, list):
            raise ConfigurationError("'images' must be a list")

        base_dir = str(data.get('base_dir') or '.')
        if not os.path.isabs(base_dir):
            base_dir = os.path.abspath(os.path.join(project_dir, base_dir))

        values = {k: data[k] for k in ('name', 'version', 'container_name_pattern', 'remove_volumes') if k in data}
        for key in ('name', 'version'):
            if key in values:
                values[key] = str(values[key])
        try:
            return ProjectConfig(
                base_dir=base_dir,
                properties=properties,
                images=[self._normalize_image(image) for image in images],
                **values
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid project file: {e}") from e

    def _normalize_image(self, spec: Any) -> Dict[str, Any]:
        """
        Normalizes a single image definition. A plain string is an image name.
        """
        if isinstance(spec, str):
            return {'name': spec}
        if not isinstance(spec, dict):
            raise ConfigurationError(f"Invalid image definition: {spec!r}")

        spec = dict(spec)
        # "copy: {}" and "copy:" with no value are both present-but-empty
        if 'copy' in spec and spec['copy'] is None:
            spec['copy'] = {}
        copy_spec = spec.get('copy')
        if isinstance(copy_spec, list):
            spec['copy'] = {'entries': copy_spec}
        run = spec.get('run')
        if isinstance(run, dict):
            run = dict(run)
            if isinstance(run.get('env'), dict):
                run['env'] = {str(k): str(v) for k, v in run['env'].items()}
            if isinstance(run.get('ports'), list):
                run['ports'] = [str(p) for p in run['ports']]
            spec['run'] = run
        return spec
