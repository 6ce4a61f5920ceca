"""
Utilities for interpolating project properties and environment variables in strings.
"""
import re
from typing import Dict, List

# Group 1: VAR name, group 2: '-' or '+' modifier, group 3: default or alternate value
PLACEHOLDER_PATTERN = re.compile(r'\$\{([^}:]+)(?::(-|\+)([^}]*))?\}')


class PropertyInterpolator:
    """
    Utility for interpolating ${VAR} placeholders in strings.
    Supports ${VAR}, ${VAR:-default} and ${VAR:+value}.
    """
    @staticmethod
    def interpolate(template: str, context: Dict[str, str], strict: bool = True) -> str:
        """
        Interpolates placeholders in the template string using the provided context.

        :param template: The string containing ${VAR} placeholders.
        :param context: Variables available for interpolation.
        :param strict: Raise on unknown plain ${VAR} placeholders instead of leaving them in place.
        :return: The interpolated string.
        :raises KeyError: If strict and a variable is not found and no default is provided.
        """
        def replace(match):
            var_name = match.group(1)
            modifier = match.group(2)
            alt_value = match.group(3)

            value = context.get(var_name)

            if modifier == '-':
                return value if value else alt_value
            if modifier == '+':
                return alt_value if value else ''
            if value is not None:
                return value
            if strict:
                raise KeyError(f"Variable {var_name} not found in context")
            return match.group(0)

        return PLACEHOLDER_PATTERN.sub(replace, template)

    @staticmethod
    def unresolved(template: str, context: Dict[str, str]) -> List[str]:
        """
        Lists plain ${VAR} placeholders of the template that the context cannot resolve.
        """
        return [
            match.group(1)
            for match in PLACEHOLDER_PATTERN.finditer(template)
            if match.group(2) is None and match.group(1) not in context
        ]
