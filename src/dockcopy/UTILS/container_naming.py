"""
Naming of created containers from a pattern.
"""
import re
from datetime import datetime
from typing import Iterable, Optional

# %n  image name, sanitized
# %a  image alias, falls back to %n
# %t  build timestamp in milliseconds
# %i  index of the container for the image, the first one not taken
_TOKEN_PATTERN = re.compile(r'%([nati%])')


def sanitize_image_name(image_name: str) -> str:
    """
    Turns an image reference like "registry:5000/org/app:1.0" into "org_app".
    """
    parts = image_name.split('@')[0].split('/')
    if len(parts) > 1 and ('.' in parts[0] or ':' in parts[0] or parts[0] == 'localhost'):
        parts = parts[1:]
    last = parts[-1]
    if ':' in last:
        parts[-1] = last.rsplit(':', 1)[0]
    return re.sub(r'[^a-zA-Z0-9_.-]', '_', '_'.join(parts))


def format_container_name(pattern: str,
                          image_name: str,
                          alias: Optional[str],
                          timestamp: datetime,
                          index: int = 1) -> str:
    """
    Formats a container name.

    :param pattern: Naming pattern, e.g. "%n-%i".
    :param image_name: Full image reference.
    :param alias: Optional image alias.
    :param timestamp: Build timestamp.
    :param index: Index of this container among the containers of the image.
    :return: The container name.
    """
    sanitized = sanitize_image_name(image_name)

    def replace(match):
        token = match.group(1)
        if token == 'n':
            return sanitized
        if token == 'a':
            return alias or sanitized
        if token == 't':
            return str(int(timestamp.timestamp() * 1000))
        if token == 'i':
            return str(index)
        return '%'

    return _TOKEN_PATTERN.sub(replace, pattern)


def next_container_name(pattern: str,
                        image_name: str,
                        alias: Optional[str],
                        timestamp: datetime,
                        existing_names: Iterable[str]) -> str:
    """
    Formats a container name with the lowest index that no existing container uses.
    A pattern without %i is formatted as is.
    """
    taken = set(existing_names)
    index = 1
    name = format_container_name(pattern, image_name, alias, timestamp, index)
    if 'i' not in (match.group(1) for match in _TOKEN_PATTERN.finditer(pattern)):
        return name
    while name in taken:
        index += 1
        name = format_container_name(pattern, image_name, alias, timestamp, index)
    return name
