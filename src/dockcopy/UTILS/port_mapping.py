"""
Port mapping for created containers, with dynamic allocation of free host ports.
"""
import socket
from typing import Dict, List, Optional, Tuple
from .string_interpolation import PropertyInterpolator, PLACEHOLDER_PATTERN
from ..errors import ConfigurationError

PROTOCOLS = ("tcp", "udp", "sctp")


def get_free_port() -> int:
    """
    Finds a free port on localhost.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('', 0))
        return s.getsockname()[1]


def is_port_free(port: int) -> bool:
    """
    Checks if a port is free on localhost.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind(('', port))
            return True
        except OSError:
            return False


class PortMapping:
    """
    Maps container ports to host ports.

    Port specs are "host:container", "container" or "${prop}:container", each
    optionally suffixed with a protocol ("53/udp"; tcp when omitted).
    A host port given as an unresolved property, or omitted, is allocated
    dynamically and the property is updated with the allocated port.
    """
    def __init__(self, specs: List[str], properties: Dict[str, str]):
        """
        :param specs: Port specs from the run configuration.
        :param properties: Project properties; dynamically allocated ports are written back.
        :raises ConfigurationError: If a spec is malformed or references an unknown property.
        """
        self.properties = properties
        self.ports: Dict[Tuple[int, str], int] = {}
        for spec in specs:
            container_port, protocol, host_port = self._parse(spec)
            self.ports[(container_port, protocol)] = host_port

    def _parse(self, spec: str):
        host_part, _, container_part = spec.strip().rpartition(':')
        port_part, _, protocol = container_part.partition('/')
        protocol = protocol.lower() or "tcp"
        if protocol not in PROTOCOLS:
            raise ConfigurationError(f"Invalid protocol '{protocol}' in port spec '{spec}'")
        try:
            container_port = int(port_part)
        except ValueError:
            raise ConfigurationError(f"Invalid port spec '{spec}'")

        if not host_part:
            return container_port, protocol, get_free_port()

        # "${prop}:80" with prop unknown allocates a port and records it under prop
        match = PLACEHOLDER_PATTERN.fullmatch(host_part)
        if match and PropertyInterpolator.unresolved(host_part, self.properties):
            port = get_free_port()
            self.properties[match.group(1)] = str(port)
            return container_port, protocol, port

        try:
            resolved = PropertyInterpolator.interpolate(host_part, self.properties)
        except KeyError as e:
            raise ConfigurationError(f"Invalid port spec '{spec}': {e.args[0]}") from e
        try:
            return container_port, protocol, int(resolved)
        except ValueError:
            raise ConfigurationError(f"Invalid host port '{resolved}' in port spec '{spec}'")

    def get_host_port(self, container_port: int, protocol: str = "tcp") -> Optional[int]:
        return self.ports.get((container_port, protocol))

    def to_docker_ports(self) -> Dict[str, int]:
        """
        Returns the mapping in the form the docker SDK expects for 'ports'.
        """
        return {f"{container}/{protocol}": host for (container, protocol), host in self.ports.items()}

    def __len__(self) -> int:
        return len(self.ports)
