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
Unit tests for the run service.
"""
from datetime import datetime
import pytest
from dockcopy.MODELS.build_label import LABEL_KEY
from dockcopy.MODELS.image_configuration import ImageConfiguration, RunConfiguration
from dockcopy.SERVICES.container_tracker import ContainerTracker
from dockcopy.SERVICES.run_service import RunService
from dockcopy.UTILS.port_mapping import PortMapping


@pytest.fixture
def service(tmp_path, calls, fakes):
    return RunService(fakes.DockerAccess(calls), ContainerTracker(str(tmp_path / "state")))


class TestRunService:
    """Tests for RunService."""

    def test_create_container(self, service, calls, build_label):
        """Test the request sent to the engine."""
        image = ImageConfiguration(
            name="registry.local/shop/app:1.0",
            run=RunConfiguration(
                env={"LOG_DIR": "${log.dir}", "MODE": "copy"},
                labels={"team": "shop"},
                volumes=["./data:/data", "cache:/cache", "/srv/conf:/conf:ro"],
                cmd=["true"],
            ),
        )
        properties = {"log.dir": "/var/log"}
        port_mapping = service.create_port_mapping(image.run, properties)

        container_id = service.create_container(image, port_mapping, build_label, properties, "/project",
                                                "%n-%i", datetime(2024, 1, 1))

        assert container_id == "engine-1"
        kind, image_name, kwargs = calls[0]
        assert kind == "engine_create"
        assert image_name == "registry.local/shop/app:1.0"
        assert kwargs["name"] == "shop_app-1"
        assert kwargs["environment"] == {"LOG_DIR": "/var/log", "MODE": "copy"}
        assert kwargs["labels"] == {"team": "shop", LABEL_KEY: "shop:1.0"}
        assert kwargs["volumes"] == ["/project/data:/data", "cache:/cache", "/srv/conf:/conf:ro"]
        assert kwargs["command"] == ["true"]
        assert kwargs["ports"] == {}

    def test_container_name_skips_existing(self, tmp_path, calls, fakes, build_label):
        """Test that a name left behind by a start step is not reused."""
        service = RunService(fakes.DockerAccess(calls, existing_names=["app-1"]),
                             ContainerTracker(str(tmp_path / "state")))
        image = ImageConfiguration(name="app")
        service.create_container(image, PortMapping([], {}), build_label, {}, "/project", "%n-%i",
                                 datetime(2024, 1, 1))
        assert calls[0][2]["name"] == "app-2"

    def test_udp_port(self, service, calls, build_label):
        image = ImageConfiguration(name="dns", run=RunConfiguration(ports=["5353:53/udp"]))
        port_mapping = service.create_port_mapping(image.run, {})
        service.create_container(image, port_mapping, build_label, {}, "/project", "%n-%i", datetime(2024, 1, 1))
        assert calls[0][2]["ports"] == {"53/udp": 5353}

    def test_create_port_mapping(self, service):
        """Test that a fixed host port is kept."""
        mapping = service.create_port_mapping(RunConfiguration(ports=["18080:80"]), {})
        assert isinstance(mapping, PortMapping)
        assert mapping.to_docker_ports() == {"80/tcp": 18080}

    def test_remove_container(self, service, calls):
        service.remove_container("c1", True)
        assert calls == [("engine_remove", "c1", True)]

    def test_get_containers(self, service, build_label):
        """Test that tracked containers come from the tracker."""
        service.tracker.register(build_label, "c1", ImageConfiguration(name="app"))
        containers = service.get_containers(build_label)
        assert [c.container_id for c in containers] == ["c1"]
