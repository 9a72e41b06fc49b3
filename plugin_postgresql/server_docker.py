from .connection import Connector
from .errors import ProvisioningError
from .server import PluginInstance, Server, ServerDetails
from .utils import POSTGRES_IMAGE, POSTGRES_PORT

from abc import ABC, abstractmethod
from dataclasses import dataclass
from testcontainers.postgres import PostgresContainer  # type: ignore
from typing import Dict

import asyncio
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContainerSpec:
    name: str
    image: str
    port: int
    user: str
    password: str
    database: str


@dataclass(frozen=True)
class ContainerInfo:
    id: str
    host: str
    port: int


class ContainerRuntime(ABC):
    """Starts and stops PostgreSQL containers."""

    @abstractmethod
    async def start(self, spec: ContainerSpec) -> ContainerInfo:
        """
        Start a container and return where its PostgreSQL port is reachable.

        A `spec.port` of 0 lets the runtime pick a free host port.
        """
        pass

    @abstractmethod
    async def stop(self, id: str) -> None:
        """
        Stop and remove the container. Stopping an unknown or already stopped
        container is a no-op.
        """
        pass


class TestcontainersRuntime(ContainerRuntime):
    __test__ = False

    def __init__(self):
        self.containers: Dict[str, object] = {}

    def _start(self, spec):
        container = PostgresContainer(
            spec.image,
            username=spec.user,
            password=spec.password,
            dbname=spec.database,
        ).with_name(spec.name)
        if spec.port:
            container = container.with_bind_ports(POSTGRES_PORT, spec.port)
        container.start()

        id = container.get_wrapped_container().id
        self.containers[id] = container
        return ContainerInfo(
            id=id,
            host=container.get_container_host_ip(),
            port=int(container.get_exposed_port(POSTGRES_PORT)),
        )

    async def start(self, spec):
        return await asyncio.to_thread(self._start, spec)

    async def stop(self, id):
        container = self.containers.pop(id, None)
        if container is None:
            logger.debug("Container {} already stopped".format(id))
            return
        await asyncio.to_thread(container.stop)


@dataclass(frozen=True)
class DockerServerStrategyConfig:
    server_name: str
    port: int
    user: str
    password: str
    database: str
    version: str


class DockerServerStrategy(object):
    """Provision a fresh PostgreSQL server in a container."""

    def __init__(self, config: DockerServerStrategyConfig, runtime: ContainerRuntime, connector: Connector) -> None:
        self.config = config
        self.runtime = runtime
        self.connector = connector

    async def setup(self) -> PluginInstance[Server]:
        config = self.config
        spec = ContainerSpec(
            name=config.server_name,
            image="{}:{}".format(POSTGRES_IMAGE, config.version),
            port=config.port,
            user=config.user,
            password=config.password,
            database=config.database,
        )
        logger.info("Starting container {} ({})".format(spec.name, spec.image))
        try:
            info = await self.runtime.start(spec)
        except Exception as e:
            raise ProvisioningError("Could not start container {}: {}".format(spec.name, e)) from e

        details = ServerDetails(
            server_name=config.server_name,
            hostname=info.host,
            port=info.port,
            user=config.user,
            password=config.password,
            database=config.database,
        )
        server = Server(info.id, details, connector=self.connector)
        runtime = self.runtime

        async def teardown() -> None:
            try:
                await server.close()
            finally:
                logger.info("Stopping container {}".format(info.id))
                await runtime.stop(info.id)

        return PluginInstance(output=server, teardown=teardown)
