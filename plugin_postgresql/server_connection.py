from .server import PluginInstance, Server

import logging

logger = logging.getLogger(__name__)


class ConnectionStrategy(object):
    """Adopt a server the caller already runs.

    The caller owns the server's lifecycle. The teardown closes the client
    connection only if the readiness handshake of this setup opened it; a
    handle the caller initialized beforehand is left untouched.

    """

    def __init__(self, server: Server) -> None:
        self.server = server

    async def setup(self) -> PluginInstance[Server]:
        server = self.server
        owned = not server.initialized
        logger.info("Using existing server {} at {}:{}".format(server.id, server.hostname, server.port))

        async def teardown() -> None:
            if owned:
                await server.close()

        return PluginInstance(output=server, teardown=teardown)
