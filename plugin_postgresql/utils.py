import asyncio
import os
import secrets
import time


def env(name, default=None):
    """Access to environment variables, falling back to a default value."""
    return os.environ.get(name, default)


TEST_DEBUG = env("TEST_DEBUG", "0") == "1"
READY_TIMEOUT = float(env("PLUGIN_POSTGRESQL_READY_TIMEOUT", 60))
POSTGRES_IMAGE = env("PLUGIN_POSTGRESQL_IMAGE", "postgres")
POSTGRES_PORT = 5432


async def wait_for(success, timeout=READY_TIMEOUT):
    """Await `success()` until it returns something truthy.

    Polls with an exponential backoff starting at 0.25s, capped at 5s, and
    raises `TimeoutError` once `timeout` seconds have passed.

    """
    start_time = time.monotonic()
    interval = 0.25
    while not await success():
        time_left = start_time + timeout - time.monotonic()
        if time_left <= 0:
            raise TimeoutError("Timeout while waiting for {}".format(success))
        await asyncio.sleep(min(interval, time_left))
        interval *= 2
        if interval > 5:
            interval = 5


class IdGenerator(object):
    """Produces the random parts of generated names and credentials.

    Every call draws fresh randomness from `secrets`, so parallel setup calls
    never share a suffix. Tests swap in a deterministic generator.
    """

    def __init__(self, nbytes: int = 8) -> None:
        self.nbytes = nbytes

    def suffix(self) -> str:
        return secrets.token_hex(self.nbytes)

    def token(self) -> str:
        return secrets.token_hex(self.nbytes * 2)

