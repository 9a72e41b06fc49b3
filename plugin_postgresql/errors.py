class PluginError(Exception):
    """Base class for everything the plugin raises on purpose.

    `teardown` is filled in by the orchestrator when the error escapes a
    setup call after resources were acquired. Awaiting it releases whatever
    was set up before the failure.
    """

    def __init__(self, message, teardown=None):
        super().__init__(message)
        self.teardown = teardown


class ConfigError(PluginError):
    pass


class UnknownStrategyError(ConfigError):
    def __init__(self, kind, strategy):
        super().__init__("Unknown {} strategy: {!r}".format(kind, strategy))
        self.kind = kind
        self.strategy = strategy


class ProvisioningError(PluginError):
    pass


class ServerNotReadyError(ProvisioningError):
    pass


class ServerNotInitializedError(PluginError):
    pass


class DatabaseCreationError(PluginError):
    pass


class MigrationError(PluginError):
    def __init__(self, message, migration=None, teardown=None):
        super().__init__(message, teardown=teardown)
        self.migration = migration


class SeedError(PluginError):
    def __init__(self, message, table, index, teardown=None):
        super().__init__(message, teardown=teardown)
        self.table = table
        self.index = index


class SetupError(PluginError):
    """Wraps an unexpected exception raised while setting up."""


class TeardownError(PluginError):
    def __init__(self, message, errors):
        super().__init__(message)
        self.errors = errors
