"""Startup failure taxonomy.

Every stage of process startup raises one of these so the entry point can name
the failed stage and pick an exit status without inspecting messages.
"""


class StartupError(Exception):
    """Base class for any failure that aborts process startup."""

    stage = "startup"
    exit_code = 1

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        cause = self.__cause__
        if cause is not None:
            return f"{self.message}: {cause}"
        return self.message


class ConfigurationError(StartupError):
    """A required setting is missing or malformed."""

    stage = "configure"
    exit_code = 2


class DatabaseConnectionError(StartupError):
    """The database could not be reached or refused our credentials."""

    stage = "pool"
    exit_code = 3


class MigrationError(StartupError):
    """Schema migrations failed part way; the schema is left as the engine left it."""

    stage = "pool"
    exit_code = 4


class SeedError(StartupError):
    """The seed routine failed after it was explicitly requested."""

    stage = "seed"
    exit_code = 5


class ServeError(StartupError):
    """The listener could not be bound or the server crashed while serving."""

    stage = "serve"
    exit_code = 6

    def __init__(self, message: str, address_in_use: bool = False) -> None:
        super().__init__(message)
        self.address_in_use = address_in_use
