class SwarmError(Exception):
    """Base class for every error raised by the swarm node."""


class ConfigError(SwarmError):
    """config.yaml exists but is not a usable mapping."""


class MissingMasterKeyError(SwarmError):
    def __init__(self):
        super().__init__("MASTER_KEY environment variable not set")


class RoleConfigError(SwarmError):
    """Role file exists but cannot be read."""


class BindError(SwarmError):
    """No port could be bound, not even an ephemeral one."""


class MalformedRequestError(SwarmError):
    """Request line could not be parsed into a command."""
