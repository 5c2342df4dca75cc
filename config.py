import os

import yaml

from protocol.errors import ConfigError, MissingMasterKeyError

DEFAULTS = {
    "host": "127.0.0.1",
    "master_port": 8777,
    "role_file": "config.txt",
    "database": "master_node.db",
    "advertise": False,
    "service_name": "swarm-master",
    "discovery_timeout": 2.0,
    # Seconds to wait for a request line; None blocks forever.
    "connection_timeout": None,
    "log_level": "DEBUG",
}


def load_config(path="config.yaml"):
    """
    Load node settings from a YAML file, falling back to DEFAULTS for
    anything the file leaves out. A missing file is not an error.
    """
    config = dict(DEFAULTS)
    if not os.path.exists(path):
        return config
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return config
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")
    config.update(data)
    return config


def require_master_key():
    master_key = os.environ.get("MASTER_KEY")
    if not master_key:
        raise MissingMasterKeyError()
    return master_key
