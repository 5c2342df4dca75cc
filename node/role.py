import os
from dataclasses import dataclass

from protocol.errors import RoleConfigError

DEFAULT_SLAVE_PORT = 8777
_U32_MAX = 2**32 - 1


@dataclass(frozen=True)
class MasterRole:
    pass


@dataclass(frozen=True)
class MemberRole:
    master_ip_address: str = ""
    slave_port: int = DEFAULT_SLAVE_PORT


def _parse_port(value):
    digits = value[1:] if value.startswith("+") else value
    if not digits.isascii() or not digits.isdigit():
        return None
    port = int(digits)
    if port > _U32_MAX:
        return None
    return port


def resolve_role(path):
    """
    Decide the startup role from the local role file.

    No file means this node is the master. Any file, even an empty or
    garbled one, means the node already joined a swarm; missing fields fall
    back to their defaults.
    """
    if not os.path.exists(path):
        return MasterRole()
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise RoleConfigError(f"Role file {path} exists but cannot be read: {e}") from e

    master_ip_address = ""
    slave_port = DEFAULT_SLAVE_PORT
    for line in content.splitlines():
        key, sep, value = line.partition("=")
        if not sep:
            continue
        if key == "master_ip_address":
            master_ip_address = value
        elif key == "slave_port":
            port = _parse_port(value)
            if port is not None:
                slave_port = port
    return MemberRole(master_ip_address=master_ip_address, slave_port=slave_port)


def write_role_config(path, ip, port):
    """
    Persist member role settings. An existing file is left untouched so a
    node can never flip roles by accident. Returns True if the file was written.
    """
    try:
        with open(path, "x", encoding="utf-8") as f:
            f.write(f"master_ip_address={ip}\nslave_port={port}")
    except FileExistsError:
        print("Config file already exist!")
        return False
    print("Config file has been created!")
    return True
