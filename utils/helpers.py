def format_address(addr):
    """Render a socket address tuple as ip:port ([ip]:port for IPv6)."""
    host, port = addr[0], addr[1]
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def parse_address(target):
    """Split 'host:port' or '[ipv6]:port' into (host, port)."""
    if target.startswith("["):
        host, sep, rest = target[1:].partition("]")
        if not sep or not rest.startswith(":"):
            raise ValueError(f"Invalid address: {target}")
        port = rest[1:]
    else:
        host, sep, port = target.rpartition(":")
        if not sep:
            raise ValueError(f"Invalid address, expected host:port: {target}")
    if not host or not port.isdigit() or not 0 < int(port) < 65536:
        raise ValueError(f"Invalid address: {target}")
    return host, int(port)
