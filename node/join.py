import enum
import socket

from node.role import MemberRole, resolve_role, write_role_config
from protocol.handler import JOIN
from protocol.line_handler import send_line, recv_line
from utils.helpers import parse_address
from utils.log import get_logger

logger = get_logger(__name__)


class JoinResult(enum.Enum):
    JOINED = "joined"
    ALREADY_MEMBER = "already_member"
    REJECTED = "rejected"


def join(target, master_key, role_path, timeout=None):
    """
    Ask the master at `target` (host:port) to register this node.

    On success the role file is written with the local address of the
    outgoing connection, so the next start comes up as a member listening
    on that port. Connection failures propagate as OSError.
    """
    if isinstance(resolve_role(role_path), MemberRole):
        print("You are already part of a swarm. Type help for more.")
        return JoinResult.ALREADY_MEMBER

    host, port = parse_address(target)
    sock = socket.create_connection((host, port), timeout=timeout)
    try:
        local_ip, local_port = sock.getsockname()[:2]
        logger.debug(f"Connected to {host}:{port} from {local_ip}:{local_port}")
        send_line(sock, f"{JOIN} {master_key}")
        response = recv_line(sock, timeout).strip()
    finally:
        sock.close()

    print(f"Server: {response}")
    if "joined" not in response:
        logger.warning(f"Join request to {target} was not accepted")
        return JoinResult.REJECTED

    write_role_config(role_path, local_ip, local_port)
    return JoinResult.JOINED
