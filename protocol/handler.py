import sqlite3

from crypto.secret import secrets_match
from protocol.errors import MalformedRequestError
from protocol.line_handler import send_line, recv_line
from utils.helpers import format_address
from utils.log import get_logger

logger = get_logger(__name__)

JOIN = "JOIN"

ALREADY_EXISTS = "Server already exists!"
JOINED = "Swam has been joined!"
UNKNOWN_COMMAND = "Unknown command!"


def parse_command(line):
    """Split a request line on single spaces, as the protocol defines it."""
    return line.strip().split(" ")


def handle_join(sock, address, registry, registry_lock):
    # The lookup and the insert must happen under one lock hold, otherwise
    # two concurrent JOINs from one address could both insert.
    with registry_lock:
        if registry.find_member(address) is not None:
            send_line(sock, ALREADY_EXISTS)
            logger.info(f"{address} is already registered")
            return {"status": "exists"}
        member = registry.add_member(address)
        send_line(sock, JOINED)
    logger.info(f"{address} joined the swarm as member #{member.id}")
    return {"status": "joined", "member": member}


def handle_incoming_request(sock, addr, master_key, registry, registry_lock, timeout=None):
    address = format_address(addr)
    try:
        line = recv_line(sock, timeout)
        logger.debug(f"Received request from {address}: {line.split(' ', 1)[0]!r}")
        command = parse_command(line)
        if command[0] == JOIN:
            if len(command) < 2:
                raise MalformedRequestError("JOIN without a master key")
            if not secrets_match(command[1], master_key):
                # No reply on a key mismatch; the connection is simply closed.
                logger.warning(f"Rejected JOIN from {address}: master key mismatch")
                return {"status": "rejected"}
            return handle_join(sock, address, registry, registry_lock)
        send_line(sock, UNKNOWN_COMMAND)
        logger.debug(f"Unknown command from {address}: {command[0]!r}")
        return {"status": "unknown"}
    except (MalformedRequestError, OSError, sqlite3.Error) as e:
        logger.error(f"Error handling request from {address}: {e}")
        return {"status": "error", "reason": str(e)}
