import socket
import sqlite3
import threading

import zeroconf

from crypto.secret import fingerprint
from node.broadcast import Broadcast
from node.role import MasterRole
from protocol.errors import BindError
from protocol.handler import handle_incoming_request
from registry.store import Registry
from utils.helpers import format_address
from utils.log import get_logger

logger = get_logger(__name__)


def bind_listener(host, preferred_port):
    """
    Bind a listening socket on the preferred port, or on any free port if
    that one is taken. Only failing both is an error.
    """
    for port in (preferred_port, 0):
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
            sock.listen()
            return sock
        except (OSError, OverflowError) as e:
            sock.close()
            logger.warning(f"Could not bind {host}:{port}: {e}")
    raise BindError(f"Can't listen on any port of {host}")


class NodeServer:
    """
    Accepts JOIN connections and records members in the registry.

    Every accepted connection is served on its own thread. The registry
    connection is shared by all of them behind registry_lock.
    """

    def __init__(self, role, listener, registry, master_key, config):
        self.role = role
        self.listener = listener
        self.registry = registry
        self.registry_lock = threading.Lock()
        self.master_key = master_key
        self.connection_timeout = config.get("connection_timeout")
        self.broadcast = None
        self._closing = threading.Event()
        if isinstance(role, MasterRole) and config.get("advertise"):
            self.broadcast = Broadcast(config["service_name"], config["host"], self.port)

    @classmethod
    def start(cls, role, config, master_key):
        if isinstance(role, MasterRole):
            preferred_port = config["master_port"]
        else:
            preferred_port = role.slave_port
        listener = bind_listener(config["host"], preferred_port)
        try:
            registry = Registry(config["database"])
            registry.init_schema()
        except sqlite3.Error:
            listener.close()
            raise
        server = cls(role, listener, registry, master_key, config)

        if isinstance(role, MasterRole):
            print(f"Master listening at: http://{server.address}")
        else:
            print(f"Listening as member at: http://{server.address}")
        logger.info(f"Node started as {type(role).__name__} on {server.address}, "
                    f"master key fingerprint {fingerprint(master_key)}")
        return server

    @property
    def port(self):
        return self.listener.getsockname()[1]

    @property
    def address(self):
        return format_address(self.listener.getsockname())

    def run(self):
        if self.broadcast:
            try:
                self.broadcast.start_service()
            except (zeroconf.Error, OSError) as e:
                # Discovery is optional; serve JOINs without it.
                logger.warning(f"Could not advertise master over mDNS: {e}")
        try:
            while not self._closing.is_set():
                try:
                    conn, addr = self.listener.accept()
                except OSError as e:
                    if self._closing.is_set():
                        break
                    logger.error(f"Connection error: {e}")
                    continue
                logger.debug(f"Accepted connection from {format_address(addr)}")
                threading.Thread(target=self.handle_req, args=(conn, addr), daemon=True).start()
        finally:
            if self.broadcast:
                self.broadcast.stop_service()

    def handle_req(self, conn, addr):
        try:
            result = handle_incoming_request(
                conn, addr, self.master_key, self.registry, self.registry_lock,
                timeout=self.connection_timeout,
            )
            if result["status"] == "error":
                logger.debug(f"Dropped connection from {format_address(addr)}: {result.get('reason')}")
            return result
        finally:
            conn.close()

    def shutdown(self):
        self._closing.set()
        try:
            self.listener.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.listener.close()
        with self.registry_lock:
            self.registry.close()
