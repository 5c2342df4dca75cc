import ipaddress
import socket

from zeroconf import ServiceInfo, Zeroconf

from utils.log import get_logger

SERVICE_TYPE = "_swarmjoin._tcp.local."

logger = get_logger(__name__)


def _is_local_only(host):
    if host in ("", "0.0.0.0", "localhost"):
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


class Broadcast:
    """Announces a master over mDNS so joining nodes can find it."""

    def __init__(self, service_name, host, port):
        self.service_name = service_name
        self.host = host
        self.port = port
        self.zeroconf = None
        self.service_info = None

    def advertised_ip(self):
        # Wildcard and loopback binds are announced under the host's own address.
        if _is_local_only(self.host):
            ip_addr = socket.gethostbyname(socket.gethostname())
            if self.host not in ("", "0.0.0.0"):
                logger.warning(f"Bound to {self.host}; peers on {ip_addr} will not reach this master")
            return ip_addr
        return self.host

    def start_service(self):
        hostname = socket.gethostname()
        ip_addr = self.advertised_ip()

        self.service_info = ServiceInfo(
            type_=SERVICE_TYPE,
            name=f"{self.service_name}.{SERVICE_TYPE}",
            addresses=[socket.inet_aton(ip_addr)],
            port=self.port,
            properties={"role": "master"},
            server=f"{hostname}.local.",
        )
        self.zeroconf = Zeroconf()
        try:
            self.zeroconf.register_service(self.service_info)
        except Exception:
            self.zeroconf.close()
            self.zeroconf = None
            raise
        logger.info(f"Advertising {self.service_name} at {ip_addr}:{self.port}")

    def stop_service(self):
        if self.zeroconf is None:
            return
        if self.service_info:
            self.zeroconf.unregister_service(self.service_info)
        self.zeroconf.close()
        self.zeroconf = None
