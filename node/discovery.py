import time

from zeroconf import Zeroconf, ServiceBrowser, ServiceListener

from node.broadcast import SERVICE_TYPE


class DiscoveryListener(ServiceListener):
    def __init__(self):
        self.masters = {}

    def add_service(self, zeroconf, type_, name):
        info = zeroconf.get_service_info(type_, name)
        if info:
            addresses = info.parsed_addresses()
            if not addresses:
                return
            master_name = name.split('.')[0]
            self.masters[master_name] = (addresses[0], info.port)

    def update_service(self, zeroconf, type_, name):
        self.add_service(zeroconf, type_, name)

    def remove_service(self, zeroconf, type_, name):
        self.masters.pop(name.split('.')[0], None)


class Discovery:
    def __init__(self, discovery_timeout):
        self.discovery_timeout = discovery_timeout
        self.listener = DiscoveryListener()

    def find_masters(self):
        """Browse the local network for advertising masters."""
        zeroconf = Zeroconf()
        try:
            ServiceBrowser(zeroconf, SERVICE_TYPE, self.listener)
            time.sleep(self.discovery_timeout)
        finally:
            zeroconf.close()
        return dict(self.listener.masters)
