#main.py  ==  swarm node entry point
           #↳ serve:    start as master, or as member once joined
           #↳ join:     register with a running master
           #↳ discover: find masters announced on the local network
'''swarmjoin/
├── main.py                 # Entry point, command dispatch
├── config.py               # config.yaml loading, MASTER_KEY lookup
├── node/
│   ├── role.py             # Master/member role from the local role file
│   ├── server.py           # Listening socket, thread per connection
│   ├── join.py             # One-shot JOIN client
│   ├── broadcast.py        # mDNS announcement of the master
│   └── discovery.py        # mDNS lookup of masters
├── protocol/
│   ├── handler.py          # JOIN request handling
│   ├── line_handler.py     # Newline-delimited socket I/O
│   └── errors.py           # Exceptions
├── registry/
│   └── store.py            # SQLite member table
├── crypto/
│   └── secret.py           # Master key comparison and fingerprint
└── utils/
    ├── helpers.py          # Address formatting/parsing
    └── log.py              # Logger setup
'''

import sqlite3
import sys

from dotenv import load_dotenv

from config import load_config, require_master_key
from node.discovery import Discovery
from node.join import join
from node.role import resolve_role
from node.server import NodeServer
from protocol.errors import SwarmError
from utils.log import set_level

USAGE = """
Usage:
  serve                   Start the node (master, or member once joined)
  join <ip_address:port>  Join the swarm run by the master at that address
  discover                List masters announced on the local network
  help                    Show this message
"""


def print_usage():
    print(USAGE)


def run_server(config):
    master_key = require_master_key()
    role = resolve_role(config["role_file"])
    server = NodeServer.start(role, config, master_key)
    try:
        server.run()
    except KeyboardInterrupt:
        print("\nInterrupted. Exiting")
    finally:
        server.shutdown()


def run_join(config, target):
    master_key = require_master_key()
    join(target, master_key, config["role_file"])


def run_discover(config):
    masters = Discovery(config["discovery_timeout"]).find_masters()
    if not masters:
        print("No masters found.")
    for name, (ip, port) in masters.items():
        print(f"{name} @ {ip}:{port}")


def main(argv=None, config_path="config.yaml"):
    args = sys.argv[1:] if argv is None else argv
    command = args[0] if args else None
    if command not in ("serve", "join", "discover"):
        print_usage()
        return 0
    if command == "join" and len(args) != 2:
        print("Not enough arguments!")
        print_usage()
        return 0

    load_dotenv()
    try:
        config = load_config(config_path)
        set_level(config["log_level"])
        if command == "serve":
            run_server(config)
        elif command == "join":
            run_join(config, args[1])
        else:
            run_discover(config)
    except (SwarmError, sqlite3.Error, OSError, ValueError) as e:
        print(f"[!] Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
