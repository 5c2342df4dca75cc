import sqlite3
from dataclasses import dataclass

from utils.log import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Member:
    id: int
    address: str
    is_active: bool = True
    has_left: bool = False


class Registry:
    """
    Durable table of member addresses, backed by SQLite.

    The registry does no locking of its own. A single connection is shared
    by every connection handler, so callers must serialize access (the node
    server holds one lock around each lookup-then-insert).
    """

    def __init__(self, db_path):
        self.db_path = str(db_path)
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        logger.debug(f"Opened registry database at {self.db_path}")

    def init_schema(self):
        cursor = self.conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS servers (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                ip_address TEXT NOT NULL,
                is_active BOOLEAN NOT NULL DEFAULT 1,
                has_left BOOLEAN NOT NULL DEFAULT 0
            )
        """)
        # An address may be registered again only after it has left.
        cursor.execute("""
            CREATE UNIQUE INDEX IF NOT EXISTS servers_current_address
            ON servers (ip_address) WHERE has_left = 0
        """)
        self.conn.commit()

    def find_member(self, address):
        cursor = self.conn.execute(
            "SELECT id, ip_address, is_active, has_left FROM servers "
            "WHERE ip_address = ? AND has_left = 0",
            (address,),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return self._to_member(row)

    def add_member(self, address):
        with self.conn:
            cursor = self.conn.execute(
                "INSERT INTO servers (ip_address) VALUES (?)", (address,)
            )
        logger.debug(f"Registered {address} as member #{cursor.lastrowid}")
        return Member(id=cursor.lastrowid, address=address)

    def list_members(self, active_only=False):
        query = "SELECT id, ip_address, is_active, has_left FROM servers"
        if active_only:
            query += " WHERE is_active = 1 AND has_left = 0"
        query += " ORDER BY id"
        return [self._to_member(row) for row in self.conn.execute(query)]

    def close(self):
        self.conn.close()

    @staticmethod
    def _to_member(row):
        return Member(
            id=row[0],
            address=row[1],
            is_active=bool(row[2]),
            has_left=bool(row[3]),
        )
