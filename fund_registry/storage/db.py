"""
FundRegistry - Database Storage Layer
=======================================
Persistent storage con SQLite.

Last Updated: 2026-10-18
Version: 1.0.0

Features:
- Snapshot completo del registry (config, campagne, contributi, grant, eventi)
- Salvataggio atomico in una singola transazione
- Caricamento in formato FundRegistry.snapshot()
"""

import sqlite3
from typing import Optional, Dict, Any
from pathlib import Path
import json
import threading
import time

# Internal imports
from fund_registry.errors import DatabaseError, SnapshotError
from fund_registry.logging_setup import get_logger, PerformanceLogger


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("storage")


# ============================================================================
# DATABASE SCHEMA
# ============================================================================

SCHEMA_VERSION = 1

CREATE_TABLES_SQL = """
-- Registry configuration (single row)
CREATE TABLE IF NOT EXISTS registry_config (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    admin TEXT NOT NULL,
    creation_fee TEXT NOT NULL,
    paused INTEGER NOT NULL,
    next_campaign_id INTEGER NOT NULL,
    max_campaigns INTEGER NOT NULL,
    updated_at INTEGER NOT NULL
);

-- Campaigns table
CREATE TABLE IF NOT EXISTS campaigns (
    campaign_id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT NOT NULL,
    goal TEXT NOT NULL,
    raised TEXT NOT NULL,
    deadline INTEGER NOT NULL,
    active INTEGER NOT NULL,
    creator TEXT NOT NULL,
    funds_locked INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_campaigns_creator ON campaigns(creator);

-- Contributions (latest per contributor)
CREATE TABLE IF NOT EXISTS contributions (
    campaign_id INTEGER NOT NULL,
    contributor TEXT NOT NULL,
    amount TEXT NOT NULL,
    timestamp INTEGER NOT NULL,
    PRIMARY KEY (campaign_id, contributor),
    FOREIGN KEY (campaign_id) REFERENCES campaigns(campaign_id)
);

-- Campaign admin grants
CREATE TABLE IF NOT EXISTS campaign_admins (
    campaign_id INTEGER NOT NULL,
    account TEXT NOT NULL,
    active INTEGER NOT NULL,
    PRIMARY KEY (campaign_id, account),
    FOREIGN KEY (campaign_id) REFERENCES campaigns(campaign_id)
);

-- Event journal
CREATE TABLE IF NOT EXISTS events (
    sequence INTEGER PRIMARY KEY,
    event_type TEXT NOT NULL,
    block_height INTEGER NOT NULL,
    actor TEXT NOT NULL,
    campaign_id INTEGER,
    payload TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_events_campaign ON events(campaign_id);

-- Metadata table
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at INTEGER NOT NULL
);

INSERT OR REPLACE INTO metadata (key, value, updated_at)
VALUES ('schema_version', '1', strftime('%s', 'now'));
"""

# Importi uint128 superano INTEGER sqlite (64 bit): salvati come TEXT


# ============================================================================
# DATABASE CLASS
# ============================================================================

class RegistryDatabase:
    """
    Database SQLite per persistence del registry.

    Thread-safe: una connection condivisa protetta da lock.

    Attributes:
        db_path: Path database file

    Examples:
        >>> db = RegistryDatabase(Path("fundregistry.db"))
        >>> db.save_snapshot(registry.snapshot())
        >>> restored = FundRegistry.from_snapshot(db.load_snapshot())
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        self._connection: Optional[sqlite3.Connection] = None

        self._initialize_database()

        logger.info(
            "Database initialized",
            extra_data={"db_path": str(self.db_path)}
        )

    def _get_connection(self) -> sqlite3.Connection:
        """Ottieni connection (lazy)"""
        if self._connection is None:
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                self._connection = sqlite3.connect(
                    str(self.db_path),
                    check_same_thread=False,
                    timeout=30.0
                )
                self._connection.execute("PRAGMA foreign_keys = ON")
            except (sqlite3.Error, OSError) as e:
                raise DatabaseError(
                    f"Failed to connect to database: {e}",
                    code="DB_CONNECTION_FAILED"
                ) from e

        return self._connection

    def _initialize_database(self) -> None:
        """Inizializza database con schema"""
        try:
            conn = self._get_connection()
            conn.executescript(CREATE_TABLES_SQL)
            conn.commit()
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to initialize database: {e}",
                code="DB_INIT_FAILED"
            ) from e

    # ========================================================================
    # SNAPSHOT OPERATIONS
    # ========================================================================

    def save_snapshot(self, snapshot: Dict[str, Any]) -> None:
        """
        Salva snapshot registry, sostituendo lo stato precedente.

        Args:
            snapshot: Output di FundRegistry.snapshot()

        Raises:
            DatabaseError: Se salvataggio fallisce
        """
        with self._lock, PerformanceLogger(logger, "save_snapshot", threshold_ms=500):
            conn = self._get_connection()
            try:
                cursor = conn.cursor()

                for table in ("events", "contributions", "campaign_admins", "campaigns", "registry_config"):
                    cursor.execute(f"DELETE FROM {table}")

                state = snapshot["state"]
                cursor.execute("""
                    INSERT INTO registry_config (
                        id, admin, creation_fee, paused, next_campaign_id,
                        max_campaigns, updated_at
                    ) VALUES (1, ?, ?, ?, ?, ?, ?)
                """, (
                    state["admin"],
                    str(state["creation_fee"]),
                    int(state["paused"]),
                    state["next_campaign_id"],
                    state["max_campaigns"],
                    int(time.time())
                ))

                cursor.executemany("""
                    INSERT INTO campaigns (
                        campaign_id, name, description, goal, raised,
                        deadline, active, creator, funds_locked
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, [
                    (
                        c["campaign_id"], c["name"], c["description"],
                        str(c["goal"]), str(c["raised"]), c["deadline"],
                        int(c["active"]), c["creator"], int(c["funds_locked"])
                    )
                    for c in snapshot.get("campaigns", [])
                ])

                cursor.executemany("""
                    INSERT INTO contributions (campaign_id, contributor, amount, timestamp)
                    VALUES (?, ?, ?, ?)
                """, [
                    (c["campaign_id"], c["contributor"], str(c["amount"]), c["timestamp"])
                    for c in snapshot.get("contributions", [])
                ])

                cursor.executemany("""
                    INSERT INTO campaign_admins (campaign_id, account, active)
                    VALUES (?, ?, ?)
                """, [
                    (a["campaign_id"], a["account"], int(a["active"]))
                    for a in snapshot.get("campaign_admins", [])
                ])

                cursor.executemany("""
                    INSERT INTO events (
                        sequence, event_type, block_height, actor, campaign_id, payload
                    ) VALUES (?, ?, ?, ?, ?, ?)
                """, [
                    (
                        e["sequence"], e["event_type"], e["block_height"],
                        e["actor"], e["campaign_id"], json.dumps(e["payload"])
                    )
                    for e in snapshot.get("events", [])
                ])

                conn.commit()

            except sqlite3.Error as e:
                conn.rollback()
                raise DatabaseError(
                    f"Failed to save snapshot: {e}",
                    code="SNAPSHOT_SAVE_FAILED"
                ) from e
            except (KeyError, TypeError) as e:
                conn.rollback()
                raise SnapshotError(
                    f"Malformed snapshot: {e}",
                    code="INVALID_SNAPSHOT"
                ) from e

        logger.debug(
            "Snapshot saved",
            extra_data={
                "campaigns": len(snapshot.get("campaigns", [])),
                "events": len(snapshot.get("events", [])),
            }
        )

    def load_snapshot(self) -> Optional[Dict[str, Any]]:
        """
        Carica snapshot registry.

        Returns:
            dict: Snapshot nel formato FundRegistry.snapshot(), None se vuoto
        """
        with self._lock:
            try:
                cursor = self._get_connection().cursor()

                cursor.execute("""
                    SELECT admin, creation_fee, paused, next_campaign_id, max_campaigns
                    FROM registry_config WHERE id = 1
                """)
                row = cursor.fetchone()
                if row is None:
                    return None

                state = {
                    "admin": row[0],
                    "creation_fee": int(row[1]),
                    "paused": bool(row[2]),
                    "next_campaign_id": row[3],
                    "max_campaigns": row[4],
                }

                cursor.execute("""
                    SELECT campaign_id, name, description, goal, raised,
                           deadline, active, creator, funds_locked
                    FROM campaigns ORDER BY campaign_id
                """)
                campaigns = [
                    {
                        "campaign_id": r[0],
                        "name": r[1],
                        "description": r[2],
                        "goal": int(r[3]),
                        "raised": int(r[4]),
                        "deadline": r[5],
                        "active": bool(r[6]),
                        "creator": r[7],
                        "funds_locked": bool(r[8]),
                    }
                    for r in cursor.fetchall()
                ]

                cursor.execute("""
                    SELECT campaign_id, contributor, amount, timestamp
                    FROM contributions ORDER BY campaign_id, contributor
                """)
                contributions = [
                    {
                        "campaign_id": r[0],
                        "contributor": r[1],
                        "amount": int(r[2]),
                        "timestamp": r[3],
                    }
                    for r in cursor.fetchall()
                ]

                cursor.execute("""
                    SELECT campaign_id, account, active
                    FROM campaign_admins ORDER BY campaign_id, account
                """)
                admins = [
                    {"campaign_id": r[0], "account": r[1], "active": bool(r[2])}
                    for r in cursor.fetchall()
                ]

                cursor.execute("""
                    SELECT sequence, event_type, block_height, actor, campaign_id, payload
                    FROM events ORDER BY sequence
                """)
                events = [
                    {
                        "sequence": r[0],
                        "event_type": r[1],
                        "block_height": r[2],
                        "actor": r[3],
                        "campaign_id": r[4],
                        "payload": json.loads(r[5]),
                    }
                    for r in cursor.fetchall()
                ]

            except sqlite3.Error as e:
                raise DatabaseError(
                    f"Failed to load snapshot: {e}",
                    code="SNAPSHOT_LOAD_FAILED"
                ) from e

        return {
            "state": state,
            "campaigns": campaigns,
            "contributions": contributions,
            "campaign_admins": admins,
            "events": events,
        }

    def has_state(self) -> bool:
        """True se il database contiene uno snapshot"""
        with self._lock:
            try:
                cursor = self._get_connection().cursor()
                cursor.execute("SELECT COUNT(*) FROM registry_config")
                return cursor.fetchone()[0] > 0
            except sqlite3.Error as e:
                raise DatabaseError(
                    f"Failed to query database: {e}",
                    code="DB_QUERY_FAILED"
                ) from e

    def get_schema_version(self) -> int:
        with self._lock:
            cursor = self._get_connection().cursor()
            cursor.execute("SELECT value FROM metadata WHERE key = 'schema_version'")
            row = cursor.fetchone()
            return int(row[0]) if row else 0

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def close(self) -> None:
        """Chiudi connection"""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
                logger.debug("Database connection closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "SCHEMA_VERSION",
    "RegistryDatabase",
]
