"""
db/init_db.py
-------------
Creates the database schema (tables) if they do not already exist.
Run this module directly to initialize a fresh database:
    python -m db.init_db
"""

from db.connection import get_connection, release_connection
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
-- Id counters: allocated in the same transaction as the row that uses them
CREATE TABLE IF NOT EXISTS schedule_counters (
    name            VARCHAR(50) PRIMARY KEY,
    value           BIGINT NOT NULL
);

INSERT INTO schedule_counters (name, value)
VALUES ('remittance_schedules', 0)
ON CONFLICT (name) DO NOTHING;

-- Remittance schedules: one row per recurring transfer configuration
CREATE TABLE IF NOT EXISTS remittance_schedules (
    id               BIGINT PRIMARY KEY,
    owner            VARCHAR(128) NOT NULL,
    amount           BIGINT NOT NULL CHECK (amount > 0),
    split_config_ref VARCHAR(128),
    frequency        VARCHAR(20) NOT NULL
                     CHECK (frequency IN ('weekly', 'biweekly', 'monthly', 'custom')),
    frequency_days   INT NOT NULL DEFAULT 0,
    start_timestamp  BIGINT NOT NULL,
    end_timestamp    BIGINT,
    status           VARCHAR(10) NOT NULL DEFAULT 'active'
                     CHECK (status IN ('active', 'paused', 'expired')),
    last_executed    BIGINT,
    next_execution   BIGINT NOT NULL,
    created_at       BIGINT NOT NULL,
    version          INT NOT NULL DEFAULT 1,
    CHECK (frequency <> 'custom' OR frequency_days > 0),
    CHECK (end_timestamp IS NULL OR end_timestamp > start_timestamp)
);

-- Indexes for owner listings and the ready-for-execution scan
CREATE INDEX IF NOT EXISTS idx_schedules_owner ON remittance_schedules(owner, id);
CREATE INDEX IF NOT EXISTS idx_schedules_due
    ON remittance_schedules(next_execution) WHERE status = 'active';
"""


def create_tables() -> None:
    """
    Execute the schema SQL to create all tables.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    conn = get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
        conn.commit()
        logger.info("Database schema initialized successfully.")
    except Exception as e:
        conn.rollback()
        logger.error(f"Failed to initialize schema: {e}")
        raise
    finally:
        release_connection(conn)


if __name__ == "__main__":
    from db.connection import init_pool
    init_pool()
    create_tables()
    print("✅ Database schema created successfully.")
