"""
db/init_db.py
-------------
Creates the database schema (tables) if they do not already exist.
Run this module directly to initialize a fresh database:
    python -m db.init_db
"""

from db.connection import transaction
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
-- Subscriptions: one row per tracked service, soft-deleted rather than removed
CREATE TABLE IF NOT EXISTS subscriptions (
    id                      UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id                 VARCHAR(128) NOT NULL,
    service_name            VARCHAR(100) NOT NULL,
    service_icon            VARCHAR(255),
    amount                  NUMERIC(12,2) NOT NULL CHECK (amount >= 0),
    currency                VARCHAR(3) NOT NULL CHECK (currency IN ('USD', 'INR', 'EUR', 'GBP', 'AUD')),
    billing_date            SMALLINT NOT NULL CHECK (billing_date BETWEEN 1 AND 31),
    frequency               VARCHAR(20) NOT NULL
                            CHECK (frequency IN ('monthly', 'quarterly', 'half-yearly', 'yearly', 'custom')),
    custom_frequency_days   INT CHECK (custom_frequency_days > 0),
    start_date              DATE NOT NULL DEFAULT CURRENT_DATE,
    is_one_time             BOOLEAN NOT NULL DEFAULT FALSE,
    cycle_limit             INT CHECK (cycle_limit > 0),
    reminder_enabled        BOOLEAN NOT NULL DEFAULT TRUE,
    reminder_days_before    INT NOT NULL DEFAULT 3 CHECK (reminder_days_before >= 0),
    payment_method          VARCHAR(100),
    notes                   TEXT,
    is_deleted              BOOLEAN NOT NULL DEFAULT FALSE,
    created_at              TIMESTAMPTZ DEFAULT NOW(),
    updated_at              TIMESTAMPTZ DEFAULT NOW()
);

-- Per-user preferences
CREATE TABLE IF NOT EXISTS app_settings (
    user_id                 VARCHAR(128) PRIMARY KEY,
    currency                VARCHAR(3) NOT NULL DEFAULT 'INR',
    notifications_enabled   BOOLEAN NOT NULL DEFAULT TRUE,
    default_reminder_days   INT NOT NULL DEFAULT 3,
    updated_at              TIMESTAMPTZ DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_subscriptions_user ON subscriptions(user_id) WHERE is_deleted = FALSE;
"""


def create_tables() -> None:
    """
    Execute the schema SQL to create all tables.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    try:
        with transaction() as cur:
            cur.execute(SCHEMA_SQL)
        logger.info("Database schema initialized successfully.")
    except Exception as e:
        logger.error(f"Failed to initialize schema: {e}")
        raise


if __name__ == "__main__":
    from db.connection import init_pool
    init_pool()
    create_tables()
    print("✅ Database schema created successfully.")
