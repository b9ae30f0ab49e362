"""Database schema definition and initialization."""

import json

SCHEMA_VERSION = 1

# Each statement is a separate string to avoid executescript issues
_SCHEMA_STATEMENTS = [
    """CREATE TABLE IF NOT EXISTS schema_version (
        version INTEGER PRIMARY KEY,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",

    # Customers (soft-deleted via deleted_at)
    """CREATE TABLE IF NOT EXISTS customers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        customer_code TEXT NOT NULL UNIQUE,
        customer_type TEXT NOT NULL DEFAULT 'individual'
            CHECK (customer_type IN ('individual', 'company')),
        company_name TEXT DEFAULT '',
        tax_id TEXT DEFAULT '',
        contact_name TEXT NOT NULL DEFAULT '',
        display_name TEXT NOT NULL DEFAULT '',
        preference TEXT DEFAULT 'phone',
        phones TEXT DEFAULT '[]',
        addresses TEXT DEFAULT '[]',
        building_type TEXT DEFAULT '',
        building_name TEXT DEFAULT '',
        has_elevator INTEGER NOT NULL DEFAULT 0,
        source TEXT DEFAULT '{}',
        is_returning INTEGER NOT NULL DEFAULT 0,
        ai_tags TEXT DEFAULT '[]',
        last_service_date TEXT DEFAULT '',
        last_service_summary TEXT DEFAULT '',
        notes TEXT DEFAULT '',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        deleted_at TIMESTAMP
    )""",

    # Jobs: structured fields plus the legacy flat columns older
    # records were saved with (citric_acid_cans, other_chemical_cans,
    # total_paid).
    """CREATE TABLE IF NOT EXISTS jobs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        job_number TEXT NOT NULL UNIQUE,
        customer_id INTEGER,
        status TEXT NOT NULL DEFAULT 'pending',
        contact_person TEXT DEFAULT '',
        contact_phone TEXT DEFAULT '',
        service_items TEXT DEFAULT '[]',
        booking_date TEXT DEFAULT '',
        service_date TEXT DEFAULT '',
        arrival_time TEXT DEFAULT '',
        work_duration_hours REAL NOT NULL DEFAULT 0,
        travel_mode TEXT DEFAULT 'round_trip',
        travel_base_minutes REAL NOT NULL DEFAULT 0,
        travel_minutes_calculated REAL NOT NULL DEFAULT 0,
        travel_minutes_override REAL,
        citric_acid REAL,
        chemical REAL,
        total_amount REAL,
        payment_method TEXT DEFAULT '',
        invoice_issued INTEGER NOT NULL DEFAULT 0,
        extra_items TEXT DEFAULT '[]',
        service_note TEXT DEFAULT '',
        citric_acid_cans REAL,
        other_chemical_cans REAL,
        total_paid REAL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        deleted_at TIMESTAMP,
        FOREIGN KEY (customer_id) REFERENCES customers(id) ON DELETE SET NULL
    )""",

    """CREATE TABLE IF NOT EXISTS expenses (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        date TEXT NOT NULL DEFAULT '',
        category TEXT NOT NULL DEFAULT 'other',
        amount REAL NOT NULL DEFAULT 0,
        payment_method TEXT DEFAULT '',
        note TEXT DEFAULT '',
        cashflow_only INTEGER NOT NULL DEFAULT 0,
        source TEXT DEFAULT 'manual_form',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        deleted_at TIMESTAMP
    )""",

    """CREATE TABLE IF NOT EXISTS assets (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        purchase_date TEXT NOT NULL DEFAULT '',
        cost REAL NOT NULL DEFAULT 0 CHECK (cost >= 0),
        lifespan_months INTEGER NOT NULL DEFAULT 24,
        status TEXT NOT NULL DEFAULT 'active'
            CHECK (status IN ('active', 'retired', 'maintenance')),
        note TEXT DEFAULT '',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        deleted_at TIMESTAMP
    )""",

    """CREATE TABLE IF NOT EXISTS stock_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        date TEXT NOT NULL DEFAULT '',
        item_type TEXT NOT NULL
            CHECK (item_type IN ('citric', 'chemical')),
        purchase_type TEXT NOT NULL DEFAULT 'bulk',
        quantity REAL NOT NULL DEFAULT 0,
        total_cost REAL NOT NULL DEFAULT 0,
        yield_per_unit REAL NOT NULL DEFAULT 0,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        deleted_at TIMESTAMP
    )""",

    # Key/value singletons (app settings, labor config) stored as JSON
    """CREATE TABLE IF NOT EXISTS settings (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL DEFAULT '{}',
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",

    # Append-only audit trail, capped by the recorder
    """CREATE TABLE IF NOT EXISTS audit_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created_at TEXT NOT NULL,
        actor_id TEXT NOT NULL DEFAULT 'system',
        actor_name TEXT NOT NULL DEFAULT 'System',
        actor_role TEXT NOT NULL DEFAULT 'SYSTEM',
        module TEXT NOT NULL,
        action TEXT NOT NULL,
        entity_type TEXT NOT NULL DEFAULT '',
        entity_id TEXT NOT NULL DEFAULT 'N/A',
        entity_name TEXT DEFAULT '',
        summary TEXT NOT NULL DEFAULT '',
        diff TEXT
    )""",

    # Indexes
    "CREATE INDEX IF NOT EXISTS idx_jobs_service_date ON jobs(service_date)",
    "CREATE INDEX IF NOT EXISTS idx_jobs_customer ON jobs(customer_id)",
    "CREATE INDEX IF NOT EXISTS idx_jobs_status ON jobs(status)",
    "CREATE INDEX IF NOT EXISTS idx_expenses_date ON expenses(date)",
    "CREATE INDEX IF NOT EXISTS idx_stock_logs_type ON stock_logs(item_type)",
    "CREATE INDEX IF NOT EXISTS idx_audit_module ON audit_log(module)",

    # Record schema version
    f"INSERT OR IGNORE INTO schema_version (version) VALUES ({SCHEMA_VERSION})",
]


def _get_schema_version(conn) -> int:
    """Get the current schema version, or 0 if no schema exists."""
    try:
        row = conn.execute(
            "SELECT MAX(version) as v FROM schema_version"
        ).fetchone()
        return row["v"] if row and row["v"] else 0
    except Exception:
        return 0


def _seed_settings(conn, app_settings: dict, labor_config: dict):
    """Insert default singletons if they are not already stored."""
    conn.execute(
        "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?)",
        ("app_settings", json.dumps(app_settings)),
    )
    conn.execute(
        "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?)",
        ("labor_config", json.dumps(labor_config)),
    )


def initialize_database(db_connection):
    """Create all tables, indexes, and seed data.

    On a fresh database, creates the full schema. An existing database
    keeps its tables and only gets any missing settings rows.
    """
    from clean_village.config import Config

    with db_connection.get_connection() as conn:
        version = _get_schema_version(conn)

        if version == 0:
            for stmt in _SCHEMA_STATEMENTS:
                conn.execute(stmt)

        _seed_settings(
            conn,
            app_settings={
                "monthly_target": Config.MONTHLY_TARGET,
                "monthly_salary": Config.MONTHLY_SALARY,
                "consumables": {
                    "citric_cost_per_can": Config.CITRIC_FALLBACK_COST,
                    "chemical_drum_cost": Config.CHEMICAL_DRUM_COST,
                    "chemical_drum_to_bottles": Config.CHEMICAL_DRUM_TO_BOTTLES,
                },
            },
            labor_config={
                "boss_salary": 0.0,
                "partner_salary": 0.0,
                "insurance_cost": 0.0,
            },
        )
