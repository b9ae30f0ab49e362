"""Repository layer: all CRUD operations and queries.

Every mutating method takes an optional ``actor`` and records exactly one
audit entry before returning. Reads exclude soft-deleted rows.
"""

import json
from datetime import date, datetime
from typing import Optional

from clean_village.audit.recorder import AuditEntry, AuditRecorder
from clean_village.utils.constants import (
    CUSTOMER_CODE_DIGITS,
    CUSTOMER_CODE_PREFIX,
    DEFAULT_ASSET_NAMES,
    JOB_STATUS_COMPLETED,
    JOB_STATUSES,
    SERVICE_ITEMS,
)
from clean_village.utils.periods import in_period
from clean_village.utils.permissions import require_write

from .connection import DatabaseConnection
from .models import (
    SYSTEM_ACTOR,
    Actor,
    AppSettings,
    Asset,
    Customer,
    Expense,
    Job,
    LaborConfig,
    StockLog,
    normalize_job_status,
)

_CUSTOMER_COLUMNS = (
    "customer_code", "customer_type", "company_name", "tax_id",
    "contact_name", "display_name", "preference", "phones", "addresses",
    "building_type", "building_name", "has_elevator", "source",
    "is_returning", "ai_tags", "last_service_date", "last_service_summary",
    "notes",
)

_JOB_COLUMNS = (
    "job_number", "customer_id", "status", "contact_person", "contact_phone",
    "service_items", "booking_date", "service_date", "arrival_time",
    "work_duration_hours", "travel_mode", "travel_base_minutes",
    "travel_minutes_calculated", "travel_minutes_override", "citric_acid",
    "chemical", "total_amount", "payment_method", "invoice_issued",
    "extra_items", "service_note", "citric_acid_cans", "other_chemical_cans",
    "total_paid",
)

_EXPENSE_COLUMNS = (
    "date", "category", "amount", "payment_method", "note",
    "cashflow_only", "source",
)

_ASSET_COLUMNS = (
    "name", "purchase_date", "cost", "lifespan_months", "status", "note",
)

_STOCK_COLUMNS = (
    "date", "item_type", "purchase_type", "quantity", "total_cost",
    "yield_per_unit",
)


def _from_row(cls, row):
    """Build a dataclass from a row, ignoring columns it does not know."""
    return cls(**{
        k: row[k] for k in row.keys() if k in cls.__dataclass_fields__
    })


class Repository:
    """Provides all database operations for the application."""

    def __init__(self, db: DatabaseConnection,
                 recorder: Optional[AuditRecorder] = None):
        self.db = db
        self.audit = recorder or AuditRecorder(db)

    # ── Shared helpers ──────────────────────────────────────────

    def _insert(self, table: str, columns: tuple, obj) -> int:
        placeholders = ", ".join("?" for _ in columns)
        with self.db.get_connection() as conn:
            cursor = conn.execute(
                f"INSERT INTO {table} ({', '.join(columns)}) "
                f"VALUES ({placeholders})",
                tuple(getattr(obj, c) for c in columns),
            )
            return cursor.lastrowid

    def _update(self, table: str, columns: tuple, obj):
        assignments = ", ".join(f"{c} = ?" for c in columns)
        with self.db.get_connection() as conn:
            conn.execute(
                f"UPDATE {table} SET {assignments}, "
                f"updated_at = CURRENT_TIMESTAMP "
                f"WHERE id = ? AND deleted_at IS NULL",
                tuple(getattr(obj, c) for c in columns) + (obj.id,),
            )

    def _soft_delete(self, table: str, row_id: int):
        with self.db.get_connection() as conn:
            conn.execute(
                f"UPDATE {table} SET deleted_at = CURRENT_TIMESTAMP "
                f"WHERE id = ?",
                (row_id,),
            )

    def _record(self, actor: Optional[Actor], action: str, module: str,
                entity_id, entity_name: str, summary: str,
                before=None, after=None):
        self.audit.record(
            AuditEntry(
                action=action, module=module, summary=summary,
                entity_id=entity_id, entity_name=entity_name,
                before=before, after=after,
            ),
            actor,
        )

    # ── Customers ───────────────────────────────────────────────

    def get_all_customers(self) -> list[Customer]:
        rows = self.db.execute(
            "SELECT * FROM customers WHERE deleted_at IS NULL "
            "ORDER BY customer_code"
        )
        return [_from_row(Customer, r) for r in rows]

    def get_customer_by_id(self, customer_id: int) -> Optional[Customer]:
        rows = self.db.execute(
            "SELECT * FROM customers WHERE id = ? AND deleted_at IS NULL",
            (customer_id,),
        )
        return _from_row(Customer, rows[0]) if rows else None

    def get_customer_by_code(self, code: str) -> Optional[Customer]:
        rows = self.db.execute(
            "SELECT * FROM customers "
            "WHERE customer_code = ? AND deleted_at IS NULL",
            (code,),
        )
        return _from_row(Customer, rows[0]) if rows else None

    def generate_customer_code(self) -> str:
        """Next sequential code like C0000042 (deleted codes stay used)."""
        last = self.db.scalar(
            "SELECT customer_code FROM customers "
            "ORDER BY customer_code DESC LIMIT 1"
        )
        try:
            number = int(last[len(CUSTOMER_CODE_PREFIX):]) if last else 0
        except ValueError:
            number = self.db.scalar("SELECT COUNT(*) FROM customers") or 0
        return f"{CUSTOMER_CODE_PREFIX}{number + 1:0{CUSTOMER_CODE_DIGITS}d}"

    def create_customer(self, customer: Customer,
                        actor: Optional[Actor] = None) -> int:
        require_write(actor or SYSTEM_ACTOR)
        if not customer.customer_code:
            customer.customer_code = self.generate_customer_code()
        customer.display_name = customer.derive_display_name()
        customer.id = self._insert("customers", _CUSTOMER_COLUMNS, customer)
        self._record(
            actor, "CREATE", "CUSTOMER", customer.customer_code,
            customer.display_name,
            f"Created customer {customer.display_name}",
            after=customer,
        )
        return customer.id

    def update_customer(self, customer: Customer,
                        actor: Optional[Actor] = None):
        require_write(actor or SYSTEM_ACTOR)
        before = self.get_customer_by_id(customer.id)
        if before is None:
            raise ValueError(f"Customer {customer.id} not found")
        customer.display_name = customer.derive_display_name()
        self._update("customers", _CUSTOMER_COLUMNS, customer)
        self._record(
            actor, "UPDATE", "CUSTOMER", customer.customer_code,
            customer.display_name,
            f"Updated customer {customer.display_name}",
            before=before, after=customer,
        )

    def delete_customer(self, customer_id: int,
                        actor: Optional[Actor] = None):
        require_write(actor or SYSTEM_ACTOR)
        before = self.get_customer_by_id(customer_id)
        if before is None:
            raise ValueError(f"Customer {customer_id} not found")
        self._soft_delete("customers", customer_id)
        self._record(
            actor, "DELETE", "CUSTOMER", before.customer_code,
            before.display_name,
            f"Deleted customer {before.display_name}",
            before=before,
        )

    # ── Jobs ────────────────────────────────────────────────────

    _JOB_SELECT = """
        SELECT j.*,
               COALESCE(c.display_name, '') AS customer_name,
               COALESCE(c.customer_code, '') AS customer_code
        FROM jobs j
        LEFT JOIN customers c ON j.customer_id = c.id
    """

    def get_all_jobs(self, status: Optional[str] = None) -> list[Job]:
        if status and status != "all":
            rows = self.db.execute(
                self._JOB_SELECT +
                "WHERE j.deleted_at IS NULL AND j.status = ? "
                "ORDER BY j.service_date DESC, j.id DESC",
                (status,),
            )
        else:
            rows = self.db.execute(
                self._JOB_SELECT +
                "WHERE j.deleted_at IS NULL "
                "ORDER BY j.service_date DESC, j.id DESC"
            )
        return [_from_row(Job, r) for r in rows]

    def get_jobs_for_period(self, key: str) -> list[Job]:
        """Jobs (any status) whose service date falls in period *key*."""
        return [
            j for j in self.get_all_jobs() if in_period(j.service_date, key)
        ]

    def get_job_by_id(self, job_id: int) -> Optional[Job]:
        rows = self.db.execute(
            self._JOB_SELECT + "WHERE j.id = ? AND j.deleted_at IS NULL",
            (job_id,),
        )
        return _from_row(Job, rows[0]) if rows else None

    def get_job_by_number(self, job_number: str) -> Optional[Job]:
        rows = self.db.execute(
            self._JOB_SELECT +
            "WHERE j.job_number = ? AND j.deleted_at IS NULL",
            (job_number,),
        )
        return _from_row(Job, rows[0]) if rows else None

    def get_customer_jobs(self, customer_id: int) -> list[Job]:
        rows = self.db.execute(
            self._JOB_SELECT +
            "WHERE j.customer_id = ? AND j.deleted_at IS NULL "
            "ORDER BY j.service_date DESC",
            (customer_id,),
        )
        return [_from_row(Job, r) for r in rows]

    def generate_job_number(self) -> str:
        """Generate next sequential job number like JOB-2024-001."""
        prefix = f"JOB-{datetime.now().year}-"
        rows = self.db.execute(
            "SELECT job_number FROM jobs WHERE job_number LIKE ?",
            (f"{prefix}%",),
        )
        highest = 0
        for row in rows:
            suffix = row["job_number"][len(prefix):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return f"{prefix}{highest + 1:03d}"

    def create_job(self, job: Job, actor: Optional[Actor] = None) -> int:
        require_write(actor or SYSTEM_ACTOR)
        self._check_status(job)
        if not job.job_number:
            job.job_number = self.generate_job_number()
        job.recalculate_travel()
        job.id = self._insert("jobs", _JOB_COLUMNS, job)
        self._sync_customer_service(job)
        self._record(
            actor, "CREATE", "JOB", job.job_number, job.contact_person,
            f"Created job {job.job_number} ({job.status})",
            after=job,
        )
        return job.id

    def update_job(self, job: Job, actor: Optional[Actor] = None):
        require_write(actor or SYSTEM_ACTOR)
        before = self.get_job_by_id(job.id)
        if before is None:
            raise ValueError(f"Job {job.id} not found")
        self._check_status(job)
        job.recalculate_travel()
        self._update("jobs", _JOB_COLUMNS, job)
        self._sync_customer_service(job)
        summary = f"Updated job {job.job_number}"
        if before.status != job.status:
            summary += f": {before.status} -> {job.status}"
        self._record(
            actor, "UPDATE", "JOB", job.job_number, job.contact_person,
            summary, before=before, after=job,
        )

    def delete_job(self, job_id: int, actor: Optional[Actor] = None):
        require_write(actor or SYSTEM_ACTOR)
        before = self.get_job_by_id(job_id)
        if before is None:
            raise ValueError(f"Job {job_id} not found")
        self._soft_delete("jobs", job_id)
        self._record(
            actor, "DELETE", "JOB", before.job_number, before.contact_person,
            f"Deleted job {before.job_number}",
            before=before,
        )

    @staticmethod
    def _check_status(job: Job):
        """Store legacy status labels in canonical form."""
        job.status = normalize_job_status(job.status)
        if job.status not in JOB_STATUSES:
            raise ValueError(f"Unknown job status: {job.status}")

    def _sync_customer_service(self, job: Job):
        """Copy a completed job's service onto its customer's profile."""
        if job.status != JOB_STATUS_COMPLETED or job.customer_id is None:
            return
        labels = [SERVICE_ITEMS.get(s, s) for s in job.service_item_list]
        with self.db.get_connection() as conn:
            completed = conn.execute(
                "SELECT COUNT(*) FROM jobs "
                "WHERE customer_id = ? AND status = ? AND deleted_at IS NULL",
                (job.customer_id, JOB_STATUS_COMPLETED),
            ).fetchone()[0]
            conn.execute(
                "UPDATE customers SET is_returning = ?, "
                "last_service_date = ?, last_service_summary = ?, "
                "updated_at = CURRENT_TIMESTAMP "
                "WHERE id = ? AND deleted_at IS NULL",
                (int(completed > 1), job.service_date, ", ".join(labels),
                 job.customer_id),
            )

    # ── Expenses ────────────────────────────────────────────────

    def get_all_expenses(self) -> list[Expense]:
        rows = self.db.execute(
            "SELECT * FROM expenses WHERE deleted_at IS NULL "
            "ORDER BY date DESC, id DESC"
        )
        return [_from_row(Expense, r) for r in rows]

    def get_expenses_for_period(self, key: str) -> list[Expense]:
        return [e for e in self.get_all_expenses() if in_period(e.date, key)]

    def get_expense_by_id(self, expense_id: int) -> Optional[Expense]:
        rows = self.db.execute(
            "SELECT * FROM expenses WHERE id = ? AND deleted_at IS NULL",
            (expense_id,),
        )
        return _from_row(Expense, rows[0]) if rows else None

    @staticmethod
    def _expense_label(expense: Expense) -> str:
        return f"{expense.date} {expense.category} {expense.amount:g}"

    def create_expense(self, expense: Expense,
                       actor: Optional[Actor] = None) -> int:
        require_write(actor or SYSTEM_ACTOR)
        expense.id = self._insert("expenses", _EXPENSE_COLUMNS, expense)
        self._record(
            actor, "CREATE", "EXPENSE", expense.id,
            self._expense_label(expense),
            f"Recorded expense {self._expense_label(expense)}",
            after=expense,
        )
        return expense.id

    def update_expense(self, expense: Expense,
                       actor: Optional[Actor] = None):
        require_write(actor or SYSTEM_ACTOR)
        before = self.get_expense_by_id(expense.id)
        if before is None:
            raise ValueError(f"Expense {expense.id} not found")
        self._update("expenses", _EXPENSE_COLUMNS, expense)
        self._record(
            actor, "UPDATE", "EXPENSE", expense.id,
            self._expense_label(expense),
            f"Updated expense {self._expense_label(expense)}",
            before=before, after=expense,
        )

    def delete_expense(self, expense_id: int,
                       actor: Optional[Actor] = None):
        require_write(actor or SYSTEM_ACTOR)
        before = self.get_expense_by_id(expense_id)
        if before is None:
            raise ValueError(f"Expense {expense_id} not found")
        self._soft_delete("expenses", expense_id)
        self._record(
            actor, "DELETE", "EXPENSE", expense_id,
            self._expense_label(before),
            f"Deleted expense {self._expense_label(before)}",
            before=before,
        )

    # ── Assets ──────────────────────────────────────────────────

    def get_all_assets(self) -> list[Asset]:
        rows = self.db.execute(
            "SELECT * FROM assets WHERE deleted_at IS NULL "
            "ORDER BY purchase_date, id"
        )
        return [_from_row(Asset, r) for r in rows]

    def get_asset_by_id(self, asset_id: int) -> Optional[Asset]:
        rows = self.db.execute(
            "SELECT * FROM assets WHERE id = ? AND deleted_at IS NULL",
            (asset_id,),
        )
        return _from_row(Asset, rows[0]) if rows else None

    def create_asset(self, asset: Asset,
                     actor: Optional[Actor] = None) -> int:
        require_write(actor or SYSTEM_ACTOR)
        asset.id = self._insert("assets", _ASSET_COLUMNS, asset)
        self._record(
            actor, "CREATE", "ASSET", asset.id, asset.name,
            f"Added asset {asset.name} ({asset.cost:g} over "
            f"{asset.lifespan_months} months)",
            after=asset,
        )
        return asset.id

    def update_asset(self, asset: Asset, actor: Optional[Actor] = None):
        require_write(actor or SYSTEM_ACTOR)
        before = self.get_asset_by_id(asset.id)
        if before is None:
            raise ValueError(f"Asset {asset.id} not found")
        self._update("assets", _ASSET_COLUMNS, asset)
        self._record(
            actor, "UPDATE", "ASSET", asset.id, asset.name,
            f"Updated asset {asset.name}",
            before=before, after=asset,
        )

    def delete_asset(self, asset_id: int, actor: Optional[Actor] = None):
        require_write(actor or SYSTEM_ACTOR)
        before = self.get_asset_by_id(asset_id)
        if before is None:
            raise ValueError(f"Asset {asset_id} not found")
        self._soft_delete("assets", asset_id)
        self._record(
            actor, "DELETE", "ASSET", asset_id, before.name,
            f"Deleted asset {before.name}",
            before=before,
        )

    def seed_default_assets(self, actor: Optional[Actor] = None,
                            purchase_date: Optional[str] = None) -> int:
        """Add the starter equipment list (zero cost) if no assets exist.

        Returns the number of assets created.
        """
        if self.get_all_assets():
            return 0
        purchase_date = purchase_date or date.today().isoformat()
        for name in DEFAULT_ASSET_NAMES:
            self.create_asset(
                Asset(name=name, purchase_date=purchase_date, cost=0.0),
                actor,
            )
        return len(DEFAULT_ASSET_NAMES)

    # ── Stock Logs ──────────────────────────────────────────────

    def get_all_stock_logs(self) -> list[StockLog]:
        rows = self.db.execute(
            "SELECT * FROM stock_logs WHERE deleted_at IS NULL "
            "ORDER BY date, id"
        )
        return [_from_row(StockLog, r) for r in rows]

    def get_stock_log_by_id(self, log_id: int) -> Optional[StockLog]:
        rows = self.db.execute(
            "SELECT * FROM stock_logs WHERE id = ? AND deleted_at IS NULL",
            (log_id,),
        )
        return _from_row(StockLog, rows[0]) if rows else None

    @staticmethod
    def _stock_label(log: StockLog) -> str:
        return f"{log.item_type} x{log.quantity:g}"

    def create_stock_log(self, log: StockLog,
                         actor: Optional[Actor] = None) -> int:
        require_write(actor or SYSTEM_ACTOR)
        log.id = self._insert("stock_logs", _STOCK_COLUMNS, log)
        self._record(
            actor, "CREATE", "STOCK", log.id, self._stock_label(log),
            f"Logged purchase {self._stock_label(log)} "
            f"for {log.total_cost:g}",
            after=log,
        )
        return log.id

    def update_stock_log(self, log: StockLog,
                         actor: Optional[Actor] = None):
        require_write(actor or SYSTEM_ACTOR)
        before = self.get_stock_log_by_id(log.id)
        if before is None:
            raise ValueError(f"Stock log {log.id} not found")
        self._update("stock_logs", _STOCK_COLUMNS, log)
        self._record(
            actor, "UPDATE", "STOCK", log.id, self._stock_label(log),
            f"Updated purchase {self._stock_label(log)}",
            before=before, after=log,
        )

    def delete_stock_log(self, log_id: int, actor: Optional[Actor] = None):
        require_write(actor or SYSTEM_ACTOR)
        before = self.get_stock_log_by_id(log_id)
        if before is None:
            raise ValueError(f"Stock log {log_id} not found")
        self._soft_delete("stock_logs", log_id)
        self._record(
            actor, "DELETE", "STOCK", log_id, self._stock_label(before),
            f"Deleted purchase {self._stock_label(before)}",
            before=before,
        )

    # ── Settings singletons ─────────────────────────────────────

    def _get_setting(self, key: str) -> dict:
        value = self.db.scalar(
            "SELECT value FROM settings WHERE key = ?", (key,)
        )
        try:
            data = json.loads(value) if value else {}
        except json.JSONDecodeError:
            data = {}
        return data if isinstance(data, dict) else {}

    def _put_setting(self, key: str, data: dict):
        with self.db.get_connection() as conn:
            conn.execute(
                "INSERT INTO settings (key, value, updated_at) "
                "VALUES (?, ?, CURRENT_TIMESTAMP) "
                "ON CONFLICT(key) DO UPDATE SET "
                "value = excluded.value, updated_at = CURRENT_TIMESTAMP",
                (key, json.dumps(data)),
            )

    def get_app_settings(self) -> AppSettings:
        return AppSettings.from_dict(self._get_setting("app_settings"))

    def save_app_settings(self, settings: AppSettings,
                          actor: Optional[Actor] = None):
        require_write(actor or SYSTEM_ACTOR)
        before = self.get_app_settings()
        self._put_setting("app_settings", settings.to_dict())
        self._record(
            actor, "UPDATE", "SETTINGS", "app_settings", "App settings",
            "Updated app settings",
            before=before, after=settings,
        )

    def get_labor_config(self) -> LaborConfig:
        return LaborConfig.from_dict(self._get_setting("labor_config"))

    def save_labor_config(self, config: LaborConfig,
                          actor: Optional[Actor] = None):
        require_write(actor or SYSTEM_ACTOR)
        before = self.get_labor_config()
        self._put_setting("labor_config", config.to_dict())
        self._record(
            actor, "UPDATE", "SETTINGS", "labor_config", "Labor config",
            f"Updated labor config (fixed total "
            f"{config.total_fixed_labor_cost:g})",
            before=before, after=config,
        )

    # ── Whole-store reads ───────────────────────────────────────

    def get_all_data(self) -> dict:
        """Every live collection, for backups and exports."""
        return {
            "customers": self.get_all_customers(),
            "jobs": self.get_all_jobs(),
            "expenses": self.get_all_expenses(),
            "assets": self.get_all_assets(),
            "stock_logs": self.get_all_stock_logs(),
            "app_settings": self.get_app_settings(),
            "labor_config": self.get_labor_config(),
        }

    def get_audit_log(self, module: str | None = None,
                      action: str | None = None,
                      actor_id: str | None = None,
                      limit: int = 50) -> list:
        """Shortcut to the recorder's filtered, newest-first query."""
        return self.audit.get_entries(
            module=module, action=action, actor_id=actor_id, limit=limit
        )

    # ── Session and export events ───────────────────────────────

    def record_login(self, actor: Actor):
        self._record(
            actor, "LOGIN", "AUTH", actor.id, actor.name,
            f"{actor.name} logged in",
        )

    def record_logout(self, actor: Actor):
        self._record(
            actor, "LOGOUT", "AUTH", actor.id, actor.name,
            f"{actor.name} logged out",
        )

    def record_export(self, actor: Optional[Actor], target: str,
                      summary: str):
        """Log a data export; exports need view access, not write access."""
        self._record(actor, "EXPORT", "SYSTEM", target, target, summary)
