"""Data models for the database layer.

Records saved by older versions of the app used camelCase keys, nested
``financial``/``consumables`` objects, and flat legacy fields
(``totalPaid``, ``citricAcidCans``, ``otherChemicalCans``). The
``from_record`` constructors map either shape onto these dataclasses so
the costing code only ever sees one canonical form.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from clean_village.utils.constants import (
    ASSET_RETIRED,
    EXPENSE_CATEGORIES,
    JOB_STATUS_COMPLETED,
    JOB_STATUS_PENDING,
    LEGACY_JOB_STATUS_LABELS,
    SERVICE_PIPE,
    SERVICE_TANK,
    SYSTEM_ROLE,
)


def _pick(record: dict, *keys, default=None):
    """Return the first key present (and not None) in *record*."""
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return default


def _json_list(text: str) -> list:
    try:
        value = json.loads(text) if text else []
    except (json.JSONDecodeError, TypeError):
        return []
    return value if isinstance(value, list) else []


def _json_dict(text: str) -> dict:
    try:
        value = json.loads(text) if text else {}
    except (json.JSONDecodeError, TypeError):
        return {}
    return value if isinstance(value, dict) else {}


def _to_float(value, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _optional_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def normalize_job_status(status: str) -> str:
    """Map legacy status labels onto 'pending'/'completed'/'cancelled'."""
    if not status:
        return JOB_STATUS_PENDING
    return LEGACY_JOB_STATUS_LABELS.get(status, status)


@dataclass
class Customer:
    id: Optional[int] = None
    customer_code: str = ""
    customer_type: str = "individual"  # 'individual' or 'company'
    company_name: str = ""
    tax_id: str = ""
    contact_name: str = ""
    display_name: str = ""
    preference: str = "phone"  # 'phone' or 'message'
    phones: str = "[]"       # JSON: [{"number", "type", "is_primary", "label"}]
    addresses: str = "[]"    # JSON: [{"text", "is_primary"}]
    building_type: str = ""
    building_name: str = ""
    has_elevator: int = 0
    source: str = "{}"       # JSON: {"channel", "detail", "referrer_name"}
    is_returning: int = 0
    ai_tags: str = "[]"
    last_service_date: str = ""
    last_service_summary: str = ""
    notes: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def phone_list(self) -> list[dict]:
        return _json_list(self.phones)

    @property
    def address_list(self) -> list[dict]:
        return _json_list(self.addresses)

    @property
    def tag_list(self) -> list[str]:
        return _json_list(self.ai_tags)

    @property
    def primary_phone(self) -> str:
        phones = self.phone_list
        for p in phones:
            if p.get("is_primary"):
                return p.get("number", "")
        return phones[0].get("number", "") if phones else ""

    @property
    def primary_address(self) -> str:
        addresses = self.address_list
        for a in addresses:
            if a.get("is_primary"):
                return a.get("text", "")
        return addresses[0].get("text", "") if addresses else ""

    def derive_display_name(self) -> str:
        """Company customers show 'company contact'; others the contact."""
        if self.customer_type == "company":
            return f"{self.company_name or ''} {self.contact_name}".strip()
        return self.contact_name


@dataclass
class Job:
    id: Optional[int] = None
    job_number: str = ""
    customer_id: Optional[int] = None
    status: str = JOB_STATUS_PENDING  # pending, completed, cancelled
    contact_person: str = ""
    contact_phone: str = ""
    service_items: str = "[]"  # JSON array of SERVICE_ITEMS keys
    booking_date: str = ""
    service_date: str = ""     # YYYY-MM-DD
    arrival_time: str = ""     # HH:MM
    work_duration_hours: float = 0.0
    travel_mode: str = "round_trip"  # 'one_way' or 'round_trip'
    travel_base_minutes: float = 0.0
    travel_minutes_calculated: float = 0.0
    travel_minutes_override: Optional[float] = None
    # Structured consumables / financials
    citric_acid: Optional[float] = None
    chemical: Optional[float] = None
    total_amount: Optional[float] = None
    payment_method: str = ""
    invoice_issued: int = 0
    extra_items: str = "[]"  # JSON: [{"name", "amount"}]
    service_note: str = ""
    # Legacy flat fields (older records only carry these)
    citric_acid_cans: Optional[float] = None
    other_chemical_cans: Optional[float] = None
    total_paid: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    # Joined fields (not stored directly)
    customer_name: str = field(default="", repr=False)
    customer_code: str = field(default="", repr=False)

    @property
    def revenue(self) -> float:
        """Structured total, else legacy total_paid, else 0."""
        return self.total_amount or self.total_paid or 0.0

    @property
    def citric_qty(self) -> float:
        if self.citric_acid is not None:
            return self.citric_acid
        if self.citric_acid_cans is not None:
            return self.citric_acid_cans
        return 0.0

    @property
    def chemical_qty(self) -> float:
        if self.chemical is not None:
            return self.chemical
        if self.other_chemical_cans is not None:
            return self.other_chemical_cans
        return 0.0

    @property
    def consumable_quantities(self) -> dict[str, float]:
        return {"citric": self.citric_qty, "chemical": self.chemical_qty}

    @property
    def is_completed(self) -> bool:
        return normalize_job_status(self.status) == JOB_STATUS_COMPLETED

    @property
    def service_item_list(self) -> list[str]:
        return _json_list(self.service_items)

    @property
    def extra_item_list(self) -> list[dict]:
        return _json_list(self.extra_items)

    def recalculate_travel(self):
        """Refresh travel_minutes_calculated from override or base minutes.

        A manual override always wins. Otherwise the one-way base is
        doubled for round trips. With neither set, the stored figure is
        left as it is.
        """
        if self.travel_minutes_override is not None:
            self.travel_minutes_calculated = self.travel_minutes_override
        elif self.travel_base_minutes > 0:
            factor = 2 if self.travel_mode == "round_trip" else 1
            self.travel_minutes_calculated = self.travel_base_minutes * factor

    @classmethod
    def from_record(cls, record: dict) -> "Job":
        """Build a Job from a stored row or an older app-shaped dict."""
        financial = record.get("financial") or {}
        consumables = record.get("consumables") or {}

        service_items = _pick(record, "service_items", "serviceItems",
                              default=[])
        if isinstance(service_items, list):
            service_items = json.dumps(
                [_LEGACY_SERVICE_ITEMS.get(s, s) for s in service_items]
            )
        extra_items = _pick(financial, "extra_items",
                            default=record.get("extra_items", "[]"))
        if isinstance(extra_items, list):
            extra_items = json.dumps(extra_items)

        customer_ref = _pick(record, "customer_id", "customerId")
        customer_id = customer_ref if isinstance(customer_ref, int) else None
        customer_code = (
            customer_ref if isinstance(customer_ref, str)
            else record.get("customer_code", "")
        )

        travel_mode = _pick(record, "travel_mode", "travelMode",
                            default="round_trip")
        travel_mode = _LEGACY_TRAVEL_MODES.get(travel_mode, travel_mode)

        return cls(
            id=record.get("id"),
            job_number=_pick(record, "job_number", "jobId", default=""),
            customer_id=customer_id,
            customer_code=customer_code or "",
            status=normalize_job_status(record.get("status", "")),
            contact_person=_pick(record, "contact_person", "contactPerson",
                                 default=""),
            contact_phone=_pick(record, "contact_phone", "contactPhone",
                                default=""),
            service_items=service_items,
            booking_date=_pick(record, "booking_date", "bookingDate",
                               default=""),
            service_date=_pick(record, "service_date", "serviceDate",
                               default=""),
            arrival_time=_pick(record, "arrival_time", default=""),
            work_duration_hours=_to_float(
                _pick(record, "work_duration_hours", "workDurationHours")
            ),
            travel_mode=travel_mode,
            travel_base_minutes=_to_float(
                _pick(record, "travel_base_minutes", "travelBaseMinutes")
            ),
            travel_minutes_calculated=_to_float(
                _pick(record, "travel_minutes_calculated",
                      "travelMinutesCalculated")
            ),
            travel_minutes_override=_optional_float(
                _pick(record, "travel_minutes_override",
                      "travelMinutesOverride")
            ),
            citric_acid=_optional_float(
                _pick(consumables, "citric_acid",
                      default=record.get("citric_acid"))
            ),
            chemical=_optional_float(
                _pick(consumables, "chemical",
                      default=record.get("chemical"))
            ),
            total_amount=_optional_float(
                _pick(financial, "total_amount",
                      default=record.get("total_amount"))
            ),
            payment_method=_pick(financial, "payment_method",
                                 default=_pick(record, "payment_method",
                                               "paymentMethod", default="")),
            invoice_issued=int(bool(_pick(
                financial, "invoice_issued",
                default=_pick(record, "invoice_issued", "invoiceNeeded",
                              default=0),
            ))),
            extra_items=extra_items or "[]",
            service_note=_pick(record, "service_note", "serviceNote",
                               default=""),
            citric_acid_cans=_optional_float(
                _pick(record, "citric_acid_cans", "citricAcidCans")
            ),
            other_chemical_cans=_optional_float(
                _pick(record, "other_chemical_cans", "otherChemicalCans")
            ),
            total_paid=_optional_float(
                _pick(record, "total_paid", "totalPaid")
            ),
            created_at=_pick(record, "created_at", "createdAt"),
            updated_at=_pick(record, "updated_at", "updatedAt"),
            deleted_at=_pick(record, "deleted_at", "deletedAt"),
        )


_LEGACY_SERVICE_ITEMS = {
    "水塔清洗": SERVICE_TANK,
    "水管清洗": SERVICE_PIPE,
}

_LEGACY_TRAVEL_MODES = {
    "單程": "one_way",
    "來回": "round_trip",
}


@dataclass
class Expense:
    id: Optional[int] = None
    date: str = ""           # YYYY-MM-DD
    category: str = "other"  # see EXPENSE_CATEGORIES
    amount: float = 0.0
    payment_method: str = ""
    note: str = ""
    cashflow_only: int = 0   # 1 = cash movement only, kept out of P&L
    source: str = "manual_form"  # 'manual_form' or 'chat_input'
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def is_cashflow_only(self) -> bool:
        return bool(self.cashflow_only)

    @property
    def report_category(self) -> str:
        """Category for breakdowns; unknown categories report as 'other'."""
        return self.category if self.category in EXPENSE_CATEGORIES else "other"

    @classmethod
    def from_record(cls, record: dict) -> "Expense":
        return cls(
            id=record.get("id"),
            date=record.get("date") or "",
            category=record.get("category") or "other",
            amount=_to_float(record.get("amount")),
            payment_method=_pick(record, "payment_method", "paymentMethod",
                                 default=""),
            note=record.get("note") or "",
            cashflow_only=int(bool(
                _pick(record, "cashflow_only", "cashflowOnly", default=0)
            )),
            source=record.get("source") or "manual_form",
            created_at=_pick(record, "created_at", "createdAt"),
            updated_at=_pick(record, "updated_at", "updatedAt"),
            deleted_at=_pick(record, "deleted_at", "deletedAt"),
        )


@dataclass
class Asset:
    id: Optional[int] = None
    name: str = ""
    purchase_date: str = ""  # YYYY-MM-DD
    cost: float = 0.0
    lifespan_months: int = 24
    status: str = "active"   # active, retired, maintenance
    note: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def is_retired(self) -> bool:
        return self.status == ASSET_RETIRED

    @property
    def monthly_depreciation(self) -> float:
        """Straight-line charge per month; 0 with no usable lifespan."""
        if self.lifespan_months <= 0:
            return 0.0
        return self.cost / self.lifespan_months

    @classmethod
    def from_record(cls, record: dict) -> "Asset":
        return cls(
            id=record.get("id"),
            name=record.get("name") or "",
            purchase_date=_pick(record, "purchase_date", "purchaseDate",
                                default=""),
            cost=_to_float(record.get("cost")),
            lifespan_months=int(_to_float(
                _pick(record, "lifespan_months", "lifespanMonths"), 24
            )),
            status=record.get("status") or "active",
            note=record.get("note") or "",
            deleted_at=_pick(record, "deleted_at", "deletedAt"),
        )


@dataclass
class StockLog:
    """One consumable purchase: *quantity* bulk units, each yielding
    *yield_per_unit* usable cans/bottles."""
    id: Optional[int] = None
    date: str = ""
    item_type: str = "citric"   # 'citric' or 'chemical'
    purchase_type: str = "bulk"  # 'bulk' or 'retail'
    quantity: float = 0.0
    total_cost: float = 0.0
    yield_per_unit: float = 0.0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def total_yield(self) -> float:
        return self.quantity * self.yield_per_unit

    @classmethod
    def from_record(cls, record: dict) -> "StockLog":
        quantity = _to_float(record.get("quantity"))
        yield_per_unit = _pick(record, "yield_per_unit", "yieldPerUnit")
        estimate = record.get("yieldEstimate")
        if yield_per_unit is None and estimate is not None:
            # yieldEstimate is the whole purchase's can count
            if quantity <= 0:
                quantity = 1.0
            yield_per_unit = _to_float(estimate) / quantity
        return cls(
            id=record.get("id"),
            date=record.get("date") or "",
            item_type=_pick(record, "item_type", "itemType", "type",
                            default="citric"),
            purchase_type=_pick(record, "purchase_type", "purchaseType",
                                default="bulk"),
            quantity=quantity,
            total_cost=_to_float(_pick(record, "total_cost", "totalCost")),
            yield_per_unit=_to_float(yield_per_unit),
            deleted_at=_pick(record, "deleted_at", "deletedAt"),
        )


@dataclass
class LaborConfig:
    """Fixed monthly labor figures entered on the analysis screen."""
    boss_salary: float = 0.0
    partner_salary: float = 0.0
    insurance_cost: float = 0.0

    @property
    def total_fixed_labor_cost(self) -> float:
        return self.boss_salary + self.partner_salary + self.insurance_cost

    def to_dict(self) -> dict:
        return {
            "boss_salary": self.boss_salary,
            "partner_salary": self.partner_salary,
            "insurance_cost": self.insurance_cost,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LaborConfig":
        return cls(
            boss_salary=_to_float(_pick(data, "boss_salary", "bossSalary")),
            partner_salary=_to_float(
                _pick(data, "partner_salary", "partnerSalary")
            ),
            insurance_cost=_to_float(
                _pick(data, "insurance_cost", "insuranceCost")
            ),
        )


@dataclass
class AppSettings:
    """Business-wide settings singleton."""
    monthly_target: float = 150000.0
    monthly_salary: float = 60000.0  # combined salary total
    labor_breakdown: Optional[dict] = None  # {"boss_salary", "partner_salary"}
    consumables: dict = field(default_factory=lambda: {
        "citric_cost_per_can": 50.0,
        "chemical_drum_cost": 3000.0,
        "chemical_drum_to_bottles": 20.0,
    })

    def consumable_fallbacks(self) -> dict[str, float]:
        """Per-can fallback costs used when no stock logs exist."""
        citric = _to_float(self.consumables.get("citric_cost_per_can"), 50.0)
        drum = _to_float(self.consumables.get("chemical_drum_cost"), 3000.0)
        bottles = _to_float(
            self.consumables.get("chemical_drum_to_bottles"), 20.0
        )
        return {
            "citric": citric,
            "chemical": drum / bottles if bottles > 0 else drum,
        }

    def to_dict(self) -> dict:
        return {
            "monthly_target": self.monthly_target,
            "monthly_salary": self.monthly_salary,
            "labor_breakdown": self.labor_breakdown,
            "consumables": dict(self.consumables),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AppSettings":
        defaults = cls()
        consumables = dict(defaults.consumables)
        raw = data.get("consumables") or {}
        consumables.update({
            "citric_cost_per_can": _pick(
                raw, "citric_cost_per_can", "citricCostPerCan",
                default=consumables["citric_cost_per_can"]),
            "chemical_drum_cost": _pick(
                raw, "chemical_drum_cost", "chemicalDrumCost",
                default=consumables["chemical_drum_cost"]),
            "chemical_drum_to_bottles": _pick(
                raw, "chemical_drum_to_bottles", "chemicalDrumToBottles",
                default=consumables["chemical_drum_to_bottles"]),
        })
        breakdown = _pick(data, "labor_breakdown", "laborBreakdown")
        if breakdown is not None:
            breakdown = {
                "boss_salary": _to_float(
                    _pick(breakdown, "boss_salary", "bossSalary")),
                "partner_salary": _to_float(
                    _pick(breakdown, "partner_salary", "partnerSalary")),
            }
        return cls(
            monthly_target=_to_float(
                _pick(data, "monthly_target", "monthlyTarget"),
                defaults.monthly_target,
            ),
            monthly_salary=_to_float(
                _pick(data, "monthly_salary", "monthlySalary"),
                defaults.monthly_salary,
            ),
            labor_breakdown=breakdown,
            consumables=consumables,
        )


@dataclass(frozen=True)
class LaborCost:
    """The one labor figure the costing code consumes."""
    total_fixed_labor_cost: float = 0.0


_LABOR_ONLY_KEYS = (
    "total_fixed_labor_cost", "totalFixedLaborCost", "boss_salary",
    "bossSalary", "insurance_cost", "insuranceCost",
)


def is_labor_only(data: dict) -> bool:
    """True for a LaborCost or LaborConfig shaped dict, False for settings."""
    return any(k in data for k in _LABOR_ONLY_KEYS)


def normalize_labor_config(source) -> LaborCost:
    """Reduce any supported labor shape to a LaborCost.

    Accepts a LaborCost, a LaborConfig, an AppSettings (its
    ``monthly_salary``; the breakdown only feeds that total), a dict in
    any of those shapes, or a bare number.
    """
    if source is None:
        raise TypeError("labor configuration is required")
    if isinstance(source, LaborCost):
        return source
    if isinstance(source, bool):
        raise TypeError("labor configuration must not be a bool")
    if isinstance(source, (int, float)):
        return LaborCost(float(source))
    if isinstance(source, LaborConfig):
        return LaborCost(source.total_fixed_labor_cost)
    if isinstance(source, AppSettings):
        return LaborCost(source.monthly_salary)
    if isinstance(source, dict):
        total = _pick(source, "total_fixed_labor_cost", "totalFixedLaborCost")
        if total is not None:
            return LaborCost(_to_float(total))
        if is_labor_only(source):
            return LaborCost(
                LaborConfig.from_dict(source).total_fixed_labor_cost
            )
        return normalize_labor_config(AppSettings.from_dict(source))
    raise TypeError(
        f"Unsupported labor configuration type: {type(source).__name__}"
    )


@dataclass(frozen=True)
class Actor:
    """Who performed an action, for audit attribution."""
    id: str = "system"
    name: str = "System"
    role: str = SYSTEM_ROLE
    username: str = "system"

    @classmethod
    def system(cls) -> "Actor":
        return cls()


SYSTEM_ACTOR = Actor.system()


@dataclass
class AuditLogEntry:
    """Audit trail entry for one mutation or session event."""
    id: Optional[int] = None
    created_at: str = ""
    actor_id: str = "system"
    actor_name: str = "System"
    actor_role: str = SYSTEM_ROLE
    module: str = ""       # CUSTOMER, JOB, EXPENSE, ASSET, STOCK, SETTINGS...
    action: str = ""       # CREATE, UPDATE, DELETE, LOGIN, EXPORT...
    entity_type: str = ""
    entity_id: str = "N/A"
    entity_name: str = ""
    summary: str = ""
    diff: Optional[str] = None  # JSON {"before": ..., "after": ...}

    @property
    def diff_data(self) -> Optional[dict]:
        if not self.diff:
            return None
        try:
            return json.loads(self.diff)
        except (json.JSONDecodeError, TypeError):
            return None
