"""Costing primitives: weighted-average consumable cost and depreciation.

Both are pure functions of the full record history handed in. Unit costs
pool every purchase ever logged for a consumable type, so one unusually
priced purchase shifts the average for good; there is no outlier
rejection and no time window.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from clean_village.database.models import Asset, Job, StockLog
from clean_village.utils.constants import (
    CONSUMABLE_CHEMICAL,
    CONSUMABLE_CITRIC,
    CONSUMABLE_TYPES,
)
from clean_village.utils.periods import month_index, parse_year_month

logger = logging.getLogger(__name__)


def ensure_records(items, cls, name: str) -> list:
    """Validate a required collection and normalize it to *cls* objects.

    Plain dicts (stored rows or older app records) go through
    ``cls.from_record``. Soft-deleted records are dropped.
    """
    if items is None:
        raise TypeError(f"{name} collection is required")
    records = []
    for item in items:
        record = cls.from_record(item) if isinstance(item, dict) else item
        if getattr(record, "deleted_at", None):
            continue
        records.append(record)
    return records


@dataclass(frozen=True)
class UnitCosts:
    """Cost of one usable can/bottle per consumable type."""
    cost_per_unit: dict = field(default_factory=dict)
    is_using_actual: bool = False

    @property
    def citric(self) -> float:
        return self.cost_per_unit.get(CONSUMABLE_CITRIC, 0.0)

    @property
    def chemical(self) -> float:
        return self.cost_per_unit.get(CONSUMABLE_CHEMICAL, 0.0)

    def cost_of(self, quantities: Mapping[str, float]) -> float:
        """Price a {type: quantity} mapping at these unit costs."""
        return sum(
            (qty or 0.0) * self.cost_per_unit.get(kind, 0.0)
            for kind, qty in quantities.items()
        )


def _fallback_map(fallback) -> dict:
    if fallback is None:
        from clean_village.config import Config
        return Config.consumable_fallbacks()
    if isinstance(fallback, Mapping):
        return dict(fallback)
    return {kind: float(fallback) for kind in CONSUMABLE_TYPES}


def compute_unit_costs(stock_logs: Iterable[StockLog],
                       fallback=None) -> UnitCosts:
    """Weighted-average unit cost per consumable type.

    ``unit = sum(total_cost) / sum(quantity * yield_per_unit)`` over every
    log of the type. With no usable yield for a type, its *fallback* is
    used instead: a number for every type, a {type: cost} mapping, or
    None for the configured defaults.
    """
    logs = ensure_records(stock_logs, StockLog, "stock_logs")
    fallbacks = _fallback_map(fallback)

    kinds = list(CONSUMABLE_TYPES)
    for log in logs:
        if log.item_type not in kinds:
            kinds.append(log.item_type)

    costs = {}
    using_actual = False
    for kind in kinds:
        total_cost = 0.0
        total_yield = 0.0
        for log in logs:
            if log.item_type == kind:
                total_cost += log.total_cost
                total_yield += log.total_yield
        if total_yield > 0:
            costs[kind] = total_cost / total_yield
            using_actual = True
        else:
            costs[kind] = fallbacks.get(kind, 0.0)
            logger.debug(f"No stock yield for {kind}; using fallback "
                         f"{costs[kind]}")

    return UnitCosts(cost_per_unit=costs, is_using_actual=using_actual)


def consumable_cost(job: Job, unit_costs) -> float:
    """Citric and chemical cans used on *job*, priced at *unit_costs*."""
    if isinstance(unit_costs, UnitCosts):
        citric, chemical = unit_costs.citric, unit_costs.chemical
    else:
        citric = unit_costs.get(CONSUMABLE_CITRIC, 0.0)
        chemical = unit_costs.get(CONSUMABLE_CHEMICAL, 0.0)
    return job.citric_qty * citric + job.chemical_qty * chemical


def compute_monthly_depreciation(assets: Iterable[Asset],
                                 reference_date) -> float:
    """Straight-line depreciation charged to the month of *reference_date*.

    An asset contributes ``cost / lifespan_months`` to every month from its
    purchase month (inclusive) up to purchase month + lifespan (exclusive).
    Retired assets never contribute. Assets with an unreadable purchase
    date or no lifespan are skipped.
    """
    records = ensure_records(assets, Asset, "assets")
    reference = parse_year_month(reference_date)
    if reference is None:
        raise ValueError(f"Invalid reference date: {reference_date!r}")
    current = month_index(*reference)

    total = 0.0
    for asset in records:
        if asset.is_retired:
            continue
        purchased = parse_year_month(asset.purchase_date)
        if purchased is None:
            logger.warning(
                f"Asset {asset.id} ({asset.name}) has unreadable purchase "
                f"date {asset.purchase_date!r}; skipped"
            )
            continue
        if asset.lifespan_months <= 0:
            continue
        start = month_index(*purchased)
        if start <= current < start + asset.lifespan_months:
            total += asset.monthly_depreciation
    return total


def depreciation_schedule(asset: Asset,
                          months: Optional[int] = None) -> list[tuple]:
    """(YYYY-MM, amount) rows for each month *asset* is depreciated."""
    purchased = parse_year_month(asset.purchase_date)
    if purchased is None or asset.lifespan_months <= 0 or asset.is_retired:
        return []
    start = month_index(*purchased)
    count = asset.lifespan_months if months is None else min(
        months, asset.lifespan_months)
    rows = []
    for offset in range(count):
        index = start + offset
        rows.append((f"{index // 12:04d}-{index % 12 + 1:02d}",
                     asset.monthly_depreciation))
    return rows
