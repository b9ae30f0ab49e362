"""Seed the database with a month of realistic demo data.

Creates:
  - 4 customers (individual and company)
  - 6 jobs across one month (4 completed, 1 pending, 1 cancelled)
  - expenses including fuel and one cashflow-only owner draw
  - the default equipment list plus a costed van
  - citric and chemical stock purchases
  - labor config and app settings

Run:
    python execution/seed_demo_data.py [year] [month]

WARNING: This script INSERTS data. Run against a fresh DB to avoid
duplicates. Delete data/clean_village.db first for a clean start.
"""

import json
import logging
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from clean_village.config import Config
from clean_village.database.connection import DatabaseConnection
from clean_village.database.models import (
    Actor,
    AppSettings,
    Asset,
    Customer,
    Expense,
    Job,
    LaborConfig,
    StockLog,
)
from clean_village.database.repository import Repository
from clean_village.database.schema import initialize_database

SEED_ACTOR = Actor(id="seed", name="Demo Seeder", role="BOSS",
                   username="seed")


def _phones(number: str) -> str:
    return json.dumps([{"number": number, "type": "mobile",
                        "is_primary": True, "label": ""}])


def _addresses(text: str) -> str:
    return json.dumps([{"text": text, "is_primary": True}])


def seed(repo: Repository, year: int, month: int) -> dict:
    """Populate the database with demo data for *year*/*month*."""
    prefix = f"{year:04d}-{month:02d}"

    customers = [
        Customer(contact_name="Chen Mei", phones=_phones("0912345678"),
                 addresses=_addresses("12 River Rd, Floor 5")),
        Customer(customer_type="company", company_name="Sunrise Towers",
                 contact_name="Mr. Lin", building_type="apartment",
                 building_name="Sunrise Towers", has_elevator=1,
                 phones=_phones("0223456789"),
                 addresses=_addresses("88 Harbor Blvd")),
        Customer(contact_name="Wang Hao", phones=_phones("0987654321"),
                 addresses=_addresses("3 Temple Lane")),
        Customer(customer_type="company", company_name="Green Leaf Cafe",
                 contact_name="Ms. Wu", phones=_phones("0277778888"),
                 addresses=_addresses("5 Market St")),
    ]
    for customer in customers:
        repo.create_customer(customer, SEED_ACTOR)

    jobs = [
        (customers[0], "completed", 3, 6000, 2.0, 20, 1, 0),
        (customers[1], "completed", 8, 18000, 5.0, 35, 3, 2),
        (customers[2], "completed", 15, 4500, 1.5, 15, 1, 0),
        (customers[3], "completed", 22, 9000, 3.0, 25, 2, 1),
        (customers[0], "pending", 27, 6000, 0.0, 20, None, None),
        (customers[2], "cancelled", 12, 0, 0.0, 15, None, None),
    ]
    for customer, status, day, amount, hours, minutes, citric, chem in jobs:
        repo.create_job(
            Job(
                customer_id=customer.id,
                status=status,
                contact_person=customer.contact_name,
                contact_phone=customer.primary_phone,
                service_items=json.dumps(["tank_cleaning"]),
                service_date=f"{prefix}-{day:02d}",
                work_duration_hours=hours,
                travel_mode="round_trip",
                travel_base_minutes=minutes,
                citric_acid=citric,
                chemical=chem,
                total_amount=amount,
                payment_method="cash",
            ),
            SEED_ACTOR,
        )

    expenses = [
        Expense(date=f"{prefix}-05", category="fuel", amount=1200),
        Expense(date=f"{prefix}-19", category="fuel", amount=900),
        Expense(date=f"{prefix}-01", category="insurance", amount=3500),
        Expense(date=f"{prefix}-10", category="phone", amount=999),
        Expense(date=f"{prefix}-28", category="other", amount=20000,
                note="Owner draw", cashflow_only=1),
    ]
    for expense in expenses:
        repo.create_expense(expense, SEED_ACTOR)

    repo.seed_default_assets(SEED_ACTOR, purchase_date=f"{prefix}-01")
    repo.create_asset(
        Asset(name="Service van", purchase_date=f"{year - 1:04d}-01-15",
              cost=480000, lifespan_months=60),
        SEED_ACTOR,
    )

    stock = [
        StockLog(date=f"{prefix}-02", item_type="citric", quantity=2,
                 total_cost=2400, yield_per_unit=24),
        StockLog(date=f"{prefix}-02", item_type="chemical", quantity=1,
                 total_cost=3000, yield_per_unit=20),
    ]
    for log in stock:
        repo.create_stock_log(log, SEED_ACTOR)

    repo.save_labor_config(
        LaborConfig(boss_salary=40000, partner_salary=30000,
                    insurance_cost=4000),
        SEED_ACTOR,
    )
    repo.save_app_settings(
        AppSettings(monthly_target=Config.MONTHLY_TARGET,
                    monthly_salary=Config.MONTHLY_SALARY),
        SEED_ACTOR,
    )

    return {
        "customers": len(customers),
        "jobs": len(jobs),
        "expenses": len(expenses),
        "assets": len(repo.get_all_assets()),
        "stock_logs": len(stock),
    }


def main():
    logging.basicConfig(level=Config.LOG_LEVEL)
    today = date.today()
    year = int(sys.argv[1]) if len(sys.argv) > 1 else today.year
    month = int(sys.argv[2]) if len(sys.argv) > 2 else today.month

    db = DatabaseConnection(Config.DATABASE_PATH)
    initialize_database(db)
    counts = seed(Repository(db), year, month)
    for name, count in counts.items():
        print(f"  {name}: {count}")
    print(f"Seeded demo data for {year:04d}-{month:02d} "
          f"into {Config.DATABASE_PATH}")


if __name__ == "__main__":
    main()
