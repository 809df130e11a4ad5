"""
Field Sales Dataset Generator

Generates a mock field team: employees, stores, a product catalogue, daily
attendance and sales for the trailing days, expense plans and monthly
targets. Writes CSVs for the database seeder and the activity log the API
falls back to.

Usage:
    python scripts/generate_dataset.py --days 120
"""

import argparse
import json
import random
import uuid
from datetime import date, timedelta
from pathlib import Path

import polars as pl
from faker import Faker

from fieldsales.analytics.calendar import instant_day_key, zoned_instant
from fieldsales.config import get_settings
from fieldsales.transformation.cleaners import parse_instant

fake = Faker("th_TH")
random.seed(42)
Faker.seed(42)

ROOT_DIR = Path(__file__).parent.parent
OUTPUT_DIR = ROOT_DIR / "data" / "generated"

REGIONS = {
    "กลาง": ["กรุงเทพมหานคร", "นนทบุรี", "ปทุมธานี", "สมุทรปราการ"],
    "เหนือ": ["เชียงใหม่", "เชียงราย", "ลำปาง"],
    "อีสาน": ["ขอนแก่น", "นครราชสีมา", "อุดรธานี"],
    "ใต้": ["สงขลา", "ภูเก็ต", "สุราษฎร์ธานี"],
}

STORE_CHAINS = ["โลตัส", "บิ๊กซี", "แม็กซ์แวลู", "ท็อปส์", "ร้านค้าส่ง"]

# (unit label, pieces per unit)
UNITS = [("ชิ้น", 1), ("แพ็ค", 6), ("กล่อง", 24)]

PRODUCT_NAMES = [
    "น้ำดื่ม 600 มล.",
    "กาแฟกระป๋อง",
    "ชาเขียวพร้อมดื่ม",
    "นมถั่วเหลือง",
    "ขนมข้าวโพดอบกรอบ",
    "บะหมี่กึ่งสำเร็จรูป",
    "น้ำผลไม้รวม",
    "เครื่องดื่มเกลือแร่",
    "โยเกิร์ตพร้อมดื่ม",
    "ข้าวเกรียบกุ้ง",
]

EXPENSE_LABELS = ["ค่าน้ำมัน", "ค่าโทรศัพท์", "ค่าที่พัก", "ค่าทางด่วน"]


# ==========================================
# DIRECTORY
# ==========================================
def generate_employees(n=12):
    print(f"📊 Generating {n} employees...")
    rows = []
    for _ in range(n):
        region = random.choice(list(REGIONS))
        rows.append({
            "id": str(uuid.uuid4()),
            "name": f"{fake.first_name()} {fake.last_name()}",
            "phone": fake.phone_number(),
            "province": random.choice(REGIONS[region]),
            "region": region,
        })

    df = pl.DataFrame(rows)
    df.write_csv(OUTPUT_DIR / "employees.csv")
    print(f"   ✅ employees.csv: {len(rows)} rows")
    return df


def generate_stores(n=30):
    print(f"📊 Generating {n} stores...")
    rows = []
    for i in range(n):
        region = random.choice(list(REGIONS))
        province = random.choice(REGIONS[region])
        rows.append({
            "id": str(uuid.uuid4()),
            "name": f"{random.choice(STORE_CHAINS)} สาขา{province} {i + 1}",
            "province": province,
            "region": region,
        })

    df = pl.DataFrame(rows)
    df.write_csv(OUTPUT_DIR / "stores.csv")
    print(f"   ✅ stores.csv: {len(rows)} rows")
    return df


def generate_products():
    return [
        {"code": f"P{i + 1:04d}", "name": name, "piece_price": round(random.uniform(10, 45), 2)}
        for i, name in enumerate(PRODUCT_NAMES)
    ]


# ==========================================
# DAILY ACTIVITY
# ==========================================
def generate_activity(employees, stores, products, days, zone):
    """Attendance and sales per employee per working day, in the reporting zone"""
    print(f"📊 Generating {days} days of activity...")
    store_names = stores["name"].to_list()
    today = date.today()

    sales, attendance = [], []
    for employee in employees.iter_rows(named=True):
        home_stores = random.sample(store_names, k=3)
        for offset in range(days, 0, -1):
            day = today - timedelta(days=offset)
            if day.weekday() == 6 or random.random() < 0.08:
                continue

            store = random.choice(home_stores)
            check_in = zoned_instant(zone, day.year, day.month, day.day, random.randint(8, 9), random.randint(0, 59))
            attendance.append({
                "timestamp": check_in.isoformat(),
                "employee_name": employee["name"],
                "store_name": store,
                "status": "check-in",
            })

            shift_minutes = random.randint(7 * 60, 9 * 60)
            for _ in range(random.randint(1, 6)):
                product = random.choice(products)
                unit_label, pieces = random.choices(UNITS, weights=[6, 3, 1])[0]
                quantity = random.randint(1, 12)
                unit_price = round(product["piece_price"] * pieces * random.uniform(0.9, 1.0), 2)
                sold_at = check_in + timedelta(minutes=random.randint(15, shift_minutes - 15))
                sales.append({
                    "timestamp": sold_at.isoformat(),
                    "employee_name": employee["name"],
                    "store_name": store,
                    "product_code": product["code"],
                    "product_name": product["name"],
                    "unit_label": unit_label,
                    "quantity": quantity,
                    "unit_price": unit_price,
                    "total": round(quantity * unit_price, 2),
                    "status": "completed" if random.random() > 0.03 else "cancelled",
                })

            # Some days have no check-out
            if random.random() > 0.1:
                attendance.append({
                    "timestamp": (check_in + timedelta(minutes=shift_minutes)).isoformat(),
                    "employee_name": employee["name"],
                    "store_name": store,
                    "status": "check-out",
                })

    sales_df = pl.DataFrame(sales)
    attendance_df = pl.DataFrame(attendance)
    sales_df.write_csv(OUTPUT_DIR / "sales.csv")
    attendance_df.write_csv(OUTPUT_DIR / "attendance.csv")
    print(f"   ✅ sales.csv: {len(sales):,} rows")
    print(f"   ✅ attendance.csv: {len(attendance):,} rows")
    return sales_df, attendance_df


def write_activity_log(sales_df, attendance_df, zone, path):
    """
    The field app's activity log: one attendance entry per event and one
    sales entry per store visit with its items. Unit names are not logged.
    """
    print("📊 Writing activity log...")
    entries = []

    for row in attendance_df.iter_rows(named=True):
        entries.append({
            "timestamp": row["timestamp"],
            "scope": "attendance",
            "action": row["status"],
            "actor_name": row["employee_name"],
            "metadata": {
                "employeeName": row["employee_name"],
                "storeName": row["store_name"],
                "status": row["status"],
            },
        })

    visits = {}
    for row in sales_df.iter_rows(named=True):
        day = instant_day_key(parse_instant(row["timestamp"]), zone)
        visit_key = (row["employee_name"], row["store_name"], day, row["status"])
        visit = visits.setdefault(visit_key, {
            "timestamp": row["timestamp"],
            "scope": "sales",
            "action": "create",
            "actor_name": row["employee_name"],
            "metadata": {
                "employeeName": row["employee_name"],
                "storeName": row["store_name"],
                "status": row["status"],
                "items": [],
            },
        })
        visit["metadata"]["items"].append({
            "productCode": row["product_code"],
            "productName": row["product_name"],
            "quantity": row["quantity"],
            "unitPrice": row["unit_price"],
            "total": row["total"],
        })

    entries.extend(visits.values())
    entries.sort(key=lambda entry: entry["timestamp"])

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        for entry in entries:
            fh.write(json.dumps(entry, ensure_ascii=False) + "\n")
    print(f"   ✅ {path.name}: {len(entries):,} entries")


# ==========================================
# EXPENSES AND TARGETS
# ==========================================
def generate_plans(employees, days):
    print("📊 Generating expense plans and targets...")
    today = date.today()
    months = sorted({(today - timedelta(days=offset)).strftime("%Y-%m") for offset in range(days + 1)})

    plans, items, targets = [], [], []
    for employee in employees.iter_rows(named=True):
        for month in months:
            plan_id = len(plans) + 1
            plans.append({
                "id": plan_id,
                "employee_id": employee["id"],
                "effective_month": month,
                "baseline": float(random.choice([12000, 15000, 18000])),
            })
            for label in random.sample(EXPENSE_LABELS, k=2):
                items.append({"expense_id": plan_id, "label": label, "amount": float(random.randint(5, 30) * 100)})
            targets.append({
                "employee_id": employee["id"],
                "month": month,
                "target_revenue": float(random.randint(8, 20) * 10000),
            })

    pl.DataFrame(plans).write_csv(OUTPUT_DIR / "expenses.csv")
    pl.DataFrame(items).write_csv(OUTPUT_DIR / "expense_items.csv")
    pl.DataFrame(targets).write_csv(OUTPUT_DIR / "monthly_targets.csv")
    print(f"   ✅ expenses.csv: {len(plans)} rows, monthly_targets.csv: {len(targets)} rows")


def main():
    parser = argparse.ArgumentParser(description="Generate a mock field sales dataset")
    parser.add_argument("--days", type=int, default=120, help="Trailing days of activity")
    parser.add_argument("--employees", type=int, default=12)
    parser.add_argument("--stores", type=int, default=30)
    args = parser.parse_args()

    settings = get_settings()
    zone = settings.reporting.zone
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

    employees = generate_employees(args.employees)
    stores = generate_stores(args.stores)
    products = generate_products()
    sales_df, attendance_df = generate_activity(employees, stores, products, args.days, zone)
    write_activity_log(sales_df, attendance_df, zone, Path(settings.reporting.event_log_path))
    generate_plans(employees, args.days)

    print("🎉 Dataset ready")


if __name__ == "__main__":
    main()
