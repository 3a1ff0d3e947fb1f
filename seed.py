from siteledger.core.database import Base, SessionLocal, engine
from siteledger.models import (
    CashDeposit,
    DailyLedger,
    InventoryReceipt,
    LedgerLine,
    LineCategory,
    PaymentMethod,
    Supplier,
    SupplierDeposit,
    SupplierPurchase,
)
from siteledger.schemas.ledger import LedgerLineCreate
from siteledger.services.cash_deposit_service import record_cash_deposit
from siteledger.services.ledger_service import LedgerService
from siteledger.services.supplier_service import create_supplier

from faker import Faker
from decimal import Decimal
from datetime import date, timedelta
import random

fake = Faker()

PROJECTS = ["PRJ-NORTHGATE", "PRJ-RIVERSIDE"]
DAYS = 7

MATERIALS = [("Cement", "bags"), ("Sand", "tons"), ("Steel rods", "pcs"), ("Bricks", "pcs")]
LABOR = ["Masons", "Helpers", "Carpenter", "Electrician"]
SUNDRY = [
    (LineCategory.TRANSPORT, "Truck hire"),
    (LineCategory.FOOD, "Lunch for crew"),
    (LineCategory.OTHER, "Site water"),
]


def money(low, high):
    return Decimal(random.randint(low, high))


def day_lines(suppliers):
    lines = []

    item, unit = random.choice(MATERIALS)
    supplier = random.choice(suppliers)
    lines.append(LedgerLineCreate(
        item=item,
        category=LineCategory.MATERIALS,
        amount=money(50, 300),
        payment_method=PaymentMethod.SUPPLIER,
        quantity=Decimal(random.randint(5, 50)),
        unit=unit,
        supplier_id=supplier.id,
    ))

    lines.append(LedgerLineCreate(
        item=random.choice(LABOR),
        category=LineCategory.LABOR,
        amount=money(40, 120),
        payment_method=PaymentMethod.CASH,
    ))

    category, item = random.choice(SUNDRY)
    lines.append(LedgerLineCreate(
        item=item,
        category=category,
        amount=money(5, 40),
        payment_method=PaymentMethod.CASH,
        note=fake.sentence(nb_words=6),
    ))
    return lines


db = SessionLocal()

try:
    Base.metadata.create_all(bind=engine)

    print("🔄 Clearing existing data...")
    db.query(InventoryReceipt).delete()
    db.query(SupplierPurchase).delete()
    db.query(LedgerLine).delete()
    db.query(DailyLedger).delete()
    db.query(SupplierDeposit).delete()
    db.query(Supplier).delete()
    db.query(CashDeposit).delete()
    db.commit()
    print("✅ Data cleared.")

    print("🔄 Creating suppliers...")
    suppliers = [
        create_supplier(
            db,
            name=fake.company(),
            phone=''.join(filter(str.isdigit, fake.phone_number()))[:20],
            initial_deposit=money(3000, 6000),
        )
        for _ in range(random.randint(3, 5))
    ]
    print(f"✅ Seeded {len(suppliers)} suppliers")

    start = date.today() - timedelta(days=DAYS)
    service = LedgerService(db)

    for project_id in PROJECTS:
        print(f"🔄 Seeding project {project_id}...")
        record_cash_deposit(
            db,
            project_id=project_id,
            amount=money(1500, 2500),
            deposit_date=start,
            method=random.choice(["Mobile Money", "Bank Transfer", "Cash Handover"]),
            reference=fake.bothify("REF-####"),
        )

        for offset in range(DAYS):
            ledger_date = start + timedelta(days=offset)
            if offset and offset % 3 == 0:
                record_cash_deposit(
                    db,
                    project_id=project_id,
                    amount=money(300, 800),
                    deposit_date=ledger_date,
                    method="Mobile Money",
                )

            ledger = service.create_ledger(
                project_id=project_id,
                ledger_date=ledger_date,
                notes=fake.sentence(nb_words=8),
                lines=day_lines(suppliers),
            )
            print(f"  ✅ {ledger.date}: opening {ledger.opening_cash}, closing {ledger.closing_cash}")

    print("🎉 Seeding complete!")
except Exception as e:
    db.rollback()
    print(f"❌ Seeding failed: {e}")
    raise
finally:
    db.close()
