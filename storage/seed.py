"""
Demo data for local development: two leasing companies, one user per main role,
two cars and two applications (one still pending, one already open for offers).
Idempotent: does nothing when the demo admin already exists.
"""
import logging
from decimal import Decimal

from schemas import ApplicationCreate, CarCreate, CompanyCreate, OfferCreate, UserCreate
from services.auth import hash_password
from services.state_machine import ApplicationStatus
from storage.base import Storage

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "admin123"

COMPANIES_DATA = [
    {
        "name": "AutoLeasing Pro",
        "description": "Professional vehicle leasing services",
        "min_amount": Decimal("100000"),
        "max_amount": Decimal("50000000"),
        "min_term": 12,
        "max_term": 60,
        "interest_rate": Decimal("5.5"),
        "max_leasing_term": 60,
        "requirements": {"min_credit_score": 600, "documents": ["passport", "income"]},
        "work_with_real_estate": False,
    },
    {
        "name": "FlexiLease Solutions",
        "description": "Flexible leasing options for all needs",
        "min_amount": Decimal("50000"),
        "max_amount": Decimal("30000000"),
        "min_term": 6,
        "max_term": 48,
        "interest_rate": Decimal("6.0"),
        "max_leasing_term": 48,
        "requirements": {"min_credit_score": 550, "documents": ["passport", "income", "employment"]},
        "work_with_used": False,
    },
]

USERS_DATA = [
    {"username": "admin", "email": "admin@example.com", "first_name": "System", "last_name": "Administrator",
     "user_type": "admin"},
    {"username": "manager1", "email": "manager1@example.com", "first_name": "Ivan", "last_name": "Manager",
     "user_type": "manager", "company": "AutoLeasing Pro"},
    {"username": "client1", "email": "client1@example.com", "first_name": "Petr", "last_name": "Client",
     "user_type": "client", "phone": "+7-999-123-45-67", "inn": "1234567890"},
    {"username": "supplier1", "email": "supplier1@example.com", "first_name": "Anna", "last_name": "Supplier",
     "user_type": "supplier", "company_name": "City Motors"},
]

CARS_DATA = [
    {"brand": "Toyota", "model": "Camry", "year": 2024, "price": Decimal("3500000"), "engine": "2.5L 4-cylinder",
     "transmission": "Automatic", "drive": "FWD", "specifications": {"fuel": "Gasoline", "warranty": "3 years"}},
    {"brand": "Honda", "model": "Accord", "year": 2024, "price": Decimal("3800000"), "engine": "1.5L Turbo",
     "transmission": "CVT", "drive": "FWD", "specifications": {"fuel": "Gasoline", "warranty": "3 years"}},
]


async def seed_demo_data(storage: Storage) -> bool:
    """Insert the demo rows. Returns False when they were already present."""
    if await storage.get_user_by_username("admin"):
        logger.info("Demo data already present, skipping")
        return False

    companies = {}
    for data in COMPANIES_DATA:
        company = await storage.create_company(CompanyCreate(**data))
        companies[company.name] = company

    users = {}
    password_hash = hash_password(DEMO_PASSWORD)
    for data in USERS_DATA:
        data = dict(data)
        company = companies.get(data.pop("company", None))
        if company is not None:
            data.update(company_id=company.id, company_name=company.name)
        user = await storage.create_user(UserCreate(**data, password_hash=password_hash, is_verified=True))
        users[user.username] = user

    for data in CARS_DATA:
        await storage.create_car(CarCreate(**data, supplier_id=users["supplier1"].id))

    client = users["client1"]
    await storage.create_application(
        ApplicationCreate(
            client_id=client.id,
            object_cost=Decimal("2500000"),
            down_payment=Decimal("30"),
            leasing_term=36,
            leasing_type="auto",
            client_phone=client.phone,
            client_inn=client.inn,
            comment="Company car for field staff",
        )
    )
    equipment = await storage.create_application(
        ApplicationCreate(
            client_id=client.id,
            object_cost=Decimal("5000000"),
            down_payment=Decimal("25"),
            leasing_term=48,
            leasing_type="equipment",
            client_phone=client.phone,
            client_inn=client.inn,
            comment="Production line equipment",
        )
    )
    # Raw status write: the demo skips admin review for this one.
    await storage.update_application_status(equipment.id, ApplicationStatus.REVIEWING_OFFERS.value)
    await storage.create_offer(
        OfferCreate(
            application_id=equipment.id,
            company_id=companies["AutoLeasing Pro"].id,
            manager_id=users["manager1"].id,
            monthly_payment=Decimal("135000"),
            first_payment=Decimal("1250000"),
            buyout_payment=Decimal("50000"),
            total_cost=Decimal("5530000"),
            interest_rate=Decimal("12.5"),
        )
    )
    logger.info("Seeded %d companies, %d users, %d cars", len(companies), len(users), len(CARS_DATA))
    return True
