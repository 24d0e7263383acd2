from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.customers.models import BusinessType, Customer, CustomerRole
from modules.customers.principal import resolve_principal
from modules.inventory.exceptions import InsufficientStock
from modules.orders.dtos import CreateOrderDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository

SEED_ADDRESS = {
    "first_name": "Sam",
    "last_name": "Rivera",
    "address1": "100 Market Street",
    "city": "Springfield",
    "state": "IL",
    "zip_code": "62701",
    "country": "US",
    "phone": "5550100200",
}


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=20)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users = self._seed_users()
        products = self._seed_products()
        orders_created = self._seed_orders(users, products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={len(users)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> list:
        User = get_user_model()
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")

        customers = []
        seed_customers = [
            ("acme", CustomerRole.B2B_CUSTOMER, "Acme Supplies", BusinessType.RETAILER, "12-3456789"),
            ("globex", CustomerRole.B2B_CUSTOMER, "Globex Wholesale", BusinessType.WHOLESALER, "98-7654321"),
            ("alice", CustomerRole.B2C_CUSTOMER, "", "", ""),
            ("bob", CustomerRole.B2C_CUSTOMER, "", "", ""),
        ]
        for username, role, company, business_type, tax_id in seed_customers:
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User.objects.create_user(username, password=f"{username}123")
            Customer.objects.get_or_create(
                user=user,
                defaults={
                    "role": role,
                    "phone": "5550100200",
                    "company_name": company,
                    "business_type": business_type,
                    "tax_id": tax_id,
                },
            )
            customers.append(user)
        self.stdout.write(self.style.SUCCESS("Creating users... Done!"))
        return customers

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("ELEC-001", '27" Monitor', Decimal("299.90"), Decimal("249.00"), 5),
            ("ELEC-002", "Mechanical Keyboard", Decimal("89.90"), Decimal("72.00"), 10),
            ("ELEC-003", "Wireless Mouse", Decimal("24.90"), Decimal("18.50"), 20),
            ("ELEC-004", "USB-C Dock", Decimal("129.00"), Decimal("99.00"), 10),
            ("FURN-001", "Office Desk", Decimal("349.00"), Decimal("289.00"), 2),
            ("FURN-002", "Ergonomic Chair", Decimal("449.00"), Decimal("379.00"), 2),
            ("OFF-001", "A4 Paper (500 sheets)", Decimal("6.90"), Decimal("4.20"), 50),
            ("OFF-002", "Blue Pen (12 pack)", Decimal("4.90"), Decimal("3.10"), 40),
            ("OFF-003", "Notebook", Decimal("3.90"), Decimal("2.40"), 50),
            ("OFF-004", "Desk Lamp", Decimal("39.90"), Decimal("29.90"), 10),
        ]
        for sku, name, base_price, b2b_price, b2b_minimum in catalog:
            product, _ = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name": name,
                    "base_price": base_price,
                    "b2b_price": b2b_price,
                    "b2b_minimum_order": b2b_minimum,
                    "stock": random.randint(100, 500),
                    "images": [f"https://images.example.com/{sku.lower()}.jpg"],
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, users: list, products: list[Product], count: int) -> int:
        """Place orders through the service so stock and totals stay consistent."""
        self.stdout.write("Creating orders...")
        if not users or not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no users/products)."))
            return 0

        service = OrderService(
            order_repository=OrderDjangoRepository(),
            catalog=ProductDjangoRepository(),
        )
        orders_created = 0
        for i in range(count):
            principal = resolve_principal(random.choice(users))
            items = []
            for product in random.sample(products, k=random.randint(1, 3)):
                minimum = product.b2b_minimum_order if principal.role == CustomerRole.B2B_CUSTOMER else 1
                items.append({"product_id": product.id, "quantity": minimum + random.randint(0, 3)})
            dto = CreateOrderDTO.parse(
                {
                    "items": items,
                    "payment_method": random.choice(["card", "invoice", "paypal"]),
                    "shipping_address": SEED_ADDRESS,
                    "billing_address": SEED_ADDRESS,
                    "notes": f"Seed order {i + 1}",
                }
            )
            try:
                service.create_order(principal, dto)
            except InsufficientStock:
                continue
            orders_created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return orders_created
