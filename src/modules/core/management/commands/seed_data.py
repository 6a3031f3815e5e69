from __future__ import annotations

import random
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from modules.catalog.models import Product, Sku, StockLevel
from modules.customers.models import Customer


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument(
            "--seed",
            type=int,
            default=42,
            help="Random seed for stock quantities.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        random.seed(options["seed"])
        self.stdout.write("Seeding development data...")

        customers = self._seed_customers()
        skus = self._seed_skus()
        products = self._seed_products()
        stock_rows = self._seed_stock(products, skus)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"customers={len(customers)}, "
                f"products={len(products)}, "
                f"skus={len(skus)}, "
                f"stock_levels={stock_rows}"
            )
        )

    def _seed_customers(self) -> list[Customer]:
        self.stdout.write("Creating customers...")
        customers: list[Customer] = []
        seed_customers = [
            ("Sharma Traders", "9800000001", Decimal("50000"), Decimal("12000"), 15),
            ("Gupta Kirana Store", "9800000002", Decimal("20000"), Decimal("0"), 30),
            ("Patel Wholesale", "9800000003", Decimal("150000"), Decimal("98000"), 45),
            ("Reddy Provisions", "9800000004", Decimal("0"), Decimal("0"), 0),
            ("Iyer & Sons", "9800000005", Decimal("75000"), Decimal("74000"), 30),
        ]
        for name, phone, limit, balance, terms in seed_customers:
            customer, _ = Customer.objects.get_or_create(
                phone=phone,
                defaults={
                    "name": name,
                    "credit_limit": limit,
                    "current_balance": balance,
                    "payment_terms": terms,
                    "is_active": True,
                },
            )
            customers.append(customer)
        self.stdout.write(self.style.SUCCESS("Creating customers... Done!"))
        return customers

    def _seed_skus(self) -> dict[str, Sku]:
        self.stdout.write("Creating SKUs...")
        skus: dict[str, Sku] = {}
        for code, description in [
            ("BAG-25", "25 kg bag"),
            ("BAG-50", "50 kg bag"),
            ("PKT-1", "1 kg packet"),
            ("TIN-15", "15 litre tin"),
        ]:
            skus[code], _ = Sku.objects.get_or_create(
                code=code, defaults={"description": description}
            )
        self.stdout.write(self.style.SUCCESS("Creating SKUs... Done!"))
        return skus

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        for name, category in [
            ("Basmati Rice", "Grains"),
            ("Sona Masoori Rice", "Grains"),
            ("Toor Dal", "Pulses"),
            ("Chana Dal", "Pulses"),
            ("Groundnut Oil", "Edible Oil"),
            ("Sugar", "Essentials"),
        ]:
            product, _ = Product.objects.get_or_create(
                name=name, defaults={"category": category}
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_stock(self, products: list[Product], skus: dict[str, Sku]) -> int:
        # Bags are shared across grains and pulses, so those SKU ids match
        # several catalog rows and resolving by SKU alone is ambiguous.
        self.stdout.write("Creating stock levels...")
        by_category = {
            "Grains": (("BAG-25", "bag"), ("BAG-50", "bag")),
            "Pulses": (("BAG-25", "bag"), ("PKT-1", "packet")),
            "Edible Oil": (("TIN-15", "tin"),),
            "Essentials": (("BAG-50", "bag"), ("PKT-1", "packet")),
        }
        created_rows = 0
        for product in products:
            for code, unit_type in by_category[product.category]:
                _, created = StockLevel.objects.get_or_create(
                    product=product,
                    sku=skus[code],
                    defaults={
                        "unit_type": unit_type,
                        "available_quantity": Decimal(random.randint(0, 120)),
                        "total_weight": Decimal("0"),
                    },
                )
                created_rows += created
        self.stdout.write(self.style.SUCCESS("Creating stock levels... Done!"))
        return created_rows
