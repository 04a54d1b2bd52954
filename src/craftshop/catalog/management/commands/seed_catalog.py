"""Management command to seed the default categories and catalog products."""

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from craftshop.catalog.images import CATEGORY_IMAGE_MAP, SKU_IMAGE_MAP
from craftshop.catalog.models import Category, Product


CATEGORIES = [
    {"name": "Mirrors", "description": "Handcrafted decorative mirrors for your home"},
    {"name": "Furniture", "description": "Arts & Crafts-made furniture pieces"},
    {"name": "Lighting", "description": "Unique lighting fixtures and lamps"},
    {"name": "Decor", "description": "Home decor and accessories"},
    {"name": "Textiles", "description": "Handwoven rugs, cushions, and fabric art"},
    {"name": "Artificial Flowers", "description": "Realistically rendered flowers with some fresh aroma"},
]


PRODUCTS = [
    {
        "sku": "RWM-001",
        "name": "Rustic Wooden Mirror",
        "category": "Mirrors",
        "description": (
            "A beautiful handcrafted mirror with reclaimed wood frame, perfect for adding "
            "warmth to any room. Each piece tells a unique story through its natural wood "
            "grain and weathered finish."
        ),
        "price": "149.99",
        "compare_at_price": "199.99",
        "stock_quantity": 15,
        "is_featured": True,
        "materials": ["Reclaimed Wood", "Glass"],
        "colors": ["Natural", "Brown"],
        "dimensions": {"width": 24, "height": 36, "depth": 2},
        "weight": "8.5",
        "is_fragile": True,
    },
    {
        "sku": "VBM-002",
        "name": "Vintage Brass Mirror",
        "category": "Mirrors",
        "description": (
            "An elegant vintage-style brass mirror with intricate detailing and an "
            "antique finish."
        ),
        "price": "89.99",
        "compare_at_price": "119.99",
        "stock_quantity": 8,
        "is_featured": True,
        "materials": ["Brass", "Glass"],
        "colors": ["Gold", "Brass"],
        "is_fragile": True,
    },
    {
        "sku": "HRC-003",
        "name": "Handwoven Rattan Chair",
        "category": "Furniture",
        "description": (
            "Comfortable and stylish rattan chair, perfect for indoor or outdoor use. "
            "Woven by skilled craftspeople using sustainable materials."
        ),
        "price": "299.99",
        "stock_quantity": 5,
        "is_featured": True,
        "materials": ["Rattan", "Cotton Cushion"],
        "colors": ["Natural", "Beige"],
    },
    {
        "sku": "CTL-004",
        "name": "Ceramic Table Lamp",
        "category": "Lighting",
        "description": (
            "Ceramic table lamp with a unique glazed finish, hand-thrown and fired in "
            "small batches."
        ),
        "price": "79.99",
        "compare_at_price": "99.99",
        "stock_quantity": 12,
        "is_featured": True,
        "materials": ["Ceramic", "Fabric Shade"],
        "colors": ["White", "Blue"],
        "is_fragile": True,
    },
    {
        "sku": "MWH-005",
        "name": "Macrame Wall Hanging",
        "category": "Decor",
        "description": "Handmade macrame wall hanging knotted from natural cotton cord.",
        "price": "45.99",
        "stock_quantity": 20,
        "is_featured": True,
        "materials": ["Cotton Cord"],
        "colors": ["Natural", "Cream"],
    },
    {
        "sku": "WCT-006",
        "name": "Live Edge Coffee Table",
        "category": "Furniture",
        "description": (
            "Solid walnut coffee table with live edge design. Each piece shows the "
            "natural grain and organic edge of the wood."
        ),
        "price": "449.99",
        "compare_at_price": "549.99",
        "stock_quantity": 3,
        "is_featured": True,
        "materials": ["Walnut Wood", "Steel Legs"],
        "colors": ["Natural", "Dark Brown"],
    },
    {
        "sku": "PLF-007",
        "name": "Woven Pendant Light",
        "category": "Lighting",
        "description": "Pendant light with a woven bamboo shade, made for dining areas.",
        "price": "129.99",
        "stock_quantity": 7,
        "is_featured": True,
        "materials": ["Bamboo", "Metal"],
        "colors": ["Natural", "Black"],
    },
    {
        "sku": "CVS-008",
        "name": "Ceramic Vase Collection",
        "category": "Decor",
        "description": "Set of three handmade ceramic vases in different sizes.",
        "price": "69.99",
        "compare_at_price": "89.99",
        "stock_quantity": 10,
        "is_featured": True,
        "materials": ["Ceramic"],
        "colors": ["White", "Terracotta"],
        "is_fragile": True,
    },
    {
        "sku": "WSB-009",
        "name": "Woven Storage Basket",
        "category": "Decor",
        "description": "Handwoven storage basket made from natural seagrass.",
        "price": "34.99",
        "stock_quantity": 25,
        "materials": ["Seagrass"],
        "colors": ["Natural"],
    },
    {
        "sku": "CWS-010",
        "name": "Copper Wall Sconce",
        "category": "Lighting",
        "description": "Handcrafted copper wall sconce with warm Edison bulb.",
        "price": "95.99",
        "stock_quantity": 6,
        "materials": ["Copper", "Edison Bulb"],
        "colors": ["Copper", "Brass"],
    },
    {
        "sku": "ETP-011",
        "name": "Embroidered Throw Pillow",
        "category": "Textiles",
        "description": (
            "Hand-embroidered throw pillow with geometric patterns, organic cotton and "
            "natural dyes."
        ),
        "price": "28.99",
        "stock_quantity": 18,
        "materials": ["Organic Cotton", "Natural Dyes"],
        "colors": ["Blue", "White", "Natural"],
    },
    {
        "sku": "RWS-012",
        "name": "Reclaimed Wood Shelf",
        "category": "Furniture",
        "description": "Floating shelf made from reclaimed barn wood.",
        "price": "65.99",
        "stock_quantity": 12,
        "materials": ["Reclaimed Wood", "Steel Brackets"],
        "colors": ["Natural", "Weathered"],
    },
]

DECIMAL_FIELDS = ("price", "compare_at_price", "weight")


class Command(BaseCommand):
    help = "Seed the default categories and the catalog products"

    def add_arguments(self, parser):
        parser.add_argument(
            "--force",
            action="store_true",
            help="Overwrite existing products with the seed data",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("\nCreating categories...")
        category_map = {}
        for cat_data in CATEGORIES:
            category, created = Category.objects.get_or_create(
                name=cat_data["name"],
                defaults={
                    "description": cat_data["description"],
                    "image_url": CATEGORY_IMAGE_MAP.get(cat_data["name"].lower(), ""),
                },
            )
            category_map[cat_data["name"]] = category
            if created:
                self.stdout.write(self.style.SUCCESS(f"  Created: {category.name}"))
            else:
                self.stdout.write(f"  Skipping existing category: {category.name}")

        self.stdout.write("\nCreating products...")
        created_count = 0
        for product_data in PRODUCTS:
            fields = dict(product_data)
            sku = fields.pop("sku")
            fields["category"] = category_map[fields.pop("category")]
            fields["images"] = [SKU_IMAGE_MAP[sku]]
            for name in DECIMAL_FIELDS:
                if name in fields:
                    fields[name] = Decimal(fields[name])

            existing = Product.objects.filter(sku=sku).first()
            if existing and not options["force"]:
                self.stdout.write(f"  Skipping existing product: {existing.name}")
                continue

            product, created = Product.objects.update_or_create(sku=sku, defaults=fields)
            created_count += int(created)
            verb = "Created" if created else "Updated"
            self.stdout.write(self.style.SUCCESS(f"  {verb}: {product.name}"))

        self.stdout.write(self.style.SUCCESS("\nCatalog seed complete!"))
        self.stdout.write(f"  Categories: {len(CATEGORIES)}")
        self.stdout.write(f"  New products: {created_count}")
