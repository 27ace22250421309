"""
Management command to load a demo catalog.
Run with: python manage.py seed_catalog [--flush]

Creates three users (owner/editor/viewer, password "password123"), two
themed stores, a handful of categories, products with generated variants
and one discount at each scope.
"""
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from authentication.models import CustomUser
from store.models import Category, Discount, Product, Store, StoreRole
from store.services.catalog import CatalogService

DEMO_PASSWORD = 'password123'

CATEGORIES = [
    ('shirts', 'Shirts'),
    ('t-shirts', 'T-Shirts'),
    ('hoodies', 'Hoodies & Sweaters'),
    ('jeans', 'Jeans'),
    ('watches', 'Watches'),
    ('electronics', 'Electronics'),
    ('smart', 'Smart Devices'),
]

STORES = [
    {
        'name': 'Fashion Store',
        'description': 'A curated collection of modern fashion, casual to formal.',
        'wa_number': '628123456789',
        'theme': {'primary': '#3b82f6', 'secondary': '#1d4ed8', 'accent': '#f59e0b', 'bg': '#ffffff', 'fg': '#111827'},
    },
    {
        'name': 'Tech Hub',
        'description': 'The latest gadgets and electronics in one place.',
        'wa_number': '628555123456',
        'theme': {'primary': '#00b4d8', 'secondary': '#0077b6', 'accent': '#00d9ff', 'bg': '#f0f9ff', 'fg': '#0c4a6e'},
    },
]

PRODUCTS = {
    'Fashion Store': [
        {
            'name': 'Classic T-Shirt',
            'base_price': 100000,
            'categories': ['t-shirts'],
            'option_types': [
                {'name': 'Color', 'values': ['White', 'Black', 'Navy']},
                {'name': 'Size', 'values': ['S', 'M', 'L', 'XL']},
            ],
            'default_stock': 25,
        },
        {
            'name': 'Slim Fit Jeans',
            'base_price': 350000,
            'categories': ['jeans'],
            'option_types': [{'name': 'Waist', 'values': ['28', '30', '32', '34']}],
            'default_stock': 10,
        },
    ],
    'Tech Hub': [
        {
            'name': 'Smartwatch Pro',
            'base_price': 2500000,
            'categories': ['watches', 'smart', 'electronics'],
            'option_types': [{'name': 'Strap', 'values': ['Silicone', 'Leather']}],
            'variants': [
                {'options': {'Strap': 'Silicone'}, 'stock': 15},
                {'options': {'Strap': 'Leather'}, 'stock': 5, 'price_delta': 300000},
            ],
        },
    ],
}


class Command(BaseCommand):
    help = 'Load a demo multi-store catalog'

    def add_arguments(self, parser):
        parser.add_argument('--flush', action='store_true', help='Delete the existing catalog first')

    @transaction.atomic
    def handle(self, *args, **options):
        if options['flush']:
            Discount.objects.all().delete()
            Product.objects.all().delete()
            Store.objects.all().delete()
            Category.objects.all().delete()
            self.stdout.write(self.style.WARNING('Existing catalog removed'))

        users = {}
        for role in (CustomUser.Role.OWNER, CustomUser.Role.EDITOR, CustomUser.Role.VIEWER):
            email = f"{role.lower()}@example.com"
            user = CustomUser.objects.filter(email=email).first()
            if user is None:
                user = CustomUser.objects.create_user(email=email, password=DEMO_PASSWORD, role=role)
            users[role] = user

        categories = {}
        for slug, name in CATEGORIES:
            categories[slug], _ = Category.objects.get_or_create(slug=slug, defaults={'name': name})

        now = timezone.now()
        created_products = 0
        for store_data in STORES:
            store = Store.objects.filter(name=store_data['name']).first() or CatalogService.create_store(store_data)

            for product_data in PRODUCTS[store.name]:
                if store.products.filter(name=product_data['name']).exists():
                    continue
                data = dict(product_data, categories=[categories[slug].pk for slug in product_data['categories']])
                product = CatalogService.create_product(store, data)
                created_products += 1
                self.stdout.write(self.style.SUCCESS(f'✓ {store.name}: {product.name} ({product.variants.count()} variants)'))

        fashion = Store.objects.get(name='Fashion Store')
        StoreRole.objects.get_or_create(user=users[CustomUser.Role.EDITOR], store=fashion, defaults={'role': CustomUser.Role.EDITOR})

        if not Discount.objects.exists():
            window = {'start_at': now - timedelta(days=1), 'end_at': now + timedelta(days=30)}
            CatalogService.create_discount({
                'scope': Discount.Scope.GLOBAL, 'discount_type': Discount.Type.PERCENT,
                'value': 5, 'priority': 1, 'stackable': True, **window,
            })
            CatalogService.create_discount({
                'scope': Discount.Scope.STORE, 'discount_type': Discount.Type.PERCENT, 'store': fashion,
                'value': 10, 'priority': 5, 'stackable': True, **window,
            })
            watch = Product.objects.filter(name='Smartwatch Pro').first()
            if watch is not None:
                CatalogService.create_discount({
                    'scope': Discount.Scope.PRODUCT, 'discount_type': Discount.Type.FIXED, 'product': watch,
                    'value': 250000, 'priority': 10, 'stackable': False, **window,
                })

        self.stdout.write(self.style.SUCCESS(f'\n✓ Done! Created {created_products} product(s)'))
