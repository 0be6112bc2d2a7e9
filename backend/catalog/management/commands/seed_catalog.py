from django.core.management.base import BaseCommand
from django.db import transaction
from faker import Faker

from catalog.models import Product, Size

SIZE_CHART = [
    ('XS', 'Extra small'),
    ('S', 'Small'),
    ('M', 'Medium'),
    ('L', 'Large'),
    ('XL', 'Extra large'),
]


class Command(BaseCommand):
    help = "Seed the database with sample products and sizes.\n\n" \
           "• Each product gets a random run of consecutive sizes from the size chart.\n" \
           "• Use --clear to remove existing catalog data first."

    def add_arguments(self, parser):
        parser.add_argument(
            '--count',
            type=int,
            default=10,
            help='Number of products to create (default: 10)',
        )
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete existing products and sizes before seeding',
        )
        parser.add_argument(
            '--seed',
            type=int,
            default=None,
            help='Random seed for reproducible data',
        )

    def handle(self, *args, **options):
        count = options['count']
        fake = Faker()
        if options['seed'] is not None:
            Faker.seed(options['seed'])

        with transaction.atomic():
            if options['clear']:
                deleted, _ = Product.objects.all().delete()
                self.stdout.write(self.style.WARNING(f"Deleted {deleted} catalog rows."))

            self.stdout.write(self.style.NOTICE(f"Seeding {count} products..."))
            sizes_created = 0
            for _ in range(count):
                product = Product.objects.create(
                    name=fake.unique.catch_phrase(),
                    description=fake.paragraph(nb_sentences=2),
                )
                start = fake.random_int(min=0, max=len(SIZE_CHART) - 1)
                end = fake.random_int(min=start + 1, max=len(SIZE_CHART))
                Size.objects.bulk_create([
                    Size(product=product, code=code, text=text, quantity=fake.random_int(min=0, max=50))
                    for code, text in SIZE_CHART[start:end]
                ])
                sizes_created += end - start

        self.stdout.write(self.style.SUCCESS(
            f"Created {count} products with {sizes_created} sizes."
        ))
