"""
Django management command to load demo data for the store catalog.
Creates a demo user, a handful of stores with tags and locations, and reviews.
"""

from django.core.management.base import BaseCommand
from django.db import transaction


DEMO_STORES = [
    {
        'name': 'Wes Dogs',
        'description': 'Hot dogs with every topping you can imagine.',
        'tags': ['Open Late', 'Family Friendly', 'Licensed'],
        'coordinates': (-79.8866, 43.2557),
        'address': '16 King St W, Hamilton, ON',
    },
    {
        'name': 'Green Bean Coffee',
        'description': 'Single origin pour-overs and fresh pastries.',
        'tags': ['Wifi', 'Vegetarian'],
        'coordinates': (-79.8711, 43.2609),
        'address': '102 James St N, Hamilton, ON',
    },
    {
        'name': 'The Noodle House',
        'description': 'Hand-pulled noodles made to order.',
        'tags': ['Family Friendly', 'Vegetarian', 'Wifi'],
        'coordinates': (-79.3832, 43.6532),
        'address': '200 Spadina Ave, Toronto, ON',
    },
    {
        'name': 'Late Night Slice',
        'description': 'Pizza by the slice until 4am.',
        'tags': ['Open Late', 'Licensed'],
        'coordinates': (-79.4000, 43.6500),
        'address': '480 Queen St W, Toronto, ON',
    },
]

DEMO_RATINGS = {
    'Wes Dogs': [5, 4, 5],
    'Green Bean Coffee': [4, 4],
    'The Noodle House': [5, 3],
    'Late Night Slice': [3],
}


class Command(BaseCommand):
    help = 'Load demo data for the store catalog (user, stores, reviews)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing stores and reviews before loading demo data',
        )
        parser.add_argument(
            '--email',
            type=str,
            default='demo@example.com',
            help='Demo user email (default: demo@example.com)',
        )
        parser.add_argument(
            '--password',
            type=str,
            default='Demo1234@',
            help='Demo user password (default: Demo1234@)',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        from users.models import User
        from stores.models import Store
        from stores.services import create_store
        from reviews.models import Review

        email = options['email']
        password = options['password']

        self.stdout.write(self.style.NOTICE('Loading demo data...'))

        if options['clear']:
            Review.objects.all().delete()
            Store.objects.all().delete()
            self.stdout.write(self.style.WARNING('Cleared existing stores and reviews'))

        # =================================================================
        # Create Demo User
        # =================================================================
        demo_user = User.objects.filter(email=email).first()
        if demo_user is None:
            demo_user = User.objects.create_user(email=email, password=password, name='Demo User')
            self.stdout.write(self.style.SUCCESS(f'Created demo user: {email} / {password}'))
        else:
            demo_user.set_password(password)
            demo_user.save()
            self.stdout.write(f'Demo user already exists, password updated: {email}')

        # =================================================================
        # Create Stores and Reviews
        # =================================================================
        for store_data in DEMO_STORES:
            longitude, latitude = store_data['coordinates']
            store = create_store(
                name=store_data['name'],
                description=store_data['description'],
                tags=store_data['tags'],
                longitude=longitude,
                latitude=latitude,
                address=store_data['address'],
                author=demo_user,
            )
            for rating in DEMO_RATINGS.get(store_data['name'], []):
                Review.objects.create(
                    store=store,
                    author=demo_user,
                    rating=rating,
                    text=f'Rated {rating} out of 5.',
                )
            self.stdout.write(self.style.SUCCESS(f'Created store: {store.name} ({store.slug})'))

        self.stdout.write(self.style.SUCCESS('Demo data loaded.'))
