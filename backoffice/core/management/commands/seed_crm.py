"""
Management command to create the default CRM directions and notification profile
"""
from django.core.management.base import BaseCommand
from django.db import transaction
from backoffice.core.cache_signals import suspend_cache_signals
from backoffice.core.cache_utils import invalidate_directions_cache
from backoffice.directions.models import CrmDirection
from backoffice.notifications.models import NotificationSettings


class Command(BaseCommand):
    help = "Creates the default CRM directions and the default notification settings profile"

    DIRECTIONS = [
        ('doors', 'Doors'),
        ('windows', 'Windows'),
        ('furniture', 'Furniture'),
    ]

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be created without writing anything',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']

        self.stdout.write(self.style.SUCCESS("=" * 60))
        self.stdout.write(self.style.SUCCESS("SEEDING CRM DEFAULTS"))
        self.stdout.write(self.style.SUCCESS("=" * 60))

        created_count = 0
        skipped_count = 0

        # Invalidate once at the end instead of on every save
        with suspend_cache_signals(), transaction.atomic():
            for sort_order, (slug, name) in enumerate(self.DIRECTIONS):
                if CrmDirection.objects.filter(slug=slug).exists():
                    self.stdout.write(f"  Skipped direction: {name} (already exists)")
                    skipped_count += 1
                    continue
                if not dry_run:
                    CrmDirection.objects.create(slug=slug, name=name, sort_order=sort_order)
                self.stdout.write(self.style.SUCCESS(f"  Created direction: {name}"))
                created_count += 1

            if NotificationSettings.objects.filter(role__isnull=True).exists():
                self.stdout.write("  Skipped default notification profile (already exists)")
            elif not dry_run:
                NotificationSettings.objects.create(role=None)
                self.stdout.write(self.style.SUCCESS("  Created default notification profile"))

        if created_count and not dry_run:
            invalidate_directions_cache()

        self.stdout.write(self.style.SUCCESS(
            f"Done: {created_count} directions created, {skipped_count} skipped"
            + (" (dry run)" if dry_run else "")
        ))
