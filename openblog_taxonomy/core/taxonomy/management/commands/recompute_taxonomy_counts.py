"""
Django management command to rebuild the denormalized content counts of
taxonomies from the relationship ledger.

Meant to be run periodically (e.g. from cron) to repair any drift:

    ./manage.py recompute_taxonomy_counts --kind tag
"""
import logging

from django.core.management import CommandError
from django.core.management.base import BaseCommand
from django.db import DatabaseError

from openblog_taxonomy.core.taxonomy import api
from openblog_taxonomy.core.taxonomy.models import TaxonomyKind

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """
    Django management command to recompute Taxonomy.content_count.
    """
    help = 'Recompute the content count of every taxonomy from the relationship ledger.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--kind',
            type=str,
            choices=TaxonomyKind.values,
            help='Only recompute the counts of taxonomies of this kind.',
            default=None
        )

    def handle(self, *args, **options):
        kind = options['kind']
        try:
            updated = api.recompute_counts(kind=kind)
        except DatabaseError as e:
            logger.exception("Failed to recompute taxonomy counts (kind: %s)", kind or "all")
            raise CommandError(f"Failed to recompute taxonomy counts: {e}") from e
        self.stdout.write(self.style.SUCCESS(f'Recomputed the content counts of {updated} taxonomies'))
