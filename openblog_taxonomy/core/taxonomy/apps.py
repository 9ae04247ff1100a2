"""
taxonomy Django application initialization.
"""

from django.apps import AppConfig


class TaxonomyConfig(AppConfig):
    """
    Configuration for the taxonomy Django application.
    """

    name = "openblog_taxonomy.core.taxonomy"
    verbose_name = "Taxonomy"
    default_auto_field = "django.db.models.BigAutoField"
    label = "obl_taxonomy"
