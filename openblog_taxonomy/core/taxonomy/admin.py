"""
Taxonomy app admin
"""
from __future__ import annotations

from django.contrib import admin

from openblog.lib.admin_utils import ReadOnlyModelAdmin

from .models import Taxonomy, TaxonomyRelationship


@admin.register(Taxonomy)
class TaxonomyAdmin(admin.ModelAdmin):
    """
    Admin definition for Taxonomy model
    """
    search_fields = ["name", "slug", "id"]
    list_display = ["__str__", "name", "kind", "status", "parent_id", "order", "content_count"]
    list_filter = ["kind", "status"]
    readonly_fields = ["id", "kind", "status", "parent_id", "content_count", "created", "modified"]

    def has_add_permission(self, request):
        """
        Don't create taxonomies using the django admin. Use the API or UI,
        which validate the parent and cascade status changes.
        """
        return False

    def has_delete_permission(self, request, obj=None):
        """
        Taxonomies are trashed with api.remove_taxonomies(), never deleted.
        """
        return False


@admin.register(TaxonomyRelationship)
class TaxonomyRelationshipAdmin(ReadOnlyModelAdmin):
    """
    Read-only admin for the relationship ledger
    """
    list_display = ["object_id", "taxonomy", "order"]
    search_fields = ["object_id", "taxonomy__slug"]
    list_select_related = ["taxonomy"]
