"""
Convenience utilities for the Django Admin.
"""
from django.contrib import admin


class ReadOnlyModelAdmin(admin.ModelAdmin):
    """
    ModelAdmin subclass that removes any editing ability.

    Some of our tables hold derived or denormalized data (e.g. the
    relationship ledger behind Taxonomy.content_count) that must only be
    written through the api.py functions of their app. Editing them in the
    Django Admin would silently break those guarantees, but being able to
    look at them is still handy.
    """

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
