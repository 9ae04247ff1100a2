"""
Taxonomy app base data models
"""
from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.db import models
from django.utils.translation import gettext_lazy as _

from openblog.lib.fields import hex_id_field, hex_ref_field

from .utils import RESERVED_SLUG_CHARS

log = logging.getLogger(__name__)


class TaxonomyKind(models.TextChoices):
    """
    Namespaces of taxonomy rows. Slugs are unique within a kind, and a parent
    must always be of the same kind as its child.
    """
    CATEGORY = "category", _("Category")
    TAG = "tag", _("Tag")
    LINK_CATEGORY = "link-category", _("Link category")


class TaxonomyStatus(models.TextChoices):
    """
    Visibility of a taxonomy row: everyone, admins only, or nobody.
    """
    PUBLISHED = "published", _("Published")
    PRIVATE = "private", _("Private")
    TRASHED = "trashed", _("Trashed")


class Taxonomy(models.Model):
    """
    A single category, tag or link category.

    Categories and link categories form a forest through ``parent_id``. We
    deliberately don't use a ForeignKey for the parent: code reading the
    taxonomy table usually works from a snapshot filtered by status, and a
    row whose parent was filtered out must still be usable (it is treated as
    a root), so the reference is allowed to dangle. The validity of the
    parent is checked in ``clean()`` instead.

    ``content_count`` is a denormalized count of the TaxonomyRelationship
    rows that reference this taxonomy. Never write it directly; use the
    ledger API, and ``recompute_counts()`` to repair any drift.
    """

    id = hex_id_field()
    kind = models.CharField(
        max_length=20,
        choices=TaxonomyKind.choices,
        default=TaxonomyKind.CATEGORY,
        help_text=_("Namespace of this taxonomy: category, tag or link category."),
    )
    name = models.CharField(
        max_length=200,
        help_text=_("User-facing label of this taxonomy."),
    )
    slug = models.CharField(
        max_length=200,
        help_text=_("URL-safe name, unique among taxonomies of the same kind."),
    )
    description = models.TextField(
        blank=True,
        default="",
        help_text=_("Shown as a tooltip wherever this taxonomy is linked to."),
    )
    parent_id = hex_ref_field(
        help_text=_("ID of the parent taxonomy of the same kind. Empty for root taxonomies and for tags."),
    )
    order = models.PositiveIntegerField(
        default=0,
        help_text=_("Sort key among siblings, ascending."),
    )
    status = models.CharField(
        max_length=20,
        choices=TaxonomyStatus.choices,
        default=TaxonomyStatus.PUBLISHED,
        db_index=True,
    )
    content_count = models.PositiveBigIntegerField(
        default=0,
        editable=False,
        help_text=_("Denormalized count of content objects related to this taxonomy."),
    )
    created = models.DateTimeField(auto_now_add=True)
    modified = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "Taxonomies"
        indexes = [
            models.Index(fields=["kind", "status"], name="obl_taxonomy_kind_status_idx"),
            models.Index(fields=["kind", "parent_id"], name="obl_taxonomy_kind_parent_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["kind", "slug"], name="obl_taxonomy_unique_kind_slug"),
        ]

    def __repr__(self):
        """
        Developer-facing representation of a Taxonomy.
        """
        return str(self)

    def __str__(self):
        """
        User-facing string representation of a Taxonomy.
        """
        return f"<{self.__class__.__name__}> ({self.id}) {self.kind}:{self.slug}"

    @property
    def is_root(self) -> bool:
        return not self.parent_id

    def clean(self):
        """
        Validate this taxonomy before saving.

        Only checks the row itself and its direct parent. Checking that the
        new parent is not one of our own descendants needs the whole tree,
        and is done by api.save_taxonomy().
        """
        super().clean()
        self.name = self.name.strip()
        self.slug = self.slug.strip()
        self.parent_id = (self.parent_id or "").strip()

        if not self.name:
            raise ValidationError({"name": _("Name cannot be empty.")})
        if not self.slug:
            raise ValidationError({"slug": _("Slug cannot be empty.")})
        for reserved_char in RESERVED_SLUG_CHARS:
            if reserved_char in self.slug:
                raise ValidationError({"slug": _("Slugs cannot contain a '%(char)s' character.") % {
                    "char": reserved_char,
                }})

        duplicates = Taxonomy.objects.filter(kind=self.kind, slug=self.slug).exclude(pk=self.pk)
        if duplicates.exists():
            raise ValidationError({"slug": _("A %(kind)s with the slug '%(slug)s' already exists.") % {
                "kind": self.kind,
                "slug": self.slug,
            }})

        if not self.parent_id:
            return
        if self.kind == TaxonomyKind.TAG:
            raise ValidationError({"parent_id": _("Tags cannot have a parent.")})
        if self.parent_id == self.pk:
            raise ValidationError({"parent_id": _("A taxonomy cannot be its own parent.")})
        parent = Taxonomy.objects.filter(pk=self.parent_id).only("kind").first()
        if parent is None:
            raise ValidationError({"parent_id": _("Parent taxonomy %(id)s does not exist.") % {
                "id": self.parent_id,
            }})
        if parent.kind != self.kind:
            raise ValidationError({"parent_id": _("Parent taxonomy must be a %(kind)s.") % {"kind": self.kind}})


class TaxonomyRelationship(models.Model):
    """
    Links a content object (a post or a link) to a taxonomy.

    The content object is identified by its hex id only: content lives in
    another app, which must add and remove these rows through the ledger API
    (never directly) so that Taxonomy.content_count stays consistent.
    """

    id = models.BigAutoField(primary_key=True)
    object_id = models.CharField(
        max_length=16,
        db_index=True,
        editable=False,
        help_text=_("ID of the post or link being categorized"),
    )
    taxonomy = models.ForeignKey(
        Taxonomy,
        on_delete=models.CASCADE,
        related_name="relationships",
    )
    order = models.PositiveIntegerField(
        default=0,
        help_text=_("Position of this taxonomy among those of the same object."),
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["object_id", "taxonomy"], name="obl_taxonomy_unique_object_taxonomy"),
        ]

    def __repr__(self):
        return str(self)

    def __str__(self):
        return f"<{self.__class__.__name__}> {self.object_id} -> {self.taxonomy_id}"
