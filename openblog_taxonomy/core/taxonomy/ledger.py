"""
The relationship ledger: which content objects (posts, links) are related to
which taxonomies.

Every change to the TaxonomyRelationship table goes through this module, so
that Taxonomy.content_count can be kept up to date with cheap increments and
decrements instead of COUNT queries. All the functions here open an atomic
block; when called from the content app's own `transaction.atomic()` block
they join it, so the content row and its relationships commit (or roll back)
together.

Counters may still drift (e.g. after a manual data fix), so
recompute_counts() rebuilds them from the ledger. Nothing correctness
critical should rely on content_count: count ledger rows instead.
"""
from __future__ import annotations

import logging
from typing import Iterable

from django.db import models, transaction
from django.db.models import F
from django.db.models.functions import Coalesce

from .models import Taxonomy, TaxonomyRelationship, TaxonomyStatus

log = logging.getLogger(__name__)


def _unique(taxonomy_ids: Iterable[str]) -> list[str]:
    """
    Remove duplicates, preserving order. Blank ids are dropped.
    """
    return [taxonomy_id for taxonomy_id in dict.fromkeys(taxonomy_ids) if taxonomy_id]


def _check_taxonomies_exist(taxonomy_ids: list[str]) -> None:
    """
    Raises Taxonomy.DoesNotExist unless all the given IDs exist.
    """
    if not taxonomy_ids:
        return
    found = set(Taxonomy.objects.filter(pk__in=taxonomy_ids).values_list("pk", flat=True))
    missing = [taxonomy_id for taxonomy_id in taxonomy_ids if taxonomy_id not in found]
    if missing:
        raise Taxonomy.DoesNotExist(f"Taxonomies do not exist: {', '.join(missing)}")


def _increment_counts(taxonomy_ids: Iterable[str]) -> None:
    taxonomy_ids = list(taxonomy_ids)
    if taxonomy_ids:
        Taxonomy.objects.filter(pk__in=taxonomy_ids).update(content_count=F("content_count") + 1)


def _decrement_counts(taxonomy_ids: Iterable[str]) -> None:
    # The content_count__gt filter floors the counter at zero
    taxonomy_ids = list(taxonomy_ids)
    if taxonomy_ids:
        Taxonomy.objects.filter(pk__in=taxonomy_ids, content_count__gt=0).update(
            content_count=F("content_count") - 1
        )


def get_object_taxonomy_ids(object_id: str) -> list[str]:
    """
    Returns the IDs of the taxonomies related to the given object, in order.
    """
    return list(
        TaxonomyRelationship.objects
        .filter(object_id=object_id)
        .order_by("order", "id")
        .values_list("taxonomy_id", flat=True)
    )


def attach(object_id: str, taxonomy_ids: Iterable[str]) -> list[str]:
    """
    Relate the given object to the given taxonomies, in addition to the ones
    it is already related to.

    Returns the IDs that were newly attached. Taxonomies the object was
    already related to are left alone (and not counted twice).

    Raises Taxonomy.DoesNotExist if any of the taxonomies doesn't exist, in
    which case nothing is written.
    """
    taxonomy_ids = _unique(taxonomy_ids)
    with transaction.atomic():
        _check_taxonomies_exist(taxonomy_ids)
        current = get_object_taxonomy_ids(object_id)
        to_add = [taxonomy_id for taxonomy_id in taxonomy_ids if taxonomy_id not in current]
        TaxonomyRelationship.objects.bulk_create([
            TaxonomyRelationship(object_id=object_id, taxonomy_id=taxonomy_id, order=len(current) + index)
            for index, taxonomy_id in enumerate(to_add)
        ])
        _increment_counts(to_add)
    return to_add


def detach(object_id: str, taxonomy_ids: Iterable[str] | None = None) -> list[str]:
    """
    Remove the relationships between the given object and the given
    taxonomies; or all of the object's relationships if `taxonomy_ids` is
    None (e.g. when the object is deleted).

    Returns the IDs of the taxonomies that were detached.
    """
    with transaction.atomic():
        relationships = TaxonomyRelationship.objects.filter(object_id=object_id)
        if taxonomy_ids is not None:
            relationships = relationships.filter(taxonomy_id__in=_unique(taxonomy_ids))
        to_remove = list(relationships.values_list("taxonomy_id", flat=True))
        relationships.delete()
        _decrement_counts(to_remove)
    return to_remove


def replace_all(object_id: str, taxonomy_ids: Iterable[str]) -> tuple[list[str], list[str]]:
    """
    Make the given object related to exactly the given taxonomies, e.g. after
    the object was edited.

    Only the difference with the current relationships is written: counters
    of taxonomies that stay related are never touched, so a concurrent
    reader can't observe them going down then up again.

    Returns a tuple of (added IDs, removed IDs).
    """
    taxonomy_ids = _unique(taxonomy_ids)
    with transaction.atomic():
        _check_taxonomies_exist(taxonomy_ids)
        current = {
            relationship.taxonomy_id: relationship
            for relationship in TaxonomyRelationship.objects.filter(object_id=object_id)
        }
        to_add = [taxonomy_id for taxonomy_id in taxonomy_ids if taxonomy_id not in current]
        to_remove = [taxonomy_id for taxonomy_id in current if taxonomy_id not in taxonomy_ids]

        if to_remove:
            TaxonomyRelationship.objects.filter(object_id=object_id, taxonomy_id__in=to_remove).delete()
        new_relationships = []
        for index, taxonomy_id in enumerate(taxonomy_ids):
            relationship = current.get(taxonomy_id)
            if relationship is None:
                new_relationships.append(
                    TaxonomyRelationship(object_id=object_id, taxonomy_id=taxonomy_id, order=index)
                )
            elif relationship.order != index:
                relationship.order = index
                relationship.save(update_fields=["order"])
        TaxonomyRelationship.objects.bulk_create(new_relationships)

        _increment_counts(to_add)
        _decrement_counts(to_remove)
    return to_add, to_remove


def count_relationships(taxonomy_ids: Iterable[str]) -> int:
    """
    How many ledger rows reference any of the given taxonomies.
    """
    taxonomy_ids = _unique(taxonomy_ids)
    if not taxonomy_ids:
        return 0
    return TaxonomyRelationship.objects.filter(taxonomy_id__in=taxonomy_ids).count()


def recompute_counts(kind: str | None = None) -> int:
    """
    Rebuild Taxonomy.content_count from the ledger for all taxonomies that
    aren't trashed (optionally only those of the given kind).

    This only overwrites a derived field in a single UPDATE, so it is
    idempotent and safe to run alongside normal traffic. Returns the number
    of taxonomies updated.
    """
    relationship_count = TaxonomyRelationship.objects.filter(
        taxonomy_id=models.OuterRef("pk"),
    ).order_by().annotate(
        # Func() gives us COUNT() without a GROUP BY - see https://stackoverflow.com/a/69031027
        count=models.Func(F("id"), function="Count", output_field=models.BigIntegerField()),
    ).values("count")

    taxonomies = Taxonomy.objects.exclude(status=TaxonomyStatus.TRASHED)
    if kind:
        taxonomies = taxonomies.filter(kind=kind)
    updated = taxonomies.update(
        content_count=Coalesce(models.Subquery(relationship_count), 0, output_field=models.BigIntegerField()),
    )
    log.info("Recomputed content counts of %d taxonomies (kind: %s)", updated, kind or "all")
    return updated
