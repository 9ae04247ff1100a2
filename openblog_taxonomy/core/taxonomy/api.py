"""
Taxonomy API

Anyone using the openblog_taxonomy app should use these APIs instead of
creating or modifying the models directly, since there might be other related
model changes that you may not know about: status changes cascade through the
category tree, and every relationship change must update the denormalized
content counters.

No permissions are enforced by these methods -- these must be enforced in the
views.

Read APIs work from a snapshot of the taxonomy table taken once (see
get_taxonomy_snapshot()). If you need several of them while handling a single
request, fetch the snapshot or tree once and pass it in with `nodes=` or
`tree=` rather than letting each call fetch its own.

Write APIs each run in a single transaction. When called from inside the
caller's own `transaction.atomic()` block (e.g. the one saving a post) they
join it, so either everything commits or nothing does.
"""
from __future__ import annotations

import logging
from typing import Iterable

from django.core.exceptions import ValidationError
from django.core.paginator import Paginator
from django.db import DatabaseError, models, transaction
from django.db.models import Q, QuerySet
from django.utils import timezone
from django.utils.translation import gettext as _

from . import ledger
from .cascade import apply_cascade, plan_cascade
from .conf import get_setting
from .data import (
    ALL_STATUSES,
    VISIBLE_STATUSES,
    Breadcrumb,
    StatusFilter,
    TaxonomyNode,
    TaxonomyPage,
    normalize_statuses,
)
from .exceptions import HasRelatedContent
from .models import Taxonomy, TaxonomyKind, TaxonomyRelationship, TaxonomyStatus
from .tree import build_tree, flatten_tree, resolve_path, select_descendants

log = logging.getLogger(__name__)

# Export these as part of the API
TaxonomyDoesNotExist = Taxonomy.DoesNotExist
recompute_counts = ledger.recompute_counts


def get_taxonomy(taxonomy_id: str) -> Taxonomy | None:
    """
    Returns the Taxonomy with the given ID, or None.
    """
    return Taxonomy.objects.filter(pk=taxonomy_id).first()


def get_taxonomy_by_slug(kind: str, slug: str) -> Taxonomy | None:
    """
    Returns the Taxonomy of the given kind with the given slug, or None.
    """
    return Taxonomy.objects.filter(kind=kind, slug=slug).first()


def _filter_statuses(queryset: QuerySet, statuses: StatusFilter, field: str = "status") -> QuerySet:
    statuses = normalize_statuses(statuses)
    if statuses == ALL_STATUSES:
        return queryset
    return queryset.filter(**{f"{field}__in": statuses})


def get_taxonomy_snapshot(kind: str, statuses: StatusFilter = None) -> list[TaxonomyNode]:
    """
    Returns all the taxonomies of the given kind as a flat list of
    TaxonomyNode, optionally limited to the given statuses.

    e.g. admins see `[PUBLISHED, PRIVATE]`, visitors see `PUBLISHED`. Pass
    None (the default) to include every status.
    """
    queryset = _filter_statuses(Taxonomy.objects.filter(kind=kind), statuses)
    return [
        TaxonomyNode.from_model(taxonomy)
        for taxonomy in queryset.order_by("order", "name", "id")
    ]


def get_tree(kind: str, statuses: StatusFilter = None) -> list[TaxonomyNode]:
    """
    Returns the root nodes of the tree of taxonomies of the given kind.

    Taxonomies whose parent is filtered out by `statuses` are returned as
    roots; see tree.build_tree().
    """
    return build_tree(get_taxonomy_snapshot(kind, statuses))


def get_tree_list(kind: str, statuses: StatusFilter = None) -> list[TaxonomyNode]:
    """
    Returns the taxonomies of the given kind as a flat list in tree order,
    each with its ``level`` (roots being 1), e.g. for a parent picker.
    """
    return flatten_tree(get_tree(kind, statuses))


def get_path(
    kind: str = TaxonomyKind.CATEGORY,
    statuses: StatusFilter = None,
    slug: str | None = None,
    taxonomy_id: str | None = None,
    nodes: Iterable[TaxonomyNode] | None = None,
    url_prefix: str | None = None,
) -> list[Breadcrumb]:
    """
    Returns the breadcrumbs from the root down to the taxonomy with the given
    slug or ID.

    Pass `nodes` (a snapshot or a tree) to avoid fetching a new snapshot.
    """
    if nodes is None:
        nodes = get_taxonomy_snapshot(kind, statuses)
    if url_prefix is None and kind == TaxonomyKind.TAG:
        url_prefix = get_setting("TAG_URL_PREFIX")
    return resolve_path(nodes, slug=slug, taxonomy_id=taxonomy_id, url_prefix=url_prefix)


def get_subtree_ids(
    kind: str = TaxonomyKind.CATEGORY,
    statuses: StatusFilter = None,
    taxonomy_id: str | None = None,
    taxonomy_ids: Iterable[str] | None = None,
    slug: str | None = None,
    tree: Iterable[TaxonomyNode] | None = None,
    include_self: bool = True,
) -> list[str]:
    """
    Returns the IDs of the selected taxonomies and all their descendants,
    e.g. to list the posts of a category and of all its subcategories.

    Raises ValueError if no taxonomy is selected.
    """
    if not taxonomy_id and not taxonomy_ids and not slug:
        raise ValueError(_("A taxonomy ID or slug is required."))
    if tree is None:
        tree = get_tree(kind, statuses)
    return select_descendants(
        tree,
        taxonomy_id=taxonomy_id,
        taxonomy_ids=taxonomy_ids,
        slug=slug,
        include_self=include_self,
    )


def get_taxonomies(
    kind: str,
    statuses: StatusFilter = None,
    keyword: str | None = None,
    page: int = 1,
    page_size: int | None = None,
) -> TaxonomyPage:
    """
    Returns one page of the taxonomies of the given kind, sorted by `order`
    and then newest first.

    `keyword` matches the name, slug or description. Out of range page
    numbers are clamped to the first or last page. Pass `page_size=0` to get
    all the matching taxonomies at once.
    """
    queryset = _filter_statuses(Taxonomy.objects.filter(kind=kind), statuses)
    if keyword:
        queryset = queryset.filter(
            Q(name__icontains=keyword) |
            Q(slug__icontains=keyword) |
            Q(description__icontains=keyword)
        )
    queryset = queryset.order_by("order", "-created", "id")

    if page_size is None:
        page_size = get_setting("PAGE_SIZE")
    if page_size == 0:
        taxonomies = list(queryset)
        return TaxonomyPage(taxonomies=taxonomies, page=1, total=len(taxonomies))

    paginator = Paginator(queryset, page_size)
    # get_page() clamps pages past the end, but would also return the last
    # page for numbers below 1
    current_page = paginator.get_page(max(page, 1))
    return TaxonomyPage(
        taxonomies=list(current_page.object_list),
        page=current_page.number,
        total=paginator.count,
    )


def get_taxonomies_for_objects(
    object_ids: Iterable[str],
    statuses: StatusFilter = None,
    kinds: Iterable[str] | None = None,
) -> dict[str, list[Taxonomy]]:
    """
    Returns the taxonomies related to each of the given content objects, as
    a dict of object ID to list of taxonomies (sorted by `order`).

    By default returns categories and tags, which is what's displayed with a
    post. Objects without any matching taxonomy are not in the result.
    """
    kinds = list(kinds) if kinds else [TaxonomyKind.CATEGORY, TaxonomyKind.TAG]
    relationships = _filter_statuses(
        TaxonomyRelationship.objects.filter(
            object_id__in=list(object_ids),
            taxonomy__kind__in=kinds,
        ),
        statuses,
        field="taxonomy__status",
    ).select_related("taxonomy").order_by("object_id", "taxonomy__order", "order")

    result: dict[str, list[Taxonomy]] = {}
    for relationship in relationships:
        result.setdefault(relationship.object_id, []).append(relationship.taxonomy)
    return result


def search_tags(keyword: str, limit: int | None = None) -> list[Taxonomy]:
    """
    Returns the tags whose name contains `keyword`, e.g. to power an
    autocomplete field when tagging a post. Trashed tags are excluded.
    """
    if limit is None:
        limit = get_setting("TAG_SEARCH_LIMIT")
    return list(
        Taxonomy.objects
        .filter(kind=TaxonomyKind.TAG, name__icontains=keyword)
        .exclude(status=TaxonomyStatus.TRASHED)
        .order_by("order", "-created", "id")[:limit]
    )


def is_slug_taken(kind: str, slug: str, exclude_id: str | None = None) -> bool:
    """
    Whether a taxonomy of the given kind already uses the given slug.

    Pass the ID of the taxonomy being edited as `exclude_id`.
    """
    queryset = Taxonomy.objects.filter(kind=kind, slug=slug)
    if exclude_id:
        queryset = queryset.exclude(pk=exclude_id)
    return queryset.exists()


def count_taxonomies_by_kind() -> dict[str, int]:
    """
    Returns how many categories and tags there are, for the dashboard.
    Trashed taxonomies are not counted.
    """
    rows = (
        Taxonomy.objects
        .filter(kind__in=[TaxonomyKind.CATEGORY, TaxonomyKind.TAG], status__in=VISIBLE_STATUSES)
        .values("kind")
        .annotate(count=models.Count("id"))
        .order_by("kind")
    )
    return {row["kind"]: row["count"] for row in rows}


def save_taxonomy(
    *,
    kind: str,
    name: str,
    slug: str,
    description: str = "",
    parent_id: str = "",
    order: int = 0,
    status: str = TaxonomyStatus.PUBLISHED,
    taxonomy_id: str | None = None,
) -> Taxonomy:
    """
    Creates (if no taxonomy_id is given) or updates a taxonomy, and returns it.

    For categories, the new status cascades to ancestors or descendants; see
    the cascade module for the rules.

    Raises ValidationError if the data is invalid (including a parent that is
    one of the taxonomy's own descendants), and Taxonomy.DoesNotExist if
    updating a taxonomy that doesn't exist. Nothing is written in either
    case.
    """
    with transaction.atomic():
        if taxonomy_id:
            taxonomy = Taxonomy.objects.select_for_update().get(pk=taxonomy_id)
            if taxonomy.kind != kind:
                raise ValidationError({"kind": _("The kind of a taxonomy cannot be changed.")})
        else:
            taxonomy = Taxonomy(kind=kind)

        taxonomy.name = name
        taxonomy.slug = slug
        taxonomy.description = description or ""
        taxonomy.parent_id = parent_id or ""
        taxonomy.order = order
        taxonomy.status = status
        taxonomy.full_clean()

        if taxonomy.parent_id and taxonomy_id:
            # The parent must not be below the taxonomy itself, or we'd create a cycle
            descendant_ids = select_descendants(get_taxonomy_snapshot(kind), taxonomy_id=taxonomy.id)
            if taxonomy.parent_id in descendant_ids:
                raise ValidationError({"parent_id": _("A taxonomy cannot be moved below one of its descendants.")})

        try:
            taxonomy.save()
            if kind == TaxonomyKind.CATEGORY:
                plan = plan_cascade(get_taxonomy_snapshot(kind), taxonomy.id, taxonomy.status)
                apply_cascade(plan)
        except DatabaseError:
            log.exception(f"Unable to save taxonomy {taxonomy}")
            raise

    log.info(f"Saved taxonomy {taxonomy} with status {taxonomy.status}")
    return taxonomy


def remove_taxonomies(kind: str, taxonomy_ids: Iterable[str]) -> list[str]:
    """
    Trash the given taxonomies. Returns the IDs of the taxonomies trashed.

    For categories and link categories, all the descendants are trashed too;
    but if any content is still related to the taxonomies or to their
    descendants, HasRelatedContent is raised and nothing is changed. The
    content has to be moved to other taxonomies first.

    Tags are just labels, so removing a tag detaches it from all content
    instead.

    Raises ValueError if any of the IDs isn't a taxonomy of the given kind.
    """
    taxonomy_ids = list(dict.fromkeys(taxonomy_ids))
    if not taxonomy_ids:
        raise ValueError(_("No taxonomy to remove."))

    with transaction.atomic():
        if Taxonomy.objects.filter(kind=kind, pk__in=taxonomy_ids).count() != len(taxonomy_ids):
            raise ValueError(_("Invalid taxonomy ID provided or taxonomy is not a {kind}.").format(kind=kind))

        now = timezone.now()
        if kind == TaxonomyKind.TAG:
            TaxonomyRelationship.objects.filter(taxonomy_id__in=taxonomy_ids).delete()
            Taxonomy.objects.filter(pk__in=taxonomy_ids).update(
                status=TaxonomyStatus.TRASHED, content_count=0, modified=now,
            )
            log.info(f"Removed tags {taxonomy_ids}")
            return taxonomy_ids

        # Walk the whole tree, whatever the status of each node, so that we
        # don't miss the descendants of an already trashed taxonomy.
        subtree_ids = select_descendants(get_taxonomy_snapshot(kind), taxonomy_ids=taxonomy_ids)
        related_count = ledger.count_relationships(subtree_ids)
        if related_count:
            log.warning(
                f"Refusing to remove {kind} taxonomies {taxonomy_ids}: "
                f"{related_count} content object(s) are related to their subtree"
            )
            raise HasRelatedContent(kind, subtree_ids, related_count)

        Taxonomy.objects.filter(pk__in=subtree_ids).exclude(status=TaxonomyStatus.TRASHED).update(
            status=TaxonomyStatus.TRASHED, modified=now,
        )
    log.info(f"Removed {kind} taxonomies {subtree_ids}")
    return subtree_ids


def attach_content(object_id: str, taxonomy_ids: Iterable[str]) -> list[str]:
    """
    Relate a content object to some more taxonomies. Returns the IDs newly
    attached.
    """
    return ledger.attach(object_id, taxonomy_ids)


def replace_content_taxonomies(object_id: str, taxonomy_ids: Iterable[str]) -> tuple[list[str], list[str]]:
    """
    Make a content object related to exactly the given taxonomies. Returns
    (added IDs, removed IDs).
    """
    return ledger.replace_all(object_id, taxonomy_ids)


def detach_content(object_id: str) -> list[str]:
    """
    Remove all the relationships of a content object, e.g. when it is
    deleted. Returns the IDs detached.
    """
    return ledger.detach(object_id)


def get_content_taxonomy_ids(object_id: str) -> list[str]:
    """
    Returns the IDs of all the taxonomies related to a content object.
    """
    return ledger.get_object_taxonomy_ids(object_id)


def set_link_category(object_id: str, taxonomy_id: str) -> None:
    """
    Links belong to exactly one link category; this replaces the current one.

    Raises Taxonomy.DoesNotExist if there is no link category with that ID.
    """
    if not Taxonomy.objects.filter(pk=taxonomy_id, kind=TaxonomyKind.LINK_CATEGORY).exists():
        raise Taxonomy.DoesNotExist(f"Link category {taxonomy_id} does not exist")
    ledger.replace_all(object_id, [taxonomy_id])


def resolve_tags(names: Iterable[str]) -> list[str]:
    """
    Returns the IDs of the tags with the given names, in the same order.

    Tags are looked up by slug, which for tags is the name itself. Missing
    tags are created; trashed tags are published again. This doesn't relate
    the tags to anything: pass the IDs on to replace_content_taxonomies().
    """
    tag_ids = []
    with transaction.atomic():
        for name in dict.fromkeys(name.strip() for name in names):
            if not name:
                continue
            tag = Taxonomy.objects.filter(kind=TaxonomyKind.TAG, slug=name).first()
            if tag is None:
                tag = save_taxonomy(kind=TaxonomyKind.TAG, name=name, slug=name, description=name)
            elif tag.status == TaxonomyStatus.TRASHED:
                tag.status = TaxonomyStatus.PUBLISHED
                tag.save(update_fields=["status", "modified"])
            tag_ids.append(tag.id)
    return tag_ids
