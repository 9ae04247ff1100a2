"""
Status cascading for hierarchical categories.

When a category changes status, some of its ancestors or descendants have to
change status too, so that the tree seen by each audience stays walkable:

* published: every private or trashed ancestor is published as well.
  A visitor can't reach a published category through a hidden one.
* private: every published descendant becomes private, and every trashed
  ancestor becomes private (so admins can still reach it).
* trashed: every published or private descendant is trashed as well.

Tags and link categories don't cascade.

Planning is a pure function of a snapshot, so it can be tested without a
database; applying the plan must happen in the same transaction as the
write that triggered it (api.save_taxonomy() takes care of that).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from django.utils import timezone

from .data import TaxonomyNode
from .models import Taxonomy, TaxonomyKind, TaxonomyStatus
from .tree import select_ancestors, select_descendants

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusChange:
    """
    Set `to_status` on those of `ids` which currently have one of `from_statuses`.
    """
    to_status: TaxonomyStatus
    from_statuses: frozenset[TaxonomyStatus]
    ids: tuple[str, ...]


@dataclass(frozen=True)
class CascadePlan:
    """
    The status changes implied by changing one taxonomy's status.
    Doesn't include the change to the taxonomy itself.
    """
    taxonomy_id: str
    new_status: TaxonomyStatus
    changes: tuple[StatusChange, ...] = field(default=())

    @property
    def affected_ids(self) -> set[str]:
        return {taxonomy_id for change in self.changes for taxonomy_id in change.ids}

    def __bool__(self):
        return bool(self.affected_ids)


def _change(
    nodes_by_id: dict[str, TaxonomyNode],
    candidate_ids: Iterable[str],
    from_statuses: Iterable[TaxonomyStatus],
    to_status: TaxonomyStatus,
) -> StatusChange:
    from_statuses = frozenset(from_statuses)
    ids = tuple(
        taxonomy_id for taxonomy_id in candidate_ids
        if nodes_by_id[taxonomy_id].status in from_statuses
    )
    return StatusChange(to_status=to_status, from_statuses=from_statuses, ids=ids)


def plan_cascade(
    nodes: Iterable[TaxonomyNode],
    taxonomy_id: str,
    new_status: TaxonomyStatus | str,
) -> CascadePlan:
    """
    Work out which other taxonomies must change status when `taxonomy_id`
    moves to `new_status`.

    `nodes` must be a snapshot of *all* the taxonomies of the same kind,
    whatever their status, taken after the taxonomy's own row was saved (so
    that a new parent is taken into account). Descendants are found through
    any intermediate node, e.g. trashing a category also trashes the private
    grandchildren below an already-trashed child.
    """
    new_status = TaxonomyStatus(new_status)
    nodes = list(nodes)
    nodes_by_id: dict[str, TaxonomyNode] = {}
    for node in nodes:
        nodes_by_id.setdefault(node.id, node)

    node = nodes_by_id.get(taxonomy_id)
    if node is None or node.kind != TaxonomyKind.CATEGORY:
        return CascadePlan(taxonomy_id=taxonomy_id, new_status=new_status)

    changes: list[StatusChange] = []
    if new_status == TaxonomyStatus.PUBLISHED:
        changes.append(_change(
            nodes_by_id,
            select_ancestors(nodes, taxonomy_id),
            [TaxonomyStatus.PRIVATE, TaxonomyStatus.TRASHED],
            TaxonomyStatus.PUBLISHED,
        ))
    elif new_status == TaxonomyStatus.PRIVATE:
        changes.append(_change(
            nodes_by_id,
            select_descendants(nodes, taxonomy_id=taxonomy_id, include_self=False),
            [TaxonomyStatus.PUBLISHED],
            TaxonomyStatus.PRIVATE,
        ))
        changes.append(_change(
            nodes_by_id,
            select_ancestors(nodes, taxonomy_id),
            [TaxonomyStatus.TRASHED],
            TaxonomyStatus.PRIVATE,
        ))
    else:
        changes.append(_change(
            nodes_by_id,
            select_descendants(nodes, taxonomy_id=taxonomy_id, include_self=False),
            [TaxonomyStatus.PUBLISHED, TaxonomyStatus.PRIVATE],
            TaxonomyStatus.TRASHED,
        ))

    return CascadePlan(
        taxonomy_id=taxonomy_id,
        new_status=new_status,
        changes=tuple(change for change in changes if change.ids),
    )


def apply_cascade(plan: CascadePlan) -> int:
    """
    Write the status changes of the given plan. Returns the number of rows
    updated.

    Must be called inside the transaction that saved the taxonomy the plan
    was made for. Each update is re-filtered by the expected current status,
    so a row that changed since the snapshot was taken is left alone.
    """
    updated = 0
    now = timezone.now()
    for change in plan.changes:
        updated += Taxonomy.objects.filter(
            pk__in=change.ids,
            status__in=change.from_statuses,
        ).update(status=change.to_status, modified=now)
    if updated:
        log.info(
            "Status of taxonomy %s set to %s; cascaded to %d other taxonomies",
            plan.taxonomy_id, plan.new_status, updated,
        )
    return updated
