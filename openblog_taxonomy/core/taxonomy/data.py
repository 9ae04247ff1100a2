"""
Data models used by openblog-taxonomy

These are plain in-memory values. The tree, path and subtree helpers in
tree.py work on snapshots made of these, never on Django model instances, so
that they can't accidentally trigger database queries mid-traversal.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Union

from .models import Taxonomy, TaxonomyStatus

# Values accepted wherever a "status filter" is expected, see normalize_statuses()
StatusFilter = Union[None, str, TaxonomyStatus, Iterable[Union[str, TaxonomyStatus]]]

ALL_STATUSES: frozenset[TaxonomyStatus] = frozenset(TaxonomyStatus)
VISIBLE_STATUSES: frozenset[TaxonomyStatus] = frozenset([TaxonomyStatus.PUBLISHED, TaxonomyStatus.PRIVATE])


@dataclass
class TaxonomyNode:
    """
    A taxonomy row, as found in a snapshot of the taxonomy table.

    Once a snapshot is assembled into a tree (see tree.build_tree()),
    ``children`` holds the child nodes, sorted by (order, name), and
    ``level`` the depth of the node.
    """
    id: str
    kind: str
    name: str
    slug: str
    description: str = ""
    parent_id: str = ""
    order: int = 0
    status: str = TaxonomyStatus.PUBLISHED
    content_count: int = 0
    # Depth in the assembled tree, roots being 1. Zero until build_tree() sets it.
    level: int = field(default=0, compare=False)
    children: list[TaxonomyNode] = field(default_factory=list, repr=False, compare=False)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @classmethod
    def from_model(cls, taxonomy: Taxonomy) -> TaxonomyNode:
        return cls(
            id=taxonomy.id,
            kind=taxonomy.kind,
            name=taxonomy.name,
            slug=taxonomy.slug,
            description=taxonomy.description,
            parent_id=taxonomy.parent_id,
            order=taxonomy.order,
            status=taxonomy.status,
            content_count=taxonomy.content_count,
        )


@dataclass(frozen=True)
class Breadcrumb:
    """
    One step of the path from a root taxonomy down to a given taxonomy.
    Only the last crumb of a path (the taxonomy itself) is the header.
    """
    label: str
    tooltip: str
    slug: str
    url: str
    is_header: bool = False


@dataclass(frozen=True)
class TaxonomyPage:
    """
    One page of a taxonomy listing.
    """
    taxonomies: list[Taxonomy]
    page: int
    total: int


def normalize_statuses(statuses: StatusFilter) -> frozenset[TaxonomyStatus]:
    """
    Convert any of the accepted shapes of "status filter" into a set of
    TaxonomyStatus.

    * None, or an empty collection: no filtering, i.e. all statuses
    * a single status (a TaxonomyStatus or its string value)
    * any iterable of statuses

    Raises ValueError for unknown status values.
    """
    if statuses is None:
        return ALL_STATUSES
    if isinstance(statuses, str):
        statuses = [statuses]
    try:
        result = frozenset(TaxonomyStatus(status) for status in statuses)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid taxonomy status filter: {statuses!r}") from e
    return result or ALL_STATUSES
