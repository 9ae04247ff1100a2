"""
Tree helpers for hierarchical taxonomies.

Everything in this module is a pure function over a snapshot: a list of
TaxonomyNode values fetched once (see api.get_taxonomy_snapshot()). Nothing
here touches the database, and nothing here mutates its input.

The parent graph is *supposed* to be acyclic, but that is only guaranteed for
rows saved through api.save_taxonomy(); rows fixed up by hand may contain a
cycle. So every walk here keeps track of the ids it has seen and stops when it
sees one again, rather than assuming it will terminate.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Iterator

from .conf import get_setting
from .data import Breadcrumb, TaxonomyNode


def _sort_key(node: TaxonomyNode):
    return (node.order, node.name)


def iter_tree(nodes: Iterable[TaxonomyNode]) -> Iterator[TaxonomyNode]:
    """
    Yield every node of the given forest (or flat snapshot) in pre-order,
    each id at most once.
    """
    seen: set[str] = set()
    stack = list(reversed(list(nodes)))
    while stack:
        node = stack.pop()
        if node.id in seen:
            continue
        seen.add(node.id)
        yield node
        stack.extend(reversed(node.children))


def build_tree(nodes: Iterable[TaxonomyNode]) -> list[TaxonomyNode]:
    """
    Assemble a flat snapshot of taxonomy rows of one kind into a forest.

    Returns the root nodes, whose ``children`` are populated recursively.
    Roots and children are sorted by (order, name). Each node's ``level`` is
    set to its depth, roots being 1.

    A node is a root if it has no parent_id, or if its parent isn't part of
    the snapshot. The latter happens when the snapshot was filtered by status
    (e.g. a published category under a private one, as seen by an anonymous
    visitor); hiding the whole branch would be worse than showing it at the
    top level.

    Nodes caught in a parent cycle can't be reached from any root, nor can
    the nodes hanging below such a cycle. To keep every input node in the
    result, one member of each cycle is detached from its parent and made a
    root; nodes below the cycle keep their parent.
    """
    copies: list[TaxonomyNode] = []
    by_id: dict[str, TaxonomyNode] = {}
    for node in nodes:
        if node.id in by_id:
            continue  # Duplicate id: the first one wins
        copy = replace(node, children=[])
        copies.append(copy)
        by_id[copy.id] = copy

    roots: list[TaxonomyNode] = []
    for node in copies:
        parent = by_id.get(node.parent_id) if node.parent_id else None
        if parent is None or parent is node:
            roots.append(node)
        else:
            parent.children.append(node)

    reached = {node.id for node in iter_tree(roots)}
    if len(reached) < len(copies):
        for node in copies:
            if node.id in reached:
                continue
            # Walk up until an id repeats: that one is on the cycle itself
            walked: set[str] = set()
            member = node
            while member.id not in walked:
                walked.add(member.id)
                member = by_id[member.parent_id]
            by_id[member.parent_id].children.remove(member)
            roots.append(member)
            reached.update(n.id for n in iter_tree([member]))

    for node in copies:
        node.children.sort(key=_sort_key)
    roots.sort(key=_sort_key)
    _set_levels(roots)
    return roots


def _set_levels(roots: list[TaxonomyNode]) -> None:
    stack = [(root, 1) for root in roots]
    while stack:
        node, level = stack.pop()
        node.level = level
        stack.extend((child, level + 1) for child in node.children)


def flatten_tree(roots: Iterable[TaxonomyNode]) -> list[TaxonomyNode]:
    """
    Returns the nodes of a tree built by build_tree() as a flat list, in
    pre-order, e.g. for a category picker indented by ``level``.
    """
    return list(iter_tree(roots))


def _index(nodes: Iterable[TaxonomyNode]) -> dict[str, TaxonomyNode]:
    """
    Map ids to nodes, for either a flat snapshot or an assembled tree.
    """
    by_id: dict[str, TaxonomyNode] = {}
    for node in iter_tree(nodes):
        by_id.setdefault(node.id, node)
    return by_id


def resolve_path(
    nodes: Iterable[TaxonomyNode],
    slug: str | None = None,
    taxonomy_id: str | None = None,
    url_prefix: str | None = None,
) -> list[Breadcrumb]:
    """
    Returns the breadcrumbs from the root taxonomy down to the taxonomy with
    the given slug (or, if no slug is given or it isn't found, the given ID).

    `nodes` may be a flat snapshot or a tree. The last crumb is the taxonomy
    itself and is the only one with is_header=True. If the taxonomy isn't in
    the snapshot, or one of its ancestors is missing, the crumbs resolved so
    far are returned; this never raises.
    """
    by_id = _index(nodes)
    if url_prefix is None:
        url_prefix = get_setting("CATEGORY_URL_PREFIX")

    if slug:
        taxonomy_id = next((node.id for node in by_id.values() if node.slug == slug), taxonomy_id)

    crumbs: list[Breadcrumb] = []
    seen: set[str] = set()
    while taxonomy_id and taxonomy_id not in seen:
        node = by_id.get(taxonomy_id)
        if node is None:
            break
        seen.add(taxonomy_id)
        crumbs.insert(0, Breadcrumb(
            label=node.name,
            tooltip=node.description,
            slug=node.slug,
            url=url_prefix + node.slug,
            is_header=not crumbs,
        ))
        taxonomy_id = node.parent_id
    return crumbs


def select_descendants(
    nodes: Iterable[TaxonomyNode],
    taxonomy_id: str | None = None,
    taxonomy_ids: Iterable[str] | None = None,
    slug: str | None = None,
    include_self: bool = True,
) -> list[str]:
    """
    Returns the IDs of all the descendants of the selected taxonomies.

    Select the starting taxonomies with any combination of `taxonomy_id`,
    `taxonomy_ids` and `slug`. With include_self=True (the default) the
    selected taxonomies are part of the result, if they're in the snapshot.

    Descendants are included regardless of their status: filter the snapshot
    by status before calling this if that matters. The result has no
    duplicates, even when selected subtrees overlap.
    """
    wanted_ids = set(taxonomy_ids or [])
    if taxonomy_id:
        wanted_ids.add(taxonomy_id)
    if not wanted_ids and not slug:
        raise ValueError("select_descendants() needs a taxonomy_id, taxonomy_ids or slug.")

    by_id = _index(nodes)
    children: dict[str, list[TaxonomyNode]] = {}
    for node in by_id.values():
        if node.parent_id and node.parent_id != node.id:
            children.setdefault(node.parent_id, []).append(node)
    for siblings in children.values():
        siblings.sort(key=_sort_key)

    starts = [
        node for node in by_id.values()
        if node.id in wanted_ids or (slug and node.slug == slug)
    ]
    result: dict[str, None] = {}  # Used as an ordered set
    for start in starts:
        if include_self:
            result[start.id] = None
        stack = list(reversed(children.get(start.id, [])))
        seen = {start.id}
        while stack:
            node = stack.pop()
            if node.id in seen:
                continue
            seen.add(node.id)
            result[node.id] = None
            stack.extend(reversed(children.get(node.id, [])))
    return list(result)


def select_ancestors(nodes: Iterable[TaxonomyNode], taxonomy_id: str) -> list[str]:
    """
    Returns the IDs of the ancestors of the given taxonomy, nearest first.

    Stops at the first parent that is missing from the snapshot.
    """
    by_id = _index(nodes)
    ancestors: list[str] = []
    seen = {taxonomy_id}
    node = by_id.get(taxonomy_id)
    while node and node.parent_id and node.parent_id not in seen:
        parent = by_id.get(node.parent_id)
        if parent is None:
            break
        seen.add(parent.id)
        ancestors.append(parent.id)
        node = parent
    return ancestors
