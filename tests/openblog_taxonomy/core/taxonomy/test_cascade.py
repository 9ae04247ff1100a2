"""
Test the status cascade between categories
"""
from __future__ import annotations

import ddt  # type: ignore[import]
import pytest
from django.test import SimpleTestCase, TestCase

from openblog_taxonomy.core.taxonomy import api
from openblog_taxonomy.core.taxonomy.cascade import CascadePlan, StatusChange, apply_cascade, plan_cascade
from openblog_taxonomy.core.taxonomy.data import TaxonomyNode
from openblog_taxonomy.core.taxonomy.models import Taxonomy, TaxonomyKind, TaxonomyStatus

PUBLISHED = TaxonomyStatus.PUBLISHED
PRIVATE = TaxonomyStatus.PRIVATE
TRASHED = TaxonomyStatus.TRASHED


def node(taxonomy_id: str, parent_id: str = "", status: str = PUBLISHED, kind: str = "category") -> TaxonomyNode:
    return TaxonomyNode(
        id=taxonomy_id,
        kind=kind,
        name=taxonomy_id.upper(),
        slug=taxonomy_id,
        parent_id=parent_id,
        status=status,
    )


@ddt.ddt
class TestPlanCascade(SimpleTestCase):
    """
    Test plan_cascade(), which doesn't need a database
    """

    def test_publish_lifts_hidden_ancestors(self):
        snapshot = [
            node("a", status=PRIVATE),
            node("b", parent_id="a", status=TRASHED),
            node("c", parent_id="b"),
            node("x", status=PRIVATE),
        ]
        plan = plan_cascade(snapshot, "c", PUBLISHED)
        assert plan.changes == (
            StatusChange(to_status=PUBLISHED, from_statuses=frozenset([PRIVATE, TRASHED]), ids=("b", "a")),
        )
        assert plan.affected_ids == {"a", "b"}

    def test_publish_with_published_ancestors(self):
        snapshot = [node("a"), node("b", parent_id="a")]
        plan = plan_cascade(snapshot, "b", PUBLISHED)
        assert not plan
        assert plan.changes == ()

    def test_private_hides_published_descendants(self):
        # d is below an already trashed category, but is still below a
        snapshot = [
            node("a"),
            node("b", parent_id="a"),
            node("c", parent_id="a", status=TRASHED),
            node("d", parent_id="c"),
            node("e", parent_id="b", status=PRIVATE),
        ]
        plan = plan_cascade(snapshot, "a", PRIVATE)
        assert plan.changes == (
            StatusChange(to_status=PRIVATE, from_statuses=frozenset([PUBLISHED]), ids=("b", "d")),
        )

    def test_private_lifts_trashed_ancestors(self):
        snapshot = [
            node("a", status=TRASHED),
            node("b", parent_id="a", status=PRIVATE),
            node("c", parent_id="b"),
        ]
        plan = plan_cascade(snapshot, "b", PRIVATE)
        assert plan.affected_ids == {"a", "c"}
        assert StatusChange(to_status=PRIVATE, from_statuses=frozenset([TRASHED]), ids=("a",)) in plan.changes

    def test_trash_descendants(self):
        snapshot = [
            node("a"),
            node("b", parent_id="a", status=PRIVATE),
            node("c", parent_id="b", status=TRASHED),
            node("d", parent_id="c", status=PRIVATE),
        ]
        plan = plan_cascade(snapshot, "a", TRASHED)
        assert plan.changes == (
            StatusChange(to_status=TRASHED, from_statuses=frozenset([PUBLISHED, PRIVATE]), ids=("b", "d")),
        )

    def test_trash_does_not_touch_ancestors(self):
        snapshot = [node("a"), node("b", parent_id="a")]
        assert not plan_cascade(snapshot, "b", TRASHED)

    @ddt.data(TaxonomyKind.TAG, TaxonomyKind.LINK_CATEGORY)
    def test_other_kinds_dont_cascade(self, kind):
        snapshot = [node("a", status=PRIVATE, kind=kind), node("b", parent_id="a", kind=kind)]
        plan = plan_cascade(snapshot, "b", PUBLISHED)
        assert plan == CascadePlan(taxonomy_id="b", new_status=PUBLISHED)
        assert not plan

    def test_unknown_taxonomy(self):
        assert not plan_cascade([node("a")], "unknown", PRIVATE)

    def test_cycle(self):
        snapshot = [node("a", parent_id="b", status=PRIVATE), node("b", parent_id="a", status=PRIVATE)]
        assert plan_cascade(snapshot, "a", PUBLISHED).affected_ids == {"b"}
        assert plan_cascade(snapshot, "a", TRASHED).affected_ids == {"b"}

    def test_invalid_status(self):
        with pytest.raises(ValueError):
            plan_cascade([node("a")], "a", "deleted")


class CategoryTreeMixin:
    """
    Creates the categories A -> B -> C, all published
    """
    a: Taxonomy
    b: Taxonomy
    c: Taxonomy

    def setUp(self):
        super().setUp()
        self.a = api.save_taxonomy(kind=TaxonomyKind.CATEGORY, name="A", slug="a")
        self.b = api.save_taxonomy(kind=TaxonomyKind.CATEGORY, name="B", slug="b", parent_id=self.a.id)
        self.c = api.save_taxonomy(kind=TaxonomyKind.CATEGORY, name="C", slug="c", parent_id=self.b.id)

    def update_status(self, taxonomy: Taxonomy, status: str) -> Taxonomy:
        return api.save_taxonomy(
            taxonomy_id=taxonomy.id,
            kind=taxonomy.kind,
            name=taxonomy.name,
            slug=taxonomy.slug,
            parent_id=taxonomy.parent_id,
            status=status,
        )

    def assert_statuses(self, **expected):
        for attr, status in expected.items():
            taxonomy = getattr(self, attr)
            taxonomy.refresh_from_db()
            assert taxonomy.status == status, f"{attr} is {taxonomy.status}, expected {status}"


class TestCascadeOnSave(CategoryTreeMixin, TestCase):
    """
    Test that saving categories through the API applies the cascade
    """

    def test_private_cascades_down(self):
        self.update_status(self.b, PRIVATE)
        self.assert_statuses(a=PUBLISHED, b=PRIVATE, c=PRIVATE)

    def test_publish_cascades_up(self):
        self.update_status(self.b, PRIVATE)
        self.update_status(self.c, PUBLISHED)
        self.assert_statuses(a=PUBLISHED, b=PUBLISHED, c=PUBLISHED)

    def test_trash_cascades_down(self):
        self.update_status(self.a, TRASHED)
        self.assert_statuses(a=TRASHED, b=TRASHED, c=TRASHED)

    def test_publish_from_trash(self):
        self.update_status(self.a, TRASHED)
        self.update_status(self.c, PUBLISHED)
        self.assert_statuses(a=PUBLISHED, b=PUBLISHED, c=PUBLISHED)

    def test_private_from_trash(self):
        self.update_status(self.a, TRASHED)
        self.update_status(self.b, PRIVATE)
        self.assert_statuses(a=PRIVATE, b=PRIVATE, c=TRASHED)

    def test_new_published_child_lifts_parent(self):
        self.update_status(self.a, PRIVATE)
        d = api.save_taxonomy(kind=TaxonomyKind.CATEGORY, name="D", slug="d", parent_id=self.c.id)
        assert d.status == PUBLISHED
        self.assert_statuses(a=PUBLISHED, b=PUBLISHED, c=PUBLISHED)

    def test_move_below_private_parent(self):
        x = api.save_taxonomy(kind=TaxonomyKind.CATEGORY, name="X", slug="x", status=PRIVATE)
        self.c = api.save_taxonomy(
            taxonomy_id=self.c.id, kind=TaxonomyKind.CATEGORY, name="C", slug="c", parent_id=x.id,
        )
        x.refresh_from_db()
        assert x.status == PUBLISHED

    def test_tags_dont_cascade(self):
        tag = api.save_taxonomy(kind=TaxonomyKind.TAG, name="T", slug="t")
        self.update_status(tag, PRIVATE)
        self.assert_statuses(a=PUBLISHED, b=PUBLISHED, c=PUBLISHED)

    def test_apply_skips_rows_changed_since_snapshot(self):
        plan = plan_cascade(api.get_taxonomy_snapshot(TaxonomyKind.CATEGORY), self.a.id, TRASHED)
        Taxonomy.objects.filter(pk=self.c.id).update(status=TRASHED)
        assert apply_cascade(plan) == 1
        self.assert_statuses(a=PUBLISHED, b=TRASHED, c=TRASHED)

    def test_visible_tree_stays_walkable(self):
        """
        Whatever we do, every published category has only published ancestors
        """
        self.update_status(self.b, PRIVATE)
        self.update_status(self.a, TRASHED)
        self.update_status(self.c, PUBLISHED)
        snapshot = api.get_taxonomy_snapshot(TaxonomyKind.CATEGORY)
        by_id = {n.id: n for n in snapshot}
        for taxonomy in snapshot:
            if taxonomy.status != PUBLISHED:
                continue
            parent = by_id.get(taxonomy.parent_id)
            while parent:
                assert parent.status == PUBLISHED
                parent = by_id.get(parent.parent_id)
