"""
Test the taxonomy models
"""
from django.db import IntegrityError, transaction
from django.test import TestCase

from openblog_taxonomy.core.taxonomy.models import Taxonomy, TaxonomyKind, TaxonomyRelationship


class TestModels(TestCase):
    """
    Test the models directly, for what the API doesn't cover
    """

    def setUp(self):
        super().setUp()
        self.taxonomy = Taxonomy.objects.create(id="0000000000000abc", kind=TaxonomyKind.TAG, name="Python", slug="py")

    def test_representations(self):
        assert str(self.taxonomy) == "<Taxonomy> (0000000000000abc) tag:py"
        assert repr(self.taxonomy) == str(self.taxonomy)
        relationship = TaxonomyRelationship.objects.create(object_id="0000000000000001", taxonomy=self.taxonomy)
        assert str(relationship) == "<TaxonomyRelationship> 0000000000000001 -> 0000000000000abc"

    def test_defaults(self):
        taxonomy = Taxonomy.objects.create(name="News", slug="news")
        assert taxonomy.kind == TaxonomyKind.CATEGORY
        assert taxonomy.is_root
        assert taxonomy.content_count == 0
        assert len(taxonomy.id) == 16

    def test_unique_slug_per_kind(self):
        Taxonomy.objects.create(kind=TaxonomyKind.CATEGORY, name="Python", slug="py")
        with self.assertRaises(IntegrityError), transaction.atomic():
            Taxonomy.objects.create(kind=TaxonomyKind.TAG, name="Python 3", slug="py")

    def test_unique_relationship(self):
        TaxonomyRelationship.objects.create(object_id="0000000000000001", taxonomy=self.taxonomy)
        with self.assertRaises(IntegrityError):
            TaxonomyRelationship.objects.create(object_id="0000000000000001", taxonomy=self.taxonomy)
