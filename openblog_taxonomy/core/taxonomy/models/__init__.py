"""
Core models for Taxonomy
"""
from .base import Taxonomy, TaxonomyKind, TaxonomyRelationship, TaxonomyStatus
