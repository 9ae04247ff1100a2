"""
Open Blog taxonomy engine: hierarchical categories, tags and link categories.
"""
__version__ = "0.1.0"
