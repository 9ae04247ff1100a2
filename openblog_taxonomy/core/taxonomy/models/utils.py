"""
Utilities for taxonomy models
"""

RESERVED_SLUG_CHARS = [
    '/',   # Slugs are the last segment of /category/<slug> and /tag/<slug> URLs
    '?',
    '#',
    '\t',
]
