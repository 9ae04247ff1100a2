"""
Settings for the taxonomy app.

Projects may override any of these defaults with an ``OPENBLOG_TAXONOMY``
dict in their Django settings, e.g.::

    OPENBLOG_TAXONOMY = {
        "CATEGORY_URL_PREFIX": "/c/",
    }
"""
from __future__ import annotations

from typing import Any

from django.conf import settings

DEFAULTS: dict[str, Any] = {
    # Prefix of the URL used for category breadcrumbs
    "CATEGORY_URL_PREFIX": "/category/",
    "TAG_URL_PREFIX": "/tag/",
    # Default page size of get_taxonomies(); 0 means "no paging"
    "PAGE_SIZE": 10,
    # Maximum number of results returned by search_tags()
    "TAG_SEARCH_LIMIT": 10,
}


def get_setting(name: str) -> Any:
    """
    Returns the configured value of the given setting, or its default.
    """
    if name not in DEFAULTS:
        raise KeyError(f"Unknown taxonomy setting: {name}")
    overrides = getattr(settings, "OPENBLOG_TAXONOMY", None) or {}
    return overrides.get(name, DEFAULTS[name])
