"""
Exceptions raised by the taxonomy API
"""
from __future__ import annotations

from django.db import DatabaseError, InterfaceError, OperationalError
from django.utils.translation import gettext as _


class TaxonomyError(Exception):
    """
    Base exception for taxonomy business errors
    """

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return str(self.message)

    def __repr__(self):
        return f"{self.__class__.__name__}({str(self)})"


class HasRelatedContent(TaxonomyError):
    """
    Raised when removing taxonomies that content is still related to.

    This is not a transient error: retrying won't help until the related
    content has been moved to other taxonomies or deleted.
    """

    def __init__(self, kind: str, taxonomy_ids: list[str], related_count: int):
        super().__init__(_(
            "Cannot remove {kind} taxonomies: {count} content object(s) are still related to them or their children."
        ).format(kind=kind, count=related_count))
        self.kind = kind
        self.taxonomy_ids = taxonomy_ids
        self.related_count = related_count

    def __reduce__(self):
        return (self.__class__, (self.kind, self.taxonomy_ids, self.related_count))


def is_retryable(exc: BaseException) -> bool:
    """
    Whether the given exception is a transient store failure (deadlock, lock
    timeout, lost connection...) after which the whole write may be retried
    as-is.

    Every write API runs in a single transaction, so when one of these
    errors is raised nothing has been committed.
    """
    if isinstance(exc, TaxonomyError):
        return False
    return isinstance(exc, (OperationalError, InterfaceError)) or (
        isinstance(exc, DatabaseError) and "deadlock" in str(exc).lower()
    )
