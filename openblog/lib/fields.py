"""
Convenience functions to make consistent field conventions easier.

Rows in Open Blog are keyed by a 16 character, lower-case hex string rather
than an auto-incrementing integer. The ids are generated in the application
(not by the database) so that a content object and all of its relationship
rows can be written in a single transaction without a round trip to fetch the
new primary key.
"""
from __future__ import annotations

import secrets
import time

from django.db import models

from .validators import validate_hex_id

HEX_ID_LENGTH = 16

# Milliseconds since the epoch at 2011-12-25 17:55:01 UTC. Timestamps in
# generated ids are relative to this, which keeps the time-based prefix at
# 10-11 hex digits for the next few centuries.
HEX_ID_EPOCH_MS = 1324806901760


def generate_hex_id() -> str:
    """
    Create a new 16 digit hex identifier.

    The id is a hex timestamp (milliseconds since ``HEX_ID_EPOCH_MS``) padded
    to ``HEX_ID_LENGTH`` digits with random hex digits. Ids generated later
    sort after ids generated earlier (at millisecond resolution), which is
    handy when eyeballing tables, but callers must not rely on it.
    """
    prefix = format(int(time.time() * 1000) - HEX_ID_EPOCH_MS, "x")
    padding = HEX_ID_LENGTH - len(prefix)
    return prefix + "".join(secrets.choice("0123456789abcdef") for _ in range(padding))


def hex_id_field(**kwargs) -> models.CharField:
    """
    Primary key holding a generated 16 digit hex id.

    Like UUIDs, these ids are stable and never reused, so other apps may keep
    them (e.g. a content object's id in the relationship table) without a
    ForeignKey.
    """
    final_kwargs = {
        "primary_key": True,
        "max_length": HEX_ID_LENGTH,
        "default": generate_hex_id,
        "editable": False,
        "validators": [validate_hex_id],
    }
    final_kwargs.update(kwargs)
    return models.CharField(**final_kwargs)


def hex_ref_field(**kwargs) -> models.CharField:
    """
    A reference to a hex id that is *not* enforced by a ForeignKey.

    Empty string means "no reference". This is used where a dangling
    reference has to be tolerated, such as a taxonomy parent that was
    filtered out of a snapshot, or an object id owned by another app.
    """
    final_kwargs = {
        "max_length": HEX_ID_LENGTH,
        "blank": True,
        "default": "",
        "db_index": True,
    }
    final_kwargs.update(kwargs)
    return models.CharField(**final_kwargs)
