"""
Useful validation methods
"""
import re

from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _

HEX_ID_PATTERN = re.compile(r"[0-9a-f]{16}")


def validate_hex_id(value: str):
    if not isinstance(value, str) or not HEX_ID_PATTERN.fullmatch(value):
        raise ValidationError(
            _("%(value)s is not a valid 16 digit hex id."),
            params={"value": value},
        )
