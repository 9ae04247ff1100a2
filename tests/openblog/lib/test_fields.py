"""
Tests for the hex id fields and validators
"""
import ddt  # type: ignore[import]
import pytest
from django.core.exceptions import ValidationError
from django.test import SimpleTestCase

from openblog.lib.fields import HEX_ID_LENGTH, generate_hex_id, hex_id_field, hex_ref_field
from openblog.lib.validators import validate_hex_id


@ddt.ddt
class TestHexIds(SimpleTestCase):
    """
    Test generate_hex_id() and validate_hex_id()
    """

    def test_generate(self):
        hex_id = generate_hex_id()
        assert len(hex_id) == HEX_ID_LENGTH
        validate_hex_id(hex_id)

    def test_generate_unique(self):
        ids = {generate_hex_id() for _ in range(100)}
        assert len(ids) == 100

    @ddt.data(
        "",
        "0123456789abcde",
        "0123456789abcdef0",
        "0123456789ABCDEF",
        "0123456789abcdeg",
        "0123456789abcdef\n",
        None,
        1234,
    )
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            validate_hex_id(value)

    def test_fields(self):
        id_field = hex_id_field()
        assert id_field.primary_key
        assert id_field.max_length == HEX_ID_LENGTH
        assert not id_field.editable

        ref_field = hex_ref_field(help_text="Parent")
        assert ref_field.blank
        assert ref_field.default == ""
        assert ref_field.help_text == "Parent"
