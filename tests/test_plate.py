# tests/test_plate.py
"""Unit tests for plate normalization and validation."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from carblock.errors import ValidationError
from carblock.services.validation_service import validate_plate as validate_or_raise
from carblock.utils.plate import format_plate, normalize_plate, validate_plate


class TestNormalizePlate:
    def test_strips_spaces_and_hyphens(self):
        assert normalize_plate(" a 123-bc 777 ") == "A123BC777"

    @pytest.mark.parametrize("raw", ["a123bc777", "А 123 ВС 77", "x-000-yy-99", "", "  -- "])
    def test_idempotent(self, raw):
        once = normalize_plate(raw)
        assert normalize_plate(once) == once

    def test_cyrillic_uppercased(self):
        assert normalize_plate("а123вс777") == "А123ВС777"


class TestValidatePlate:
    @pytest.mark.parametrize("plate", ["A123BC77", "A123BC777", "А123ВС777", "Ё001ЁЁ99", "a 123 bc 777"])
    def test_valid(self, plate):
        assert validate_plate(plate) is True
        assert len(normalize_plate(plate)) in (8, 9)

    @pytest.mark.parametrize("plate", [
        "",
        "A123BC7",        # too short
        "A123BC7777",     # too long
        "1123BC777",      # first char not a letter
        "AB23BC777",      # digit block broken
        "A1231C777",      # letter block broken
        "A123BCX77",      # region not digits
        "A١٢٣BC777",      # non-ASCII digits
    ])
    def test_invalid(self, plate):
        assert validate_plate(plate) is False

    def test_service_returns_normalized(self):
        assert validate_or_raise("b 456 cd 777") == "B456CD777"

    def test_service_raises_validation_error(self):
        with pytest.raises(ValidationError):
            validate_or_raise("nope")


class TestFormatPlate:
    def test_groups(self):
        assert format_plate("A123BC777") == "A 123 BC 777"

    def test_unknown_length_returned_normalized(self):
        assert format_plate("ab-1") == "AB1"
