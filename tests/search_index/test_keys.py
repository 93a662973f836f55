"""Tests for search_index.keys module."""

from __future__ import annotations

import pytest

from search_index.keys import decode_search_id, encode_search_id, normalize_query, split_serial


class TestEncodeSearchId:
    """Tests for encode_search_id."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("uint128_t", "uint128_5ft"),
            ("uint128_t.hpp", "uint128_5ft_2ehpp"),
            ("std::vector", "std_3a_3avector"),
            ("operator<", "operator_3c"),
            ("a b", "a_20b"),
        ],
    )
    def test_escapes_ascii_punctuation(self, text: str, expected: str) -> None:
        """Characters outside [a-z0-9] become _ plus two hex digits."""
        assert encode_search_id(text) == expected

    def test_lower_cases_letters(self) -> None:
        """Upper-case letters are folded before encoding."""
        assert encode_search_id("Uint128_T") == "uint128_5ft"

    def test_keeps_non_ascii(self) -> None:
        """Code points at or above 0x80 are kept as-is."""
        assert encode_search_id("größe") == "größe"

    def test_pads_control_characters(self) -> None:
        """Code points below 0x10 still get two hex digits."""
        assert encode_search_id("\t") == "_09"

    def test_matches_generator_key_for_template_label(self) -> None:
        """Encoding a template label reproduces the stored search id."""
        label = "unique_ptr< binary_search_tree::bst_node >"
        expected = "unique_5fptr_3c_20binary_5fsearch_5ftree_3a_3abst_5fnode_20_3e"
        assert encode_search_id(label) == expected


class TestDecodeSearchId:
    """Tests for decode_search_id."""

    def test_reverses_escapes(self) -> None:
        """_hh escapes decode back to their characters."""
        assert decode_search_id("std_3a_3au16string") == "std::u16string"

    def test_keeps_lone_underscore(self) -> None:
        """An underscore without two hex digits is kept."""
        assert decode_search_id("a_z") == "a_z"


class TestSplitSerial:
    """Tests for split_serial."""

    def test_splits_trailing_serial(self) -> None:
        """The last _<digits> group is the serial."""
        assert split_serial("uint128_5ft_2201") == ("uint128_5ft", 2201)

    def test_escape_digits_stay_in_search_id(self) -> None:
        """Only the final group is treated as the serial."""
        assert split_serial("uint128_5ft_2ehpp_2202") == ("uint128_5ft_2ehpp", 2202)

    def test_key_without_serial(self) -> None:
        """Keys without a numeric suffix have no serial."""
        assert split_serial("abs") == ("abs", None)

    def test_key_that_is_only_a_serial(self) -> None:
        """A key such as _12 keeps its text because the search id would be empty."""
        assert split_serial("_12") == ("_12", None)


class TestNormalizeQuery:
    """Tests for normalize_query."""

    def test_strips_surrounding_spaces(self) -> None:
        """Leading and trailing spaces are ignored."""
        assert normalize_query("  Uint128_t ") == "uint128_5ft"

    def test_inner_spaces_are_encoded(self) -> None:
        """Spaces inside the query are part of the search id."""
        assert normalize_query("unique_ptr< binary") == "unique_5fptr_3c_20binary"

    def test_blank_query(self) -> None:
        """A query of spaces normalizes to an empty string."""
        assert normalize_query("   ") == ""
