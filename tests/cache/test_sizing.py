"""Tests for clinicboost.cache.sizing: memory-footprint estimates."""

from pydantic import BaseModel

from clinicboost.cache.sizing import ENTRY_OVERHEAD, estimate_entry_size, estimate_size


class Patient(BaseModel):
    name: str
    age: int


class TestEstimateSize:
    def test_none_is_zero(self):
        assert estimate_size(None) == 0

    def test_string_two_bytes_per_char(self):
        assert estimate_size("abcd") == 8

    def test_numbers(self):
        assert estimate_size(42) == 8
        assert estimate_size(3.14) == 8

    def test_bool_is_not_sized_as_int(self):
        assert estimate_size(True) == 4

    def test_list_sums_items(self):
        assert estimate_size(["ab", 1, False]) == 4 + 8 + 4

    def test_dict_counts_keys_and_values(self):
        assert estimate_size({"id": 7, "ok": True}) == (4 + 8) + (4 + 4)

    def test_nested_structures(self):
        assert estimate_size({"tags": ["a", "b"]}) == 8 + 2 + 2

    def test_pydantic_model_sized_by_dump(self):
        assert estimate_size(Patient(name="Ana", age=30)) == (8 + 6) + (6 + 8)

    def test_unknown_objects_are_zero(self):
        assert estimate_size(object()) == 0


class TestEstimateEntrySize:
    def test_includes_key_and_overhead(self):
        assert estimate_entry_size("k", 1) == 2 + 8 + ENTRY_OVERHEAD
