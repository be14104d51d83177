#!/usr/bin/env python3
"""
Tests for the djb2-hashed symbol table.
"""

import random

import pytest

from proplang.analysis.symbol_table import SymbolTable, djb2_hash
from proplang.shared.types import SymbolType


class TestDjb2Hash:
    """Reference values of the djb2 string hash"""

    def test_empty_string_is_seed(self):
        assert djb2_hash("", 101) == 5381 % 101
        assert djb2_hash("", 1 << 32) == 5381

    def test_single_character(self):
        # 5381 * 33 + ord('a')
        assert djb2_hash("a", 1 << 32) == 177670

    def test_wraps_at_32_bits(self):
        name = "a_rather_long_identifier_name"
        h = 5381
        for byte in name.encode("utf-8"):
            h = (h * 33 + byte) % (1 << 32)
        assert djb2_hash(name, 1 << 32) == h
        assert djb2_hash(name, 101) == h % 101

    def test_in_bucket_range(self):
        for name in ("A", "B", "flag", "x1", "ZZZ"):
            assert 0 <= djb2_hash(name, 7) < 7


class TestSymbolTableOperations:
    """insert / lookup / mark_used / set_value"""

    def test_lookup_missing(self):
        assert SymbolTable().lookup("X") is None

    def test_insert_then_lookup(self):
        table = SymbolTable()
        entry = table.insert("B", SymbolType.BOOLEAN, 1)
        assert table.lookup("B") is entry
        assert entry.symbol_type is SymbolType.BOOLEAN
        assert entry.declaration_line == 1
        assert not entry.defined and not entry.used
        assert "B" in table

    def test_insert_is_idempotent(self):
        table = SymbolTable()
        first = table.insert("B", SymbolType.BOOLEAN, 1)
        second = table.insert("B", SymbolType.IDENTIFIER, 5)
        assert second is first
        assert first.symbol_type is SymbolType.BOOLEAN
        assert first.declaration_line == 1
        assert table.count == 1

    def test_mark_used_records_first_use_only(self):
        table = SymbolTable()
        table.mark_used("X", 3)
        entry = table.mark_used("X", 8)
        assert entry.used
        assert entry.first_use_line == 3
        assert entry.symbol_type is SymbolType.IDENTIFIER
        assert entry.is_undefined

    def test_set_value_on_boolean(self):
        table = SymbolTable()
        table.insert("B", SymbolType.BOOLEAN, 1)
        entry = table.set_value("B", True, 1)
        assert entry.defined and entry.value is True
        assert entry.is_unused

    def test_set_value_on_identifier_keeps_no_value(self):
        table = SymbolTable()
        table.mark_used("X", 1)
        entry = table.set_value("X", True, 2)
        assert entry.defined
        assert entry.value is None
        assert entry.declaration_line == 2
        assert not entry.is_undefined

    def test_bucket_count_must_be_positive(self):
        with pytest.raises(ValueError):
            SymbolTable(bucket_count=0)


class TestSymbolTableCounts:
    """count == len(iteration), derived counts agree with entries"""

    def test_collisions_in_tiny_table(self):
        table = SymbolTable(bucket_count=1)
        names = ["A", "B", "C", "D"]
        for i, name in enumerate(names, 1):
            table.insert(name, SymbolType.BOOLEAN, i)
        assert [entry.name for entry in table] == names
        assert all(table.lookup(name).name == name for name in names)

    @pytest.mark.parametrize("seed", range(10))
    def test_random_operation_sequences(self, seed):
        rng = random.Random(seed)
        table = SymbolTable(bucket_count=rng.choice([1, 3, 101]))
        names = [f"v{i}" for i in range(12)]
        inserted = set()
        for line in range(1, 60):
            name = rng.choice(names)
            op = rng.choice(["insert", "use", "define"])
            if op == "insert":
                table.insert(name, SymbolType.BOOLEAN, line)
            elif op == "use":
                table.mark_used(name, line)
            else:
                table.set_value(name, rng.random() < 0.5, line)
            inserted.add(name)

        entries = list(table)
        assert table.count == len(entries) == len(table) == len(inserted)
        assert {entry.name for entry in entries} == inserted
        assert table.undefined_count == sum(1 for e in entries if e.used and not e.defined)
        assert table.unused_count == sum(1 for e in entries if e.defined and not e.used)
