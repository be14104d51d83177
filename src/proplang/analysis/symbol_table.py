"""
Symbol Table

Chained hash map from name to definition/use metadata. One table is created
per semantic-analysis run and owns all of its entries.

Invariants:
- One entry per name; insert() of an existing name returns the existing
  entry untouched.
- mark_used() records the first-use line only once.
- set_value() stores a value only for BOOLEAN entries.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional

from ..shared.types import SymbolType
from ..utils.config import DEFAULT_SYMBOL_TABLE_BUCKETS, DJB2_SEED, HASH_MASK


def djb2_hash(name: str, bucket_count: int) -> int:
    """hash = hash * 33 + byte over the UTF-8 bytes, unsigned 32-bit, mod bucket_count"""
    h = DJB2_SEED
    for byte in name.encode("utf-8"):
        h = ((h << 5) + h + byte) & HASH_MASK
    return h % bucket_count


@dataclass
class SymbolEntry:
    """Definition/use facts for one name"""
    name: str
    symbol_type: SymbolType
    declaration_line: int
    defined: bool = False
    used: bool = False
    first_use_line: Optional[int] = None
    value: Optional[bool] = None

    @property
    def is_undefined(self) -> bool:
        return self.used and not self.defined

    @property
    def is_unused(self) -> bool:
        return self.defined and not self.used


class SymbolTable:
    """
    Hash-bucket chained symbol table.

    Buckets are Python lists (the chain); iteration order is bucket index,
    then insertion order within the bucket.
    """

    def __init__(self, bucket_count: int = DEFAULT_SYMBOL_TABLE_BUCKETS):
        if bucket_count <= 0:
            raise ValueError(f"bucket_count must be positive, got {bucket_count}")
        self.bucket_count = bucket_count
        self._buckets: List[List[SymbolEntry]] = [[] for _ in range(bucket_count)]
        self._count = 0

    def _bucket(self, name: str) -> List[SymbolEntry]:
        return self._buckets[djb2_hash(name, self.bucket_count)]

    def lookup(self, name: str) -> Optional[SymbolEntry]:
        for entry in self._bucket(name):
            if entry.name == name:
                return entry
        return None

    def insert(self, name: str, symbol_type: SymbolType, line: int) -> SymbolEntry:
        """Insert name, or return the existing entry unchanged."""
        existing = self.lookup(name)
        if existing is not None:
            return existing
        entry = SymbolEntry(name=name, symbol_type=symbol_type, declaration_line=line)
        self._bucket(name).append(entry)
        self._count += 1
        return entry

    def mark_used(self, name: str, line: int) -> SymbolEntry:
        entry = self.insert(name, SymbolType.IDENTIFIER, line)
        if not entry.used:
            entry.used = True
            entry.first_use_line = line
        return entry

    def set_value(self, name: str, value: Optional[bool], line: int) -> SymbolEntry:
        entry = self.insert(name, SymbolType.IDENTIFIER, line)
        entry.defined = True
        entry.declaration_line = line
        if entry.symbol_type is SymbolType.BOOLEAN:
            entry.value = value
        return entry

    @property
    def count(self) -> int:
        return self._count

    @property
    def undefined_count(self) -> int:
        return sum(1 for entry in self if entry.is_undefined)

    @property
    def unused_count(self) -> int:
        return sum(1 for entry in self if entry.is_unused)

    def __iter__(self) -> Iterator[SymbolEntry]:
        for bucket in self._buckets:
            yield from bucket

    def __len__(self) -> int:
        return self._count

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None
