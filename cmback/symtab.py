"""Hash-bucket symbol table."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from cmback.tree import NodeKind, TreeNode

SIZE = 523
SHIFT = 4
GLOBAL_SCOPE = " "


class TypeID(Enum):
    VAR = "var"
    FUNC = "func"


class DataType(Enum):
    INT = "int"
    VOID = "void"


@dataclass
class Symbol:
    """One entry of the table; ``lines`` holds the newest line first."""

    name: str
    type_id: TypeID
    scope: str
    data_type: DataType
    mem_loc: int
    is_arg: bool
    lines: list[int] = field(default_factory=list)
    mem_pos: int = 0

    def format(self) -> str:
        lines = " ".join(str(n) for n in self.lines)
        return (
            f"ID: {self.name}, SCOPE: {self.scope}, "
            f"DATA TYPE: {self.data_type.value}, TYPE ID: {self.type_id.value} "
            f",MEMLOC: {self.mem_loc}, MEMPOS: {self.mem_pos}, LINES: [{lines}]\n"
        )


def hash_key(key: str) -> int:
    """Bucket index of a key; only every other character takes part."""
    value = 0
    for char in key[::2]:
        value = ((value << SHIFT) + ord(char)) % SIZE
    return value


class SymbolTable:
    """Symbols keyed by name and scope, spread over a fixed number of buckets."""

    def __init__(self) -> None:
        self._buckets: list[list[Symbol]] = [[] for _ in range(SIZE)]

    def _bucket(self, key: str) -> list[Symbol]:
        return self._buckets[hash_key(key)]

    def _find(self, name: str, scope: str) -> Optional[Symbol]:
        return next(
            (s for s in self._bucket(name + scope) if s.name == name and s.scope == scope),
            None,
        )

    def _find_global(self, name: str) -> Optional[Symbol]:
        return next(
            (s for s in self._bucket(name + GLOBAL_SCOPE) if s.name == name), None
        )

    def _lookup(self, name: str, scope: str) -> Optional[Symbol]:
        return self._find(name, scope) or self._find_global(name)

    def _require(self, symbol: Optional[Symbol], name: str, scope: str) -> Symbol:
        if symbol is None:
            raise KeyError(f"unknown symbol {name!r} in scope {scope!r}")
        return symbol

    def insert(
        self,
        name: str,
        type_id: TypeID,
        scope: str,
        data_type: DataType,
        lineno: int,
        mem_loc: int,
        is_arg: bool,
    ) -> bool:
        """Add a symbol; return False if the name is already declared in that scope."""
        if self._find(name, scope) is not None:
            return False
        symbol = Symbol(name, type_id, scope, data_type, mem_loc, is_arg, [lineno])
        self._bucket(name + scope).insert(0, symbol)
        return True

    def exists(self, name: str, scope: str) -> bool:
        """Tell whether the name is visible in ``scope`` or globally."""
        return self._lookup(name, scope) is not None

    def exists_any_scope(self, name: str) -> bool:
        return any(symbol.name == name for symbol in self)

    def has_main(self) -> bool:
        return any(s.name == "main" and s.type_id is TypeID.FUNC for s in self)

    def data_type(self, name: str, scope: str) -> DataType:
        symbol = next((s for s in self._bucket(name + scope) if s.name == name), None)
        return self._require(symbol, name, scope).data_type

    def type_id(self, name: str, scope: str) -> TypeID:
        return self._require(self._lookup(name, scope), name, scope).type_id

    def is_void_call(self, node: TreeNode) -> bool:
        """Tell whether the node calls a function declared void."""
        return (
            node.kind is NodeKind.CALL
            and self.data_type(node.name, GLOBAL_SCOPE) is DataType.VOID
        )

    def add_line(self, name: str, scope: str, lineno: int) -> None:
        """Record a use of the symbol declared in ``scope``."""
        symbol = self._find(name, scope)
        if symbol is not None:
            symbol.lines.insert(0, lineno)
        symbol = next(
            (
                s
                for s in self._bucket(name + GLOBAL_SCOPE)
                if s.name == name and s.scope == scope
            ),
            None,
        )
        if symbol is not None:
            symbol.lines.insert(0, lineno)

    def add_global_line(self, name: str, lineno: int) -> None:
        symbol = self._find_global(name)
        if symbol is not None:
            symbol.lines.insert(0, lineno)

    def set_mem_pos(self, name: str, scope: str, mem_pos: int) -> None:
        symbol = self._find(name, scope)
        if symbol is not None:
            symbol.mem_pos = mem_pos

    def mem_loc(self, name: str, scope: str) -> int:
        return self._require(self._lookup(name, scope), name, scope).mem_loc

    def is_global(self, name: str) -> bool:
        return self._find_global(name) is not None

    def mem_pos(self, name: str, scope: str) -> int:
        return self._require(self._find(name, scope), name, scope).mem_pos

    def is_arg(self, name: str, scope: str) -> bool:
        return self._require(self._find(name, scope), name, scope).is_arg

    def format(self) -> str:
        """Render every symbol, bucket by bucket."""
        return "".join(symbol.format() for symbol in self)

    def __iter__(self) -> Iterator[Symbol]:
        for bucket in self._buckets:
            yield from bucket

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._buckets)