"""Three-address intermediate code (quadruples)."""

from __future__ import annotations

from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Iterator

BLANK = " "


@dataclass(frozen=True)
class Quad:
    """One quadruple: an operation and up to three operands."""

    op: str
    arg1: str = BLANK
    arg2: str = BLANK
    arg3: str = BLANK

    def __str__(self) -> str:
        return f"({self.op},{self.arg1},{self.arg2},{self.arg3})"


class QuadList:
    """Ordered list of quadruples.

    The first insertion is always preceded by a jump to ``main``.
    """

    def __init__(self) -> None:
        self._quads: list[Quad] = []

    def insert(self, op: str, arg1: str, arg2: str, arg3: str) -> Quad:
        """Append a quadruple and return it."""
        if not self._quads:
            self._quads.append(Quad("goto", "main", BLANK, BLANK))
        quad = Quad(op, arg1, arg2, arg3)
        self._quads.append(quad)
        return quad

    def format(self) -> str:
        """Render every quadruple on its own line."""
        return "".join(f"{quad}\n" for quad in self._quads)

    def write(self, path: str | PathLike[str]) -> None:
        """Write the rendered quadruples to ``path``."""
        Path(path).write_text(self.format())

    def __iter__(self) -> Iterator[Quad]:
        return iter(self._quads)

    def __len__(self) -> int:
        return len(self._quads)

    def __getitem__(self, index: int) -> Quad:
        return self._quads[index]