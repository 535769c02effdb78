"""Syntax tree nodes and helpers over them."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, Optional

TAB_SPACES = 6
TAB_TREE = 5


class NodeKind(Enum):
    CONST = auto()
    ID = auto()
    ID_ARRAY = auto()
    TYPE = auto()
    FN = auto()
    OP = auto()
    RETURN = auto()
    LOOP = auto()
    COND = auto()
    CALL = auto()
    ATR = auto()


def _three_children() -> list[Optional["TreeNode"]]:
    return [None, None, None]


@dataclass
class TreeNode:
    """A syntax tree node with up to three children and a sibling chain."""

    kind: NodeKind
    name: str = ""
    val: int = 0
    lineno: int = 0
    children: list[Optional["TreeNode"]] = field(default_factory=_three_children)
    sibling: Optional["TreeNode"] = None

    def siblings(self) -> Iterator["TreeNode"]:
        """Yield this node and every node following it in the sibling chain."""
        node: Optional[TreeNode] = self
        while node is not None:
            yield node
            node = node.sibling


def _indent(level: int) -> str:
    return " " * (level * TAB_TREE)


def _label(node: TreeNode) -> str:
    kind = node.kind
    if kind is NodeKind.CONST:
        return str(node.val)
    if kind is NodeKind.FN:
        return "'FUNCTION', "
    if kind is NodeKind.RETURN:
        return "'return', "
    if kind is NodeKind.LOOP:
        return "'while', "
    if kind is NodeKind.COND:
        return "'if', "
    if kind is NodeKind.CALL:
        return f"'CALL - {node.name}',"
    return f"'{node.name}',"


def _show(node: Optional[TreeNode], is_brother: bool, level: int) -> str:
    if node is None:
        return ""
    if level == 0:
        return "{\n'tree:'" + _show(node, False, 1) + "\n}\n"
    tab = _indent(level)
    opens_list = node.sibling is not None and not is_brother
    if opens_list:
        parts = [f"\n{tab}[\n{tab}{{\n{tab}'Node': "]
    else:
        parts = [f"\n{tab}{{\n{tab}'Node': "]
    parts.append(_label(node))
    for index, child in enumerate(node.children):
        if child is not None:
            parts.append(f"\n{tab}'child[{index}]': " + _show(child, False, level + 1))
    parts.append(f"\n{tab}}}")
    if opens_list:
        parts.append(",")
        assert node.sibling is not None
        for brother in node.sibling.siblings():
            parts.append(_show(brother, True, level))
            if brother.sibling is not None:
                parts.append(tab + ",")
    return "".join(parts)


def show_tree(tree: Optional[TreeNode]) -> str:
    """Render a tree in the indented, dictionary-like listing format."""
    return _show(tree, False, 0)


def count_params(node: Optional[TreeNode]) -> int:
    """Count a node and its siblings; zero for no node."""
    return 0 if node is None else sum(1 for _ in node.siblings())


_OPPOSITES = {
    "<": ">=",
    "<=": ">",
    ">": "<=",
    ">=": "<",
    "==": "!=",
    "!=": "==",
}


def opposite_operator(op: str) -> str:
    """Return the relational operator that negates ``op``."""
    try:
        return _OPPOSITES[op]
    except KeyError:
        raise ValueError(f"not a relational operator: {op!r}") from None


def tab_generator(word: str, is_label: bool) -> str:
    """Pad ``word`` to a fixed column, after it for labels, before it otherwise."""
    padding = " " * max(0, TAB_SPACES + 1 - len(word))
    return word + padding if is_label else padding + word


def is_assignment(node: TreeNode) -> bool:
    """Tell whether the node is an assignment operator."""
    return node.kind is NodeKind.OP and node.name == "="