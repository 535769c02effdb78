"""Generation of quadruples from a syntax tree."""

from __future__ import annotations

from enum import IntEnum
from typing import Optional

from cmback.quad import BLANK, Quad, QuadList
from cmback.tree import NodeKind, TreeNode, count_params

TEMP_REGISTERS = 16

SPECIAL_FUNCTIONS = (
    "loadInstructions",
    "jumpAddr",
    "storeRegisters",
    "loadRegisters",
    "initializeRegisters",
    "storeCurrentProcessRegisters",
    "kernelMode",
)

_ARITHMETIC = "*/-+"

_OUTPUT_VALUE_KINDS = frozenset(
    {NodeKind.ID, NodeKind.OP, NodeKind.CONST, NodeKind.CALL, NodeKind.ID_ARRAY}
)


class CodeGenError(Exception):
    """Raised when the tree uses a built-in function incorrectly."""


class _Mode(IntEnum):
    STATEMENT = 0
    VALUE = 1
    PARAM = 2
    DECLARE = 3
    ARG = 5


def is_special_function(name: str) -> bool:
    """Tell whether ``name`` is one of the built-in system functions."""
    return name in SPECIAL_FUNCTIONS


def _temp(index: int) -> str:
    # Truncating remainder, so an index below zero yields a negative suffix.
    rem = abs(index) % TEMP_REGISTERS
    return f"_t-{rem}" if index < 0 and rem else f"_t{rem}"


class QuadGenerator:
    """Walks a syntax tree and appends quadruples to a :class:`QuadList`."""

    def __init__(self, quads: Optional[QuadList] = None) -> None:
        self.quads = quads if quads is not None else QuadList()
        self.temp_index = 0
        self.label_index = 0

    def generate(self, tree: Optional[TreeNode]) -> QuadList:
        """Generate code for the whole tree and return the quadruple list."""
        self._gen(tree, _Mode.STATEMENT)
        return self.quads

    # helpers

    def _emit(self, op: str, arg1: str, arg2: str, arg3: str) -> Quad:
        return self.quads.insert(op, arg1, arg2, arg3)

    def _last(self) -> str:
        return _temp(self.temp_index - 1)

    def _current(self) -> str:
        return _temp(self.temp_index)

    def _take(self) -> str:
        reg = self._current()
        self.temp_index += 1
        return reg

    def _labels(self) -> tuple[str, str]:
        first = self.label_index
        self.label_index += 2
        return f"_L{first}", f"_L{first + 1}"

    def _continue(self, node: TreeNode, mode: _Mode) -> None:
        if node.sibling is not None:
            self._gen(node.sibling, mode)

    # dispatch

    def _gen(self, node: Optional[TreeNode], mode: _Mode) -> str:
        if node is None:
            return BLANK
        handler = {
            NodeKind.OP: self._op,
            NodeKind.ID: self._id,
            NodeKind.CONST: self._const,
            NodeKind.FN: self._fn,
            NodeKind.TYPE: self._type,
            NodeKind.CALL: self._call,
            NodeKind.COND: self._cond,
            NodeKind.LOOP: self._loop,
            NodeKind.RETURN: self._return,
            NodeKind.ID_ARRAY: self._id_array,
        }.get(node.kind)
        if handler is None:
            return BLANK
        return handler(node, mode)

    def _op(self, node: TreeNode, mode: _Mode) -> str:
        left, right = node.children[0], node.children[1]
        name = self._gen(left, _Mode.VALUE)
        left_reg = self._last()
        self._gen(right, _Mode.VALUE)
        right_reg = self._last()
        if node.name != "=":
            self._emit(node.name, left_reg, right_reg, self._take())
            if mode is _Mode.PARAM and node.name in _ARITHMETIC:
                self._emit("param", self._last(), BLANK, BLANK)
                self._continue(node, _Mode.PARAM)
            return self._last()
        self._emit("asn", right_reg, BLANK, left_reg)
        assert left is not None
        if left.kind is not NodeKind.ID_ARRAY:
            self._emit("store", left_reg, BLANK, name)
        else:
            self._gen(left.children[0], _Mode.VALUE)
            self._emit("store", left_reg, self._last(), left.name)
        self._continue(node, _Mode.STATEMENT)
        return BLANK

    def _id(self, node: TreeNode, mode: _Mode) -> str:
        if mode is _Mode.PARAM:
            reg = self._current()
            self._emit("load", node.name, BLANK, reg)
            self._emit("param", reg, BLANK, BLANK)
            self.temp_index += 1
            self._continue(node, _Mode.PARAM)
            return BLANK
        if mode is _Mode.DECLARE:
            self._emit("alloc", node.name, "1", BLANK)
            return str(node.val)
        if mode is _Mode.ARG:
            self._emit("arg", node.name, BLANK, BLANK)
            return str(node.val)
        self._emit("load", node.name, BLANK, self._take())
        return node.name

    def _const(self, node: TreeNode, mode: _Mode) -> str:
        value = str(node.val)
        if mode is _Mode.PARAM:
            reg = self._current()
            self._emit("immed", value, BLANK, reg)
            self._emit("param", reg, BLANK, BLANK)
            self.temp_index += 1
            self._continue(node, _Mode.PARAM)
            return BLANK
        if mode is _Mode.VALUE:
            self._emit("immed", value, BLANK, self._take())
        return value

    def _fn(self, node: TreeNode, mode: _Mode) -> str:
        self.temp_index = 0
        self._emit("fun", node.name, BLANK, BLANK)
        self._gen(node.children[0], _Mode.ARG)
        self._gen(node.children[1], _Mode.STATEMENT)
        self._emit("endfun", BLANK, BLANK, BLANK)
        self._continue(node, _Mode.STATEMENT)
        return BLANK

    def _type(self, node: TreeNode, mode: _Mode) -> str:
        child = node.children[0]
        if mode is _Mode.ARG:
            if child is not None:
                self._gen(child, _Mode.ARG)
            self._continue(node, _Mode.ARG)
            return BLANK
        if child is not None:
            if child.kind is NodeKind.FN:
                self._gen(child, _Mode.STATEMENT)
            elif child.kind in (NodeKind.ID, NodeKind.ID_ARRAY):
                self._gen(child, _Mode.DECLARE)
        self._continue(node, _Mode.STATEMENT)
        return BLANK

    def _plain_call(self, node: TreeNode) -> str:
        args = node.children[0]
        count = 0
        if args is not None:
            count = count_params(args)
            self._gen(args, _Mode.PARAM)
        reg = self._current()
        self._emit("call", node.name, str(count), reg)
        return reg

    def _call(self, node: TreeNode, mode: _Mode) -> str:
        if mode is _Mode.STATEMENT:
            if is_special_function(node.name):
                self._special(node)
            elif node.name != "output":
                self._plain_call(node)
                self.temp_index += 1
            else:
                self._output(node)
            self._continue(node, _Mode.STATEMENT)
            return BLANK
        if mode is _Mode.VALUE:
            self._plain_call(node)
            self.temp_index += 1
            return self._last()
        reg = self._plain_call(node)
        self._emit("param", reg, BLANK, BLANK)
        self.temp_index += 1
        self._continue(node, _Mode.PARAM)
        return BLANK

    def _output(self, node: TreeNode) -> None:
        value = node.children[0]
        if value is None or value.kind not in _OUTPUT_VALUE_KINDS:
            raise CodeGenError("invalid use of function output")
        port = value.sibling
        if port is None or port.kind is not NodeKind.CONST:
            raise CodeGenError("invalid use of function output")
        self._gen(value, _Mode.VALUE)
        reg = self._last()
        self._emit("output", reg, self._gen(port, _Mode.STATEMENT), BLANK)

    def _cond(self, node: TreeNode, mode: _Mode) -> str:
        then_label, end_label = self._labels()
        test = self._gen(node.children[0], _Mode.PARAM)
        self._emit("if_t", test, then_label, BLANK)
        if node.children[2] is not None:
            self._gen(node.children[2], _Mode.STATEMENT)
        self._emit("goto", end_label, BLANK, BLANK)
        self._emit("label", then_label, BLANK, BLANK)
        self._gen(node.children[1], _Mode.STATEMENT)
        self._emit("label", end_label, BLANK, BLANK)
        self._continue(node, _Mode.STATEMENT)
        return BLANK

    def _loop(self, node: TreeNode, mode: _Mode) -> str:
        start_label, end_label = self._labels()
        self._emit("label", start_label, BLANK, BLANK)
        test = self._gen(node.children[0], _Mode.DECLARE)
        self._emit("if_f", test, end_label, BLANK)
        self._gen(node.children[1], _Mode.STATEMENT)
        self._emit("goto", start_label, BLANK, BLANK)
        self._emit("label", end_label, BLANK, BLANK)
        self._continue(node, _Mode.STATEMENT)
        return BLANK

    def _return(self, node: TreeNode, mode: _Mode) -> str:
        if node.children[0] is not None:
            self._gen(node.children[0], _Mode.VALUE)
            self._emit("ret", self._last(), BLANK, BLANK)
        else:
            self._emit("ret", BLANK, BLANK, BLANK)
        return BLANK

    def _id_array(self, node: TreeNode, mode: _Mode) -> str:
        if mode is _Mode.DECLARE:
            size = self._gen(node.children[0], _Mode.STATEMENT)
            self._emit("alloc", node.name, size, BLANK)
            return BLANK
        index = self._gen(node.children[0], _Mode.VALUE)
        reg = self._current()
        self._emit("load", node.name, self._last(), reg)
        if mode is _Mode.PARAM:
            self._emit("param", reg, BLANK, BLANK)
            self.temp_index += 1
            self._continue(node, _Mode.PARAM)
        else:
            self.temp_index += 1
        return f"{node.name}[{index}]"

    # built-in system functions

    def _arguments(self, node: TreeNode, expected: int) -> list[str]:
        args = node.children[0]
        if count_params(args) != expected:
            raise CodeGenError(f"invalid use of function {node.name}")
        regs = []
        for arg in args.siblings() if args is not None else ():
            self._gen(arg, _Mode.VALUE)
            regs.append(self._last())
        return regs

    def _special(self, node: TreeNode) -> None:
        name = node.name
        if name == "loadInstructions":
            data, instr, amount = self._arguments(node, 3)
            counter = self._take()
            cond = self._take()
            value = self._take()
            one = self._take()
            loop_label, end_label = self._labels()
            self._emit("immed", "0", BLANK, counter)
            self._emit("immed", "1", BLANK, one)
            self._emit("label", loop_label, BLANK, BLANK)
            self._emit("<", counter, amount, cond)
            self._emit("if_f", cond, end_label, BLANK)
            self._emit("loadAddr", data, BLANK, value)
            self._emit("writei", value, BLANK, instr)
            self._emit("+", data, one, data)
            self._emit("+", instr, one, instr)
            self._emit("+", counter, one, counter)
            self._emit("goto", loop_label, BLANK, BLANK)
            self._emit("label", end_label, BLANK, BLANK)
        elif name == "jumpAddr":
            (address,) = self._arguments(node, 1)
            self._emit("jumpAddr", address, BLANK, BLANK)
        elif name == "storeRegisters":
            (address,) = self._arguments(node, 1)
            self._emit("storeReg", address, BLANK, BLANK)
        elif name == "loadRegisters":
            (address,) = self._arguments(node, 1)
            self._emit("loadReg", address, BLANK, BLANK)
        elif name == "initializeRegisters":
            data, instr_start = self._arguments(node, 2)
            self._emit("initReg", data, instr_start, BLANK)
        elif name == "storeCurrentProcessRegisters":
            self._arguments(node, 0)
            self._emit("stpQnt", BLANK, BLANK, BLANK)
            self._emit("storeCurReg", BLANK, BLANK, BLANK)
        elif name == "kernelMode":
            reg = self._take()
            self._emit("immed", "0", BLANK, reg)
            self._emit("loadRegKernel", reg, BLANK, BLANK)