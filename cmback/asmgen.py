"""Translation of quadruples into target assembly instructions."""

from __future__ import annotations

from typing import Iterable, Optional

from cmback.isa import (
    Format,
    Instruction,
    InstrKind,
    LineKind,
    Register,
    next_temp_register,
    param_register,
    register_name,
    temp_register,
)
from cmback.quad import BLANK, Quad
from cmback.symtab import GLOBAL_SCOPE, DataType, SymbolTable

FIRST_LINE = 3
STACK_SETUP_LINE = 2
REGISTER_COUNT = 32


class AssemblyError(Exception):
    """Raised when the quadruples cannot be translated."""


def _reg(name: str) -> Register:
    try:
        return temp_register(name)
    except ValueError as exc:
        raise AssemblyError(str(exc)) from exc


def _temp_name(reg: Register) -> str:
    return "_" + register_name(reg)[1:]


class AssemblyGenerator:
    """Turns a quadruple sequence into a list of assembly lines.

    Memory positions of variables are recorded in the symbol table as they are
    allocated; label positions are collected in :attr:`label_lines`.
    """

    def __init__(self, symtab: SymbolTable) -> None:
        self.symtab = symtab
        self.instructions: list[Instruction] = []
        self.label_lines: dict[str, int] = {}
        self._reset()

    def _reset(self) -> None:
        self.instructions = []
        self.label_lines = {}
        self._busy: list[str] = []
        self._params: list[Register] = []
        self._line = FIRST_LINE
        self._function = BLANK
        self._mem_global = 0
        self._mem_local = 0
        self._arg_counter = 0

    # emission helpers

    def _emit(
        self,
        kind: InstrKind,
        fmt: Optional[Format],
        ra: Optional[Register] = None,
        rb: Optional[Register] = None,
        rc: Optional[Register] = None,
        immediate: int = 0,
        label: str = "",
    ) -> None:
        self.instructions.append(
            Instruction(LineKind.INST, self._line, kind, fmt, ra, rb, rc, immediate, label)
        )
        self._line += 1

    def _a(self, kind: InstrKind, ra: Register, rb: Register, rc: Register) -> None:
        self._emit(kind, Format.A, ra, rb, rc)

    def _b(self, kind: InstrKind, ra: Register, rb: Register, immediate: int) -> None:
        self._emit(kind, Format.B, ra, rb, immediate=immediate)

    def _c(self, kind: InstrKind, ra: Register, immediate: int) -> None:
        self._emit(kind, Format.C, ra, immediate=immediate)

    def _d(self, kind: InstrKind, immediate: int = 0) -> None:
        self._emit(kind, Format.D, immediate=immediate)

    def _jump(self, kind: InstrKind, label: str) -> None:
        self._emit(kind, None, label=label)

    def _branch(self, kind: InstrKind, ra: Register, rb: Register, label: str) -> None:
        self._emit(kind, Format.B, ra, rb, label=label)

    def _label(self, label: str) -> None:
        self.instructions.append(Instruction(LineKind.LABEL, self._line, label=label))
        self.label_lines.setdefault(label, self._line)

    def _free(self, *names: str) -> None:
        self._busy = [name for name in self._busy if name not in names]

    def _hold(self, name: str) -> None:
        self._busy.append(name)

    # main loop

    def generate(self, quads: Iterable[Quad]) -> list[Instruction]:
        """Translate the quadruples and return the assembly lines."""
        self._reset()
        stream = iter(quads)
        for quad in stream:
            try:
                self._translate(quad, stream)
            except KeyError as exc:
                raise AssemblyError(f"unknown symbol in {quad}: {exc}") from exc
        self.instructions.insert(
            0,
            Instruction(
                LineKind.INST,
                STACK_SETUP_LINE,
                InstrKind.ADDIM,
                Format.B,
                Register.SP,
                Register.GP,
                immediate=self._mem_global,
            ),
        )
        self.instructions.append(
            Instruction(LineKind.INST, self._line, InstrKind.HALT, Format.D)
        )
        return self.instructions

    def _translate(self, quad: Quad, stream) -> None:
        op = quad.op
        if op == "goto":
            self._jump(InstrKind.JUMP, quad.arg1)
        elif op == "fun":
            self._mem_local = 0
            self._arg_counter = 0
            self._function = quad.arg1
            self._label(quad.arg1)
        elif op == "label":
            self._label(quad.arg1)
        elif op == "endfun":
            if (
                self.symtab.data_type(self._function, GLOBAL_SCOPE) is DataType.VOID
                and self._function != "main"
            ):
                self._c(InstrKind.JUMPR, Register.RA, 0)
            self._function = BLANK
        elif op == "alloc":
            self._alloc(quad)
        elif op == "load":
            self._load(quad)
        elif op == "immed":
            self._c(InstrKind.LOADI, _reg(quad.arg3), int(quad.arg1))
            self._hold(quad.arg3)
        elif op == "asn":
            self._b(InstrKind.MV, _reg(quad.arg3), _reg(quad.arg1), 0)
            self._hold(quad.arg3)
            self._free(quad.arg1)
        elif op == "store":
            self._store(quad)
        elif op == "param":
            self._params.append(_reg(quad.arg1))
        elif op == "call":
            self._call(quad)
        elif op in ("+", "-"):
            kind = InstrKind.ADD if op == "+" else InstrKind.SUB
            self._a(kind, _reg(quad.arg1), _reg(quad.arg2), _reg(quad.arg3))
            self._binary_done(quad)
        elif op in ("*", "/"):
            kind, move = (
                (InstrKind.MULT, InstrKind.MLO) if op == "*" else (InstrKind.DIV, InstrKind.MHI)
            )
            self._b(kind, _reg(quad.arg1), _reg(quad.arg2), 0)
            self._c(move, _reg(quad.arg3), 0)
            self._binary_done(quad)
        elif op in ("==", "!="):
            self._equality(quad, stream)
        elif op == "<":
            self._a(InstrKind.SLT, _reg(quad.arg1), _reg(quad.arg2), _reg(quad.arg3))
            self._binary_done(quad)
        elif op == ">":
            self._a(InstrKind.SLT, _reg(quad.arg2), _reg(quad.arg1), _reg(quad.arg3))
            self._binary_done(quad)
        elif op == "<=":
            right = _reg(quad.arg2)
            self._b(InstrKind.ADDIM, right, right, 1)
            self._a(InstrKind.SLT, _reg(quad.arg1), right, _reg(quad.arg3))
            self._binary_done(quad)
        elif op == ">=":
            left = _reg(quad.arg1)
            self._b(InstrKind.ADDIM, left, left, 1)
            self._a(InstrKind.SLT, _reg(quad.arg2), left, _reg(quad.arg3))
            self._binary_done(quad)
        elif op in ("if_t", "if_f"):
            kind = InstrKind.BNE if op == "if_t" else InstrKind.BEQ
            self._branch(kind, _reg(quad.arg1), Register.ZERO, quad.arg2)
            self._free(quad.arg1)
        elif op == "ret":
            if quad.arg1 != BLANK:
                self._b(InstrKind.MV, Register.V0, _reg(quad.arg1), 0)
            self._c(InstrKind.JUMPR, Register.RA, 0)
            self._free(quad.arg1)
        elif op == "arg":
            self.symtab.set_mem_pos(quad.arg1, self._function, self._mem_local)
            self._mem_local += 1
            self._b(
                InstrKind.STORE,
                param_register(self._arg_counter),
                Register.SP,
                self._arg_counter,
            )
            self._arg_counter += 1
        elif op == "output":
            self._c(InstrKind.OUT, _reg(quad.arg1), int(quad.arg2))
            self._free(quad.arg1)
        elif op == "loadAddr":
            self._b(InstrKind.LOAD, _reg(quad.arg3), _reg(quad.arg1), 0)
        elif op == "jumpAddr":
            self._c(InstrKind.JUMPR, _reg(quad.arg1), 0)
        elif op == "writei":
            self._b(InstrKind.WRITEI, _reg(quad.arg1), _reg(quad.arg3), 0)
        elif op == "storeReg":
            self._d(InstrKind.STPQNT)
            base = _reg(quad.arg1)
            for reg in Register:
                self._b(InstrKind.STORE, reg, base, int(reg))
        elif op in ("loadReg", "loadRegKernel"):
            self._b(InstrKind.MV, Register.AUX, _reg(quad.arg1), 0)
            for reg in Register:
                if reg is not Register.AUX:
                    self._b(InstrKind.LOAD, reg, Register.AUX, int(reg))
            if op == "loadReg":
                self._d(InstrKind.RSTQNT)
                self._c(InstrKind.JUMPR, Register.PC, 0)
        elif op == "initReg":
            value, base = _reg(quad.arg2), _reg(quad.arg1)
            self._b(InstrKind.STORE, value, base, int(Register.PC))
            self._b(InstrKind.STORE, value, base, int(Register.GP))
        elif op == "storeCurReg":
            for reg in Register:
                self._b(InstrKind.STORE, reg, Register.AUX, int(reg))
        elif op == "stpQnt":
            self._d(InstrKind.STPQNT)
        elif op == "rstQnt":
            self._d(InstrKind.RSTQNT)

    # individual operations

    def _binary_done(self, quad: Quad) -> None:
        self._hold(quad.arg3)
        self._free(quad.arg1, quad.arg2)

    def _alloc(self, quad: Quad) -> None:
        size = int(quad.arg2)
        if self._function == BLANK:
            self.symtab.set_mem_pos(quad.arg1, GLOBAL_SCOPE, self._mem_global)
            self._mem_global += size
        else:
            self.symtab.set_mem_pos(quad.arg1, self._function, self._mem_local)
            self._mem_local += size

    def _load(self, quad: Quad) -> None:
        name, index, target = quad.arg1, quad.arg2, quad.arg3
        dest = _reg(target)
        if self.symtab.is_global(name):
            pos = self.symtab.mem_pos(name, GLOBAL_SCOPE)
            if index == BLANK:
                if self.symtab.mem_loc(name, GLOBAL_SCOPE) == 1:
                    self._b(InstrKind.LOAD, dest, Register.GP, pos)
                else:
                    self._b(InstrKind.MV, dest, Register.GP, 0)
                    self._b(InstrKind.ADDIM, dest, dest, pos)
            else:
                offset = _reg(index)
                self._a(InstrKind.ADD, offset, Register.GP, offset)
                self._b(InstrKind.LOAD, dest, offset, pos)
        else:
            scope = self._function
            if index == BLANK:
                if self.symtab.mem_loc(name, scope) == 1 or self.symtab.is_arg(name, scope):
                    self._b(InstrKind.LOAD, dest, Register.SP, self.symtab.mem_pos(name, scope))
                else:
                    self._b(InstrKind.MV, dest, Register.SP, 0)
                    self._b(InstrKind.ADDIM, dest, dest, self.symtab.mem_pos(name, scope))
            else:
                offset = _reg(index)
                pos = self.symtab.mem_pos(name, scope)
                if not self.symtab.is_arg(name, scope):
                    self._a(InstrKind.ADD, offset, Register.SP, offset)
                    self._b(InstrKind.LOAD, dest, offset, pos)
                else:
                    self._b(InstrKind.LOAD, dest, Register.SP, pos)
                    self._a(InstrKind.ADD, offset, dest, offset)
                    self._b(InstrKind.LOAD, dest, offset, 0)
        self._hold(target)
        if index != BLANK:
            self._free(index)

    def _store(self, quad: Quad) -> None:
        source, index, name = _reg(quad.arg1), quad.arg2, quad.arg3
        if self.symtab.is_global(name):
            pos = self.symtab.mem_pos(name, GLOBAL_SCOPE)
            if index == BLANK:
                self._b(InstrKind.STORE, source, Register.GP, pos)
            else:
                offset = _reg(index)
                self._a(InstrKind.ADD, offset, Register.GP, offset)
                self._b(InstrKind.STORE, source, offset, pos)
        else:
            scope = self._function
            pos = self.symtab.mem_pos(name, scope)
            if index == BLANK:
                self._b(InstrKind.STORE, source, Register.SP, pos)
            elif not self.symtab.is_arg(name, scope):
                offset = _reg(index)
                self._a(InstrKind.ADD, offset, Register.SP, offset)
                self._b(InstrKind.STORE, source, offset, pos)
            else:
                offset = _reg(index)
                base = next_temp_register(offset)
                self._b(InstrKind.LOAD, base, Register.SP, pos)
                self._a(InstrKind.ADD, offset, base, offset)
                self._b(InstrKind.STORE, source, offset, 0)
        self._free(quad.arg1)
        if index != BLANK:
            self._free(index)

    def _call(self, quad: Quad) -> None:
        if quad.arg1 == "input":
            self._c(InstrKind.IN, _reg(quad.arg3), 0)
            self._hold(quad.arg3)
            return
        for position in reversed(range(int(quad.arg2))):
            if not self._params:
                raise AssemblyError(f"wrong parameter passing in function {quad.arg1}")
            reg = self._params.pop()
            self._free(_temp_name(reg))
            self._b(InstrKind.MV, param_register(position), reg, 0)
        frame = self._mem_local
        self._b(InstrKind.STORE, Register.RA, Register.SP, frame)
        saved = list(self._busy)
        for offset, name in enumerate(saved, start=1):
            self._b(InstrKind.STORE, _reg(name), Register.SP, frame + offset)
        size = frame + 1 + len(saved)
        self._b(InstrKind.ADDIM, Register.SP, Register.SP, size)
        self._jump(InstrKind.JAL, quad.arg1)
        self._b(InstrKind.ADDIM, Register.SP, Register.SP, -size)
        for offset, name in reversed(list(enumerate(saved, start=1))):
            self._b(InstrKind.LOAD, _reg(name), Register.SP, frame + offset)
        self._b(InstrKind.LOAD, Register.RA, Register.SP, frame)
        if quad.arg3 != BLANK:
            self._hold(quad.arg3)
            self._b(InstrKind.MV, _reg(quad.arg3), Register.V0, 0)

    def _equality(self, quad: Quad, stream) -> None:
        left, right = _reg(quad.arg1), _reg(quad.arg2)
        if quad.op == "==":
            self._free(quad.arg1, quad.arg2)
        branch = next(stream, None)
        if branch is None:
            raise AssemblyError(f"comparison {quad} is not followed by a branch")
        if quad.op == "!=":
            self._free(branch.arg1, branch.arg2)
        on_true = branch.op == "if_t"
        if quad.op == "==":
            kind = InstrKind.BEQ if on_true else InstrKind.BNE
        else:
            kind = InstrKind.BNE if on_true else InstrKind.BEQ
        self._branch(kind, left, right, branch.arg2)