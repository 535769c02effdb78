"""Target instruction set: registers, instruction records and assembly listing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import Iterable, Optional


class InstrKind(Enum):
    ADD = auto()
    SUB = auto()
    ADDIM = auto()
    MULT = auto()
    DIV = auto()
    MV = auto()
    LOADI = auto()
    LOAD = auto()
    STORE = auto()
    BEQ = auto()
    BNE = auto()
    SLT = auto()
    SLTI = auto()
    AND = auto()
    OR = auto()
    NOT = auto()
    XOR = auto()
    JUMP = auto()
    JUMPR = auto()
    JAL = auto()
    SR = auto()
    SL = auto()
    MLO = auto()
    MHI = auto()
    NOP = auto()
    HALT = auto()
    IN = auto()
    OUT = auto()
    WRITEI = auto()
    RSTQNT = auto()
    STPQNT = auto()


class Register(IntEnum):
    """The 32 machine registers; the value is the register number."""

    ZERO = 0
    T0 = 1
    T1 = 2
    T2 = 3
    T3 = 4
    T4 = 5
    T5 = 6
    T6 = 7
    T7 = 8
    T8 = 9
    T9 = 10
    T10 = 11
    T11 = 12
    T12 = 13
    T13 = 14
    T14 = 15
    T15 = 16
    A0 = 17
    A1 = 18
    A2 = 19
    A3 = 20
    A4 = 21
    A5 = 22
    A6 = 23
    A7 = 24
    A8 = 25
    AUX = 26
    PC = 27
    V0 = 28
    SP = 29
    GP = 30
    RA = 31


class Format(Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"


class LineKind(Enum):
    LABEL = auto()
    INST = auto()


@dataclass
class Instruction:
    """One line of assembly: either a label or an instruction."""

    line_kind: LineKind
    line_number: int
    kind: Optional[InstrKind] = None
    format: Optional[Format] = None
    ra: Optional[Register] = None
    rb: Optional[Register] = None
    rc: Optional[Register] = None
    immediate: int = 0
    label: str = ""


_TEMPS = tuple(Register(n) for n in range(Register.T0, Register.T15 + 1))
_PARAMS = tuple(Register(n) for n in range(Register.A0, Register.A8 + 1))


def register_name(reg: Register) -> str:
    """Assembly spelling of a register, such as ``$t3`` or ``$zero``."""
    return "$" + Register(reg).name.lower()


def temp_register(name: str) -> Register:
    """Map a temporary name such as ``_t5`` to its register."""
    prefix, _, number = name.partition("_t")
    if prefix or not number.isdigit() or int(number) >= len(_TEMPS) or number != str(int(number)):
        raise ValueError(f"not a temporary register: {name!r}")
    return _TEMPS[int(number)]


def param_register(n: int) -> Register:
    """Register that carries the ``n``-th call argument."""
    if not 0 <= n < len(_PARAMS):
        raise ValueError(f"no parameter register for argument {n}")
    return _PARAMS[n]


def next_temp_register(reg: Register) -> Register:
    """The temporary after ``reg``, wrapping from ``$t15`` back to ``$t0``."""
    if reg not in _TEMPS:
        raise ValueError(f"not a temporary register: {reg!r}")
    return _TEMPS[(_TEMPS.index(reg) + 1) % len(_TEMPS)]


def _reg(reg: Optional[Register]) -> str:
    if reg is None:
        raise ValueError("instruction is missing a register operand")
    return register_name(reg)


def _body(instr: Instruction) -> Optional[str]:
    kind = instr.kind
    if kind is InstrKind.JUMP:
        return f"Jump {instr.label}"
    if kind is InstrKind.LOAD:
        return f"Load {_reg(instr.ra)},{_reg(instr.rb)},{instr.immediate}"
    if kind is InstrKind.STORE:
        return f"Store {_reg(instr.ra)},{_reg(instr.rb)},{instr.immediate}"
    if kind is InstrKind.LOADI:
        return f"Loadi {_reg(instr.ra)},{instr.immediate}"
    if kind is InstrKind.OUT:
        return f"Out {_reg(instr.ra)},{instr.immediate}"
    if kind is InstrKind.MV:
        return f"Mv {_reg(instr.ra)},{_reg(instr.rb)}"
    if kind is InstrKind.IN:
        return f"In {_reg(instr.ra)}"
    if kind is InstrKind.ADD:
        return f"Add {_reg(instr.ra)},{_reg(instr.rb)},{_reg(instr.rc)}"
    if kind is InstrKind.SUB:
        return f"Sub {_reg(instr.ra)},{_reg(instr.rb)},{_reg(instr.rc)}"
    if kind is InstrKind.MULT:
        return f"Mult {_reg(instr.ra)},{_reg(instr.rb)}"
    if kind is InstrKind.MLO:
        return f"mLo {_reg(instr.ra)}"
    if kind is InstrKind.DIV:
        return f"Div {_reg(instr.ra)},{_reg(instr.rb)}"
    if kind is InstrKind.MHI:
        return f"mHi {_reg(instr.ra)}"
    if kind is InstrKind.BEQ:
        return f"Beq {_reg(instr.ra)},{_reg(instr.rb)},{instr.label}"
    if kind is InstrKind.BNE:
        return f"Bne {_reg(instr.ra)},{_reg(instr.rb)},{instr.label}"
    if kind is InstrKind.SLT:
        return f"Slt {_reg(instr.ra)},{_reg(instr.rb)},{_reg(instr.rc)}"
    if kind is InstrKind.ADDIM:
        return f"Addim {_reg(instr.ra)},{_reg(instr.rb)},{instr.immediate}"
    if kind is InstrKind.JAL:
        return f"Jal {instr.label}"
    if kind is InstrKind.JUMPR:
        return f"Jumpr {_reg(instr.ra)}"
    if kind is InstrKind.HALT:
        return "Halt"
    if kind is InstrKind.WRITEI:
        return f"Writei {_reg(instr.ra)},{_reg(instr.rb)},{instr.immediate}"
    if kind is InstrKind.RSTQNT:
        return "rstQnt"
    if kind is InstrKind.STPQNT:
        return "stpQnt"
    return None


def format_instruction(instr: Instruction) -> str:
    """Render one listing line.

    Kinds without a listing form yield only the line number prefix.
    """
    if instr.line_kind is LineKind.LABEL:
        return f".{instr.label}\n"
    body = _body(instr)
    prefix = f"{instr.line_number}:"
    return prefix if body is None else f"{prefix}   {body}\n"


def format_assembly(instructions: Iterable[Instruction]) -> str:
    """Render a whole listing."""
    return "".join(format_instruction(instr) for instr in instructions)