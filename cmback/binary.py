"""Encoding of assembly instructions into 32-bit machine words."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from cmback.isa import Format, Instruction, InstrKind, LineKind, Register

FIRST_RAM_LINE = 2

_FIELD_WIDTHS = {
    Format.A: (6, 5, 5, 5, 11),
    Format.B: (6, 5, 5, 16),
    Format.C: (6, 5, 21),
    Format.D: (6, 26),
}

_OPCODES: dict[InstrKind, tuple[int, Format]] = {
    InstrKind.NOP: (0, Format.D),
    InstrKind.ADDIM: (1, Format.B),
    InstrKind.SUB: (2, Format.A),
    InstrKind.MULT: (3, Format.B),
    InstrKind.DIV: (4, Format.B),
    InstrKind.AND: (5, Format.A),
    InstrKind.OR: (6, Format.A),
    InstrKind.XOR: (7, Format.A),
    InstrKind.NOT: (8, Format.B),
    InstrKind.SR: (9, Format.B),
    InstrKind.SL: (10, Format.B),
    InstrKind.MV: (11, Format.B),
    InstrKind.MLO: (12, Format.C),
    InstrKind.MHI: (13, Format.C),
    InstrKind.LOAD: (14, Format.B),
    InstrKind.LOADI: (15, Format.C),
    InstrKind.STORE: (16, Format.B),
    InstrKind.BEQ: (17, Format.B),
    InstrKind.BNE: (18, Format.B),
    InstrKind.SLT: (19, Format.A),
    InstrKind.SLTI: (20, Format.B),
    InstrKind.JUMP: (21, Format.D),
    InstrKind.JUMPR: (22, Format.C),
    InstrKind.JAL: (23, Format.D),
    InstrKind.IN: (24, Format.C),
    InstrKind.OUT: (25, Format.C),
    InstrKind.ADD: (26, Format.A),
    InstrKind.HALT: (27, Format.D),
    InstrKind.WRITEI: (28, Format.B),
    InstrKind.RSTQNT: (30, Format.D),
    InstrKind.STPQNT: (31, Format.D),
}

_BRANCHES = frozenset({InstrKind.BEQ, InstrKind.BNE})
_JUMPS = frozenset({InstrKind.JUMP, InstrKind.JAL})


def _bits(value: int, width: int) -> str:
    """Low ``width`` bits of ``value`` in two's complement, most significant first."""
    return format(value & ((1 << width) - 1), f"0{width}b")


@dataclass(frozen=True)
class BinaryInstruction:
    """A machine instruction split into its encoded fields."""

    opcode: int
    format: Format
    ra: int = 0
    rb: int = 0
    rc: int = 0
    imed: int = 0

    def _fields(self) -> tuple[int, ...]:
        if self.format is Format.A:
            return (self.opcode, self.ra, self.rb, self.rc, 0)
        if self.format is Format.B:
            return (self.opcode, self.ra, self.rb, self.imed)
        if self.format is Format.C:
            return (self.opcode, self.ra, self.imed)
        return (self.opcode, self.imed)

    def to_verilog(self, line: int) -> str:
        """Render the instruction as a Verilog RAM initialisation line."""
        parts = ",".join(
            f"{width}'b{_bits(value, width)}"
            for value, width in zip(self._fields(), _FIELD_WIDTHS[self.format])
        )
        return f"ram[{line}] = {{{parts}}};\n"


def register_number(reg: Register) -> int:
    """Hardware number of a register."""
    return int(Register(reg))


def _number(reg: Optional[Register], instr: Instruction) -> int:
    if reg is None:
        raise ValueError(f"instruction on line {instr.line_number} is missing a register")
    return register_number(reg)


def _label_line(label_lines: Mapping[str, int], instr: Instruction) -> int:
    try:
        return label_lines[instr.label]
    except KeyError:
        raise ValueError(
            f"undefined label {instr.label!r} on line {instr.line_number}"
        ) from None


def _encode_one(
    instr: Instruction, label_lines: Mapping[str, int]
) -> Optional[BinaryInstruction]:
    if instr.kind is None or instr.kind not in _OPCODES:
        return None
    opcode, fmt = _OPCODES[instr.kind]
    kind = instr.kind
    if fmt is Format.A:
        return BinaryInstruction(
            opcode,
            fmt,
            ra=_number(instr.ra, instr),
            rb=_number(instr.rb, instr),
            rc=_number(instr.rc, instr),
        )
    if fmt is Format.B:
        if kind in _BRANCHES:
            imed = _label_line(label_lines, instr) - instr.line_number - 1
        else:
            imed = instr.immediate
        return BinaryInstruction(
            opcode, fmt, ra=_number(instr.ra, instr), rb=_number(instr.rb, instr), imed=imed
        )
    if fmt is Format.C:
        return BinaryInstruction(opcode, fmt, ra=_number(instr.ra, instr), imed=instr.immediate)
    imed = _label_line(label_lines, instr) if kind in _JUMPS else 0
    return BinaryInstruction(opcode, fmt, imed=imed)


def encode(
    instructions: Iterable[Instruction], label_lines: Mapping[str, int]
) -> list[BinaryInstruction]:
    """Encode the instruction lines; labels and kinds without an encoding are skipped."""
    encoded = []
    for instr in instructions:
        if instr.line_kind is not LineKind.INST:
            continue
        binary = _encode_one(instr, label_lines)
        if binary is not None:
            encoded.append(binary)
    return encoded


def format_binary(binary_instructions: Iterable[BinaryInstruction]) -> str:
    """Render encoded instructions as consecutive RAM lines starting at line 2."""
    return "".join(
        instr.to_verilog(line)
        for line, instr in enumerate(binary_instructions, start=FIRST_RAM_LINE)
    )