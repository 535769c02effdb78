import pytest

from cmback.asmgen import AssemblyError, AssemblyGenerator
from cmback.isa import InstrKind, LineKind, Register, format_assembly
from cmback.quad import Quad
from cmback.symtab import DataType, SymbolTable, TypeID

B = " "


def q(op, arg1=B, arg2=B, arg3=B):
    return Quad(op, arg1, arg2, arg3)


def make_table():
    table = SymbolTable()
    table.insert("main", TypeID.FUNC, B, DataType.VOID, 1, 1, False)
    table.insert("f", TypeID.FUNC, B, DataType.INT, 1, 1, False)
    table.insert("g", TypeID.FUNC, B, DataType.VOID, 1, 1, False)
    return table


def kinds(instructions):
    return [i.kind for i in instructions if i.line_kind is LineKind.INST]


def body(instructions):
    """Instructions without the stack setup at the front and the final halt."""
    return instructions[1:-1]


def test_empty_program_listing():
    result = AssemblyGenerator(SymbolTable()).generate([])
    assert format_assembly(result) == "2:   Addim $sp,$gp,0\n3:   Halt\n"


def test_labels_record_their_line():
    gen = AssemblyGenerator(make_table())
    result = gen.generate([q("goto", "main"), q("fun", "main"), q("endfun")])
    label = next(i for i in result if i.line_kind is LineKind.LABEL)
    assert label.label == "main"
    assert gen.label_lines["main"] == label.line_number
    assert kinds(result) == [InstrKind.ADDIM, InstrKind.JUMP, InstrKind.HALT]


def test_void_function_returns_but_main_does_not():
    result = AssemblyGenerator(make_table()).generate(
        [q("fun", "g"), q("endfun"), q("fun", "main"), q("endfun")]
    )
    jumps = [i for i in result if i.kind is InstrKind.JUMPR]
    assert len(jumps) == 1
    assert jumps[0].ra is Register.RA


def test_global_allocation_sets_positions_and_stack():
    table = make_table()
    table.insert("v", TypeID.VAR, B, DataType.INT, 1, 0, False)
    table.insert("x", TypeID.VAR, B, DataType.INT, 1, 1, False)
    result = AssemblyGenerator(table).generate([q("alloc", "v", "10"), q("alloc", "x", "1")])
    assert table.mem_pos("v", B) == 0
    assert table.mem_pos("x", B) == 10
    assert result[0].kind is InstrKind.ADDIM
    assert result[0].immediate == 11


def test_global_scalar_and_array_loads():
    table = make_table()
    table.insert("v", TypeID.VAR, B, DataType.INT, 1, 0, False)
    table.insert("x", TypeID.VAR, B, DataType.INT, 1, 1, False)
    gen = AssemblyGenerator(table)
    result = gen.generate(
        [q("alloc", "v", "10"), q("alloc", "x", "1"), q("load", "x", B, "_t0"), q("load", "v", B, "_t1")]
    )
    assert kinds(body(result)) == [InstrKind.LOAD, InstrKind.MV, InstrKind.ADDIM]
    load = body(result)[0]
    assert (load.ra, load.rb, load.immediate) == (Register.T0, Register.GP, table.mem_pos("x", B))


def test_immed_and_output():
    result = AssemblyGenerator(make_table()).generate(
        [q("immed", "5", B, "_t0"), q("output", "_t0", "2")]
    )
    assert format_assembly(body(result)) == "3:   Loadi $t0,5\n4:   Out $t0,2\n"


@pytest.mark.parametrize(
    "op,branch,expected",
    [
        ("==", "if_t", InstrKind.BEQ),
        ("==", "if_f", InstrKind.BNE),
        ("!=", "if_t", InstrKind.BNE),
        ("!=", "if_f", InstrKind.BEQ),
    ],
)
def test_equality_merges_with_branch(op, branch, expected):
    result = AssemblyGenerator(make_table()).generate(
        [q(op, "_t0", "_t1", "_t2"), q(branch, "_t2", "_L0")]
    )
    (instr,) = body(result)
    assert instr.kind is expected
    assert (instr.ra, instr.rb, instr.label) == (Register.T0, Register.T1, "_L0")


def test_equality_without_branch_fails():
    with pytest.raises(AssemblyError):
        AssemblyGenerator(make_table()).generate([q("==", "_t0", "_t1", "_t2")])


def test_greater_swaps_operands():
    result = AssemblyGenerator(make_table()).generate([q(">", "_t0", "_t1", "_t2")])
    (instr,) = body(result)
    assert (instr.kind, instr.ra, instr.rb, instr.rc) == (
        InstrKind.SLT,
        Register.T1,
        Register.T0,
        Register.T2,
    )


def test_call_without_enough_params_fails():
    with pytest.raises(AssemblyError):
        AssemblyGenerator(make_table()).generate([q("call", "f", "1", "_t0")])


def test_call_saves_and_restores_busy_registers():
    result = AssemblyGenerator(make_table()).generate(
        [
            q("fun", "main"),
            q("immed", "1", B, "_t1"),
            q("immed", "7", B, "_t0"),
            q("param", "_t0"),
            q("call", "f", "1", "_t2"),
            q("endfun"),
        ]
    )
    seq = [i for i in body(result) if i.line_kind is LineKind.INST]
    assert kinds(seq) == [
        InstrKind.LOADI,
        InstrKind.LOADI,
        InstrKind.MV,
        InstrKind.STORE,
        InstrKind.STORE,
        InstrKind.ADDIM,
        InstrKind.JAL,
        InstrKind.ADDIM,
        InstrKind.LOAD,
        InstrKind.LOAD,
        InstrKind.MV,
    ]
    assert (seq[2].ra, seq[2].rb) == (Register.A0, Register.T0)
    assert seq[4].ra is Register.T1
    assert seq[8].ra is Register.T1
    assert seq[4].immediate == seq[8].immediate
    assert seq[5].immediate == -seq[7].immediate
    assert seq[6].label == "f"
    assert (seq[10].ra, seq[10].rb) == (Register.T2, Register.V0)


def test_input_call():
    result = AssemblyGenerator(make_table()).generate([q("call", "input", "0", "_t3")])
    (instr,) = body(result)
    assert (instr.kind, instr.ra) == (InstrKind.IN, Register.T3)


def test_store_registers_saves_all():
    result = AssemblyGenerator(make_table()).generate([q("storeReg", "_t0")])
    seq = body(result)
    assert seq[0].kind is InstrKind.STPQNT
    stores = seq[1:]
    assert len(stores) == len(Register)
    assert all(s.kind is InstrKind.STORE and s.rb is Register.T0 for s in stores)
    assert [s.immediate for s in stores] == [int(r) for r in Register]


def test_load_registers_skips_aux_and_resumes():
    result = AssemblyGenerator(make_table()).generate([q("loadReg", "_t0")])
    seq = body(result)
    assert (seq[0].kind, seq[0].ra, seq[0].rb) == (InstrKind.MV, Register.AUX, Register.T0)
    loads = [i for i in seq if i.kind is InstrKind.LOAD]
    assert Register.AUX not in [i.ra for i in loads]
    assert len(loads) == len(Register) - 1
    assert kinds(seq[-2:]) == [InstrKind.RSTQNT, InstrKind.JUMPR]
    assert seq[-1].ra is Register.PC


def test_arguments_are_stored_from_param_registers():
    table = make_table()
    table.insert("a", TypeID.VAR, "f", DataType.INT, 1, 1, True)
    table.insert("b", TypeID.VAR, "f", DataType.INT, 1, 1, True)
    result = AssemblyGenerator(table).generate([q("fun", "f"), q("arg", "a"), q("arg", "b")])
    stores = [i for i in result if i.kind is InstrKind.STORE]
    assert [s.ra for s in stores] == [Register.A0, Register.A1]
    assert table.mem_pos("a", "f") == stores[0].immediate
    assert table.mem_pos("b", "f") == stores[1].immediate


def test_line_numbers_are_consecutive():
    result = AssemblyGenerator(make_table()).generate(
        [q("immed", "1", B, "_t0"), q("immed", "2", B, "_t1"), q("+", "_t0", "_t1", "_t2")]
    )
    lines = [i.line_number for i in result[1:]]
    assert lines == list(range(lines[0], lines[0] + len(lines)))


def test_bad_register_name_fails():
    with pytest.raises(AssemblyError):
        AssemblyGenerator(make_table()).generate([q("immed", "1", B, "_t99")])


def test_unknown_symbol_fails():
    with pytest.raises(AssemblyError):
        AssemblyGenerator(make_table()).generate([q("fun", "main"), q("load", "zz", B, "_t0")])