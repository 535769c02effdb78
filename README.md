# cmback

The back end of a small C-minus compiler. Given a syntax tree and a symbol
table, it produces three-address quadruples, then assembly for a simple
32-register machine, and finally binary instruction words written as Verilog
RAM initialisers.

## Pipeline

1. **Syntax tree**: `cmback.tree` holds `NodeKind` and `TreeNode`. A node
   has up to three `children` and a `sibling` chain, which you can walk with
   `TreeNode.siblings()`. `show_tree` returns a readable dump of a tree.
   `count_params`, `opposite_operator`, `tab_generator` and `is_assignment`
   are small helpers that work on nodes and operators.
2. **Symbol table**: `cmback.symtab.SymbolTable` stores `Symbol` entries by
   name and scope, with their `TypeID`, `DataType`, source lines and memory
   location and position. The global scope is the single-space string
   `GLOBAL_SCOPE`. Lookups that find nothing raise `KeyError`.
3. **Quadruples**: `cmback.codegen.QuadGenerator.generate(tree)` walks the
   tree and fills a `cmback.quad.QuadList` of `Quad` records. The first
   quadruple in the list is always a jump to `main`. Built-in system calls
   (`loadInstructions`, `jumpAddr`, `storeRegisters`, `loadRegisters`,
   `initializeRegisters`, `storeCurrentProcessRegisters`, `kernelMode`) are
   recognised by `is_special_function`. Calling one of them, or `output`,
   with the wrong arguments raises `CodeGenError`.
4. **Assembly**: `cmback.asmgen.AssemblyGenerator(symtab).generate(quads)`
   returns a list of `cmback.isa.Instruction` records. It records memory
   positions in the symbol table as it goes, and collects label positions in
   `label_lines`. `cmback.isa.format_assembly` renders the listing. The
   generator raises `AssemblyError` in three cases: parameters are passed
   wrongly, a symbol is unknown, or a comparison is not followed by a branch.
5. **Binary**: `cmback.binary.encode(instructions, label_lines)` maps the
   instructions to `BinaryInstruction` values. `format_binary` renders them
   as consecutive lines starting at `ram[2]`, such as:

   ```
   ram[2] = {6'b000001,5'b11101,5'b11110,16'b0000000000000000};
   ```

## Example

```python
from cmback.asmgen import AssemblyGenerator
from cmback.binary import encode, format_binary
from cmback.codegen import QuadGenerator
from cmback.isa import format_assembly
from cmback.symtab import GLOBAL_SCOPE, DataType, SymbolTable, TypeID
from cmback.tree import NodeKind, TreeNode

# void main(void) { output(7, 1); }
value = TreeNode(NodeKind.CONST, val=7, sibling=TreeNode(NodeKind.CONST, val=1))
call = TreeNode(NodeKind.CALL, name="output", children=[value, None, None])
main = TreeNode(NodeKind.FN, name="main", children=[None, call, None])
tree = TreeNode(NodeKind.TYPE, name="void", children=[main, None, None])

symtab = SymbolTable()
symtab.insert("main", TypeID.FUNC, GLOBAL_SCOPE, DataType.VOID, 1, 0, False)

quads = QuadGenerator().generate(tree)
print(quads.format())

assembler = AssemblyGenerator(symtab)
instructions = assembler.generate(quads)
print(format_assembly(instructions))
print(format_binary(encode(instructions, assembler.label_lines)))
```

## Output formats

- `QuadList.format()` gives one `(op,arg1,arg2,arg3)` per line.
  `QuadList.write(path)` saves the same text to a file.
- `SymbolTable.format()` lists every symbol with its scope, types, memory
  location and position, and line numbers (newest first).
- `format_assembly` prints labels as `.name` and instructions as
  `line:   Op operands`.
- `format_binary` prints one `ram[n] = {...};` line for each encoded
  instruction.

## What it does not do

The package has no lexer, parser or semantic analysis. You build the
`TreeNode` tree and fill the `SymbolTable` yourself. There is no
command-line program either; the stages are used as a library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```