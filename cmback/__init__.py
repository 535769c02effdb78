"""Compiler back end: syntax tree, symbol table, quadruples, assembly and binary encoding."""

__version__ = "0.1.0"
__all__ = ["quad", "tree", "symtab", "codegen", "isa", "asmgen", "binary"]