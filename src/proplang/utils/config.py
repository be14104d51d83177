"""
Configuration constants to replace magic numbers throughout Proplang
"""

import os
import tempfile

# Parser configuration constants (cache under temp dir to avoid cluttering project root)
DEFAULT_PARSER_CACHE_FILE = os.path.join(tempfile.gettempdir(), "proplang_parser.cache")

# File encoding constants
DEFAULT_FILE_ENCODING = "utf-8"

# Stage artifact names (each stage's input defaults to the previous stage's output)
DEFAULT_SOURCE_FILE = "main.prop"
AST_DUMP_FILE = "ast.txt"
ANNOTATED_AST_FILE = "annotated_ast.txt"
SYMBOL_TABLE_FILE = "symbol_table.txt"
SEMANTIC_ERRORS_FILE = "semantic_errors.txt"
PROGRAM_FILE = "program.s"
GENERATION_ERRORS_FILE = "generation_errors.txt"

# Interchange text layout
INDENT_WIDTH = 2  # spaces per tree depth level

# Symbol table constants
DEFAULT_SYMBOL_TABLE_BUCKETS = 101  # prime bucket count
DJB2_SEED = 5381
HASH_MASK = 0xFFFFFFFF  # hash arithmetic is unsigned 32-bit

# Register machine constants
STACK_SLOT_SIZE = 8  # bytes per variable slot (64-bit word)
DEFAULT_TARGET = "x86_64"
MAX_EXECUTION_STEPS = 100_000  # runtime guard against non-terminating jumps
