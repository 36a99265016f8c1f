"""
app/parsing package marker.
"""

from app.parsing.sql_values import (
    extract_table,
    extract_values_block,
    extract_values_blocks,
    normalize_value,
    tokenize,
)

__all__ = [
    "extract_table",
    "extract_values_block",
    "extract_values_blocks",
    "normalize_value",
    "tokenize",
]
