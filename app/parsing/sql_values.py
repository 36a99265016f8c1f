"""
app/parsing/sql_values.py

Tokenizer for the VALUES payload of MySQL-style INSERT statements.

Only flat ``INSERT INTO `table` VALUES (...), (...);`` statements with scalar
values are understood. The tokenizer is a character-level state machine:

    SEEKING   skip whitespace and commas between tuples, "(" opens a tuple
    IN_TUPLE  accumulate raw tuple text, tracking quoted spans and paren depth

Captured tuple text is then split on unquoted commas and each field is
normalized (NULL -> None, quoted strings unwrapped and unescaped, anything
else kept verbatim). Malformed input never raises: bad tuples are counted in
ParseStats and dropped.
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from app.domain.locations import ParsedTuple, ParseStats, RejectedTuple, TokenizeResult, Value

logger = logging.getLogger(__name__)

_QUOTES = frozenset({"'", '"'})
_BACKSLASH_ESCAPES = {"'": "'", '"': '"', "\\": "\\"}
_STATEMENT_SEPARATOR = ",\n"
_INSERT_TEMPLATE = r"INSERT\s+(?:IGNORE\s+)?INTO\s+`?{table}`?\s*(?:\([^)]*\)\s*)?VALUES\s*"


class _ScanState(Enum):
    SEEKING = "seeking"
    IN_TUPLE = "in_tuple"


def tokenize(values_block: str, expected_arity: int) -> TokenizeResult:
    """
    Turn a VALUES payload into ParsedTuples of exactly ``expected_arity`` fields.

    Tuples with any other field count are recorded in ``stats.rejected`` and
    excluded from the result.
    """

    stats = ParseStats()
    tuples: list[ParsedTuple] = []

    for row_index, raw_tuple in _scan_tuples(values_block, stats):
        fields = _split_fields(raw_tuple)
        if len(fields) != expected_arity:
            stats.tuples_rejected += 1
            stats.rejected.append(
                RejectedTuple(
                    row_index=row_index,
                    field_count=len(fields),
                    reason=f"expected {expected_arity} fields, found {len(fields)}",
                )
            )
            continue
        tuples.append(
            ParsedTuple(
                row_index=row_index,
                values=tuple(normalize_value(value) for value in fields),
            )
        )
        stats.tuples_emitted += 1

    if stats.tuples_rejected or stats.unterminated:
        logger.warning(
            "Tokenizer dropped malformed tuples rejected=%s unterminated_quote=%s "
            "unterminated_paren=%s",
            stats.tuples_rejected,
            stats.unterminated_quote,
            stats.unterminated_paren,
        )
    return TokenizeResult(tuples=tuples, stats=stats)


def _scan_tuples(values_block: str, stats: ParseStats) -> list[tuple[int, str]]:
    raw_tuples: list[tuple[int, str]] = []
    state = _ScanState.SEEKING
    buffer: list[str] = []
    depth = 0
    quote: str | None = None
    escaped = False
    row_index = -1

    for char in values_block:
        if state is _ScanState.SEEKING:
            if char == "(":
                state = _ScanState.IN_TUPLE
                depth = 1
                buffer = []
                quote = None
                escaped = False
                row_index = stats.tuples_seen
                stats.tuples_seen += 1
            elif not (char.isspace() or char == ","):
                stats.skipped_chars += 1
            continue

        if quote is not None:
            buffer.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue

        if char in _QUOTES:
            quote = char
            buffer.append(char)
        elif char == "(":
            depth += 1
            buffer.append(char)
        elif char == ")":
            depth -= 1
            if depth == 0:
                raw_tuples.append((row_index, "".join(buffer)))
                state = _ScanState.SEEKING
            else:
                buffer.append(char)
        else:
            buffer.append(char)

    if state is _ScanState.IN_TUPLE:
        # The open tuple is discarded; it is still counted in tuples_seen.
        stats.unterminated_paren = True
        stats.unterminated_quote = quote is not None

    return raw_tuples


def _split_fields(tuple_text: str) -> list[str]:
    if not tuple_text.strip():
        return []

    fields: list[str] = []
    buffer: list[str] = []
    quote: str | None = None
    escaped = False

    for char in tuple_text:
        if quote is not None:
            buffer.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue

        if char in _QUOTES:
            quote = char
            buffer.append(char)
        elif char == ",":
            fields.append("".join(buffer).strip())
            buffer = []
        else:
            buffer.append(char)

    fields.append("".join(buffer).strip())
    return fields


def normalize_value(field: str) -> Value:
    """
    NULL (any case) -> None; a fully quoted field -> its unescaped content;
    anything else is returned as the literal string. Numbers are not coerced.
    """

    if field.upper() == "NULL":
        return None
    if len(field) >= 2 and field[0] in _QUOTES and field[-1] == field[0]:
        unquoted = _unquote(field)
        if unquoted is not None:
            return unquoted
    return field


def _unquote(field: str) -> str | None:
    """
    Strip the wrapping quotes and resolve escapes. Returns None when the
    opening quote closes before the last character.
    """

    quote = field[0]
    end = len(field) - 1
    out: list[str] = []
    position = 1

    while position < end:
        char = field[position]
        if char == "\\":
            following = field[position + 1]
            out.append(_BACKSLASH_ESCAPES.get(following, "\\" + following))
            position += 2
            continue
        if char == quote:
            if position + 1 < end and field[position + 1] == quote:
                out.append(quote)
                position += 2
                continue
            return None
        out.append(char)
        position += 1

    if position != end:
        # A trailing backslash swallowed the closing quote.
        return None
    return "".join(out)


# ---------------------------------------------------------------------------
# Statement extraction
# ---------------------------------------------------------------------------


def extract_values_blocks(sql_text: str, table: str) -> list[str]:
    """
    Return the VALUES payload of every INSERT statement for ``table``.
    """

    pattern = re.compile(_INSERT_TEMPLATE.format(table=re.escape(table)), re.IGNORECASE)
    blocks: list[str] = []
    position = 0
    while True:
        match = pattern.search(sql_text, position)
        if match is None:
            break
        end = _find_statement_end(sql_text, match.end())
        blocks.append(sql_text[match.end() : end].strip())
        position = end + 1
    return blocks


def extract_values_block(sql_text: str, table: str) -> str:
    """
    Concatenate every VALUES payload for ``table`` into one tokenizable block.

    Dumps may split one table across several INSERT statements; the payloads
    are joined with a comma so the tokenizer sees a single tuple list.
    """

    blocks = extract_values_blocks(sql_text, table)
    if not blocks:
        logger.warning("No INSERT statements found table=%s", table)
        return ""
    if len(blocks) > 1:
        logger.info("Combined INSERT statements table=%s statements=%s", table, len(blocks))
    return _STATEMENT_SEPARATOR.join(blocks)


def extract_table(sql_text: str, table: str, expected_arity: int) -> TokenizeResult:
    result = tokenize(extract_values_block(sql_text, table), expected_arity)
    logger.info(
        "Parsed table=%s tuples=%s rejected=%s",
        table,
        result.stats.tuples_emitted,
        result.stats.tuples_rejected,
    )
    return result


def _find_statement_end(sql_text: str, start: int) -> int:
    """
    Index of the first ``;`` at or after ``start`` outside a quoted span,
    or the end of the text when the statement is unterminated.
    """

    quote: str | None = None
    escaped = False
    for position in range(start, len(sql_text)):
        char = sql_text[position]
        if quote is not None:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
        elif char in _QUOTES:
            quote = char
        elif char == ";":
            return position
    return len(sql_text)
