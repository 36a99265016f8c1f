"""
tests/test_sql_values_tokenizer.py

Pytest unit tests for the SQL VALUES tokenizer and statement extraction.

Coverage
--------
- Quoted fields containing parens, commas and escaped quotes
- NULL normalization in any case; numbers stay strings
- Arity rejection with source row indices preserved
- Unterminated quote / paren flags
- Stray characters between tuples
- Round trip of quoted values through the tokenizer
- Extraction of one table across several INSERT statements
"""

from __future__ import annotations

import pytest

from app.parsing.sql_values import (
    extract_table,
    extract_values_block,
    extract_values_blocks,
    normalize_value,
    tokenize,
)


def _quote(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


# ---------------------------------------------------------------------------
# Field handling
# ---------------------------------------------------------------------------


class TestFieldNormalization:
    def test_parens_inside_quotes_are_literal(self) -> None:
        result = tokenize("(1,3,'ESIT EKET (UQUO)','04')", 4)

        assert [parsed.values for parsed in result.tuples] == [("1", "3", "ESIT EKET (UQUO)", "04")]
        assert result.stats.tuples_rejected == 0

    def test_backslash_escaped_quote(self) -> None:
        result = tokenize("(1,'O\\'Brien')", 2)

        assert result.tuples[0].values == ("1", "O'Brien")

    def test_doubled_quote_escape(self) -> None:
        result = tokenize("(1,'it''s')", 2)

        assert result.tuples[0].values == ("1", "it's")

    def test_double_quoted_field_with_escapes(self) -> None:
        result = tokenize('(1,"say \\"hi\\"")', 2)

        assert result.tuples[0].values == ("1", 'say "hi"')

    def test_escaped_backslash_before_closing_quote(self) -> None:
        result = tokenize("(1,'C:\\\\')", 2)

        assert result.tuples[0].values == ("1", "C:\\")

    def test_comma_inside_quotes_does_not_split(self) -> None:
        result = tokenize("(1,'Aba, North')", 2)

        assert result.tuples[0].values == ("1", "Aba, North")

    def test_null_in_any_case_becomes_none(self) -> None:
        result = tokenize("(1,NULL,null,'NULL')", 4)

        assert result.tuples[0].values == ("1", None, None, "NULL")

    def test_numbers_are_not_coerced(self) -> None:
        assert normalize_value("42") == "42"
        assert normalize_value("-1.5") == "-1.5"

    def test_empty_quoted_string_is_kept(self) -> None:
        result = tokenize("(1,'')", 2)

        assert result.tuples[0].values == ("1", "")

    def test_whitespace_around_fields_and_tuples(self) -> None:
        result = tokenize("  ( 1 , 'a' )  ,\n ( 2 , 'b' ) ", 2)

        assert [parsed.values for parsed in result.tuples] == [("1", "a"), ("2", "b")]

    def test_unquoted_nested_parens_are_kept_verbatim(self) -> None:
        result = tokenize("(1,(2),'x')", 3)

        assert result.tuples[0].values == ("1", "(2)", "x")


# ---------------------------------------------------------------------------
# Tuple-level behaviour
# ---------------------------------------------------------------------------


class TestTupleBoundaries:
    def test_wrong_arity_is_rejected_and_counted(self) -> None:
        result = tokenize("(1,'a'),(2,'b','c'),(3)", 2)

        assert [parsed.row_index for parsed in result.tuples] == [0]
        assert result.stats.tuples_seen == 3
        assert result.stats.tuples_emitted == 1
        assert result.stats.tuples_rejected == 2
        assert [(rejected.row_index, rejected.field_count) for rejected in result.stats.rejected] == [
            (1, 3),
            (2, 1),
        ]

    def test_row_index_is_source_ordinal_after_rejection(self) -> None:
        result = tokenize("(1,'a'),(2),(3,'c')", 2)

        assert [parsed.row_index for parsed in result.tuples] == [0, 2]

    def test_empty_tuple(self) -> None:
        assert tokenize("()", 0).tuples[0].values == ()
        rejected = tokenize("()", 2)
        assert rejected.tuples == []
        assert rejected.stats.rejected[0].field_count == 0

    def test_unterminated_quote_is_flagged(self) -> None:
        result = tokenize("(1,'a'),(2,'b", 2)

        assert [parsed.values for parsed in result.tuples] == [("1", "a")]
        assert result.stats.tuples_seen == 2
        assert result.stats.unterminated_quote is True
        assert result.stats.unterminated_paren is True
        assert result.stats.malformed_count == 1

    def test_unterminated_paren_without_open_quote(self) -> None:
        result = tokenize("(1,'a'),(2,(3", 2)

        assert len(result.tuples) == 1
        assert result.stats.unterminated_paren is True
        assert result.stats.unterminated_quote is False

    def test_stray_characters_between_tuples_are_counted(self) -> None:
        result = tokenize("(1,'a');(2,'b')", 2)

        assert len(result.tuples) == 2
        assert result.stats.skipped_chars == 1

    def test_empty_block(self) -> None:
        result = tokenize("", 9)

        assert result.tuples == []
        assert result.stats.tuples_seen == 0
        assert result.stats.malformed_count == 0

    @pytest.mark.parametrize(
        "values",
        [
            ("Aba (North)", "01-01-01-001"),
            ("O'Brien, Ward", "back\\slash"),
            ("", "plain"),
        ],
    )
    def test_quoted_values_survive_a_round_trip(self, values: tuple[str, str]) -> None:
        block = ",".join(f"({index},{','.join(_quote(value) for value in values)})" for index in range(3))

        result = tokenize(block, 3)

        assert [parsed.values for parsed in result.tuples] == [(str(index), *values) for index in range(3)]


# ---------------------------------------------------------------------------
# Statement extraction
# ---------------------------------------------------------------------------


SAMPLE_DUMP = """
CREATE TABLE `pu_data` (`id` int(11) NOT NULL);
INSERT INTO `states` VALUES (1,'Abia','01'),(2,'Adamawa','02');
INSERT INTO `pu_data` VALUES (1,1,1,1,'01-01-01-001','Abia','Aba North','Ward1','PU One');
insert into `pu_data` values (2,1,1,1,'01-01-01-002','Abia','Aba North','Ward1','PU; Two');
INSERT INTO registration_areas (id, lga_id, name, code) VALUES (1,1,'Ward A','01');
"""


class TestStatementExtraction:
    def test_collects_every_statement_for_a_table(self) -> None:
        blocks = extract_values_blocks(SAMPLE_DUMP, "pu_data")

        assert len(blocks) == 2
        assert blocks[1].endswith("'PU; Two')")

    def test_extract_table_tokenizes_combined_statements(self) -> None:
        result = extract_table(SAMPLE_DUMP, "pu_data", 9)

        assert [parsed.row_index for parsed in result.tuples] == [0, 1]
        assert result.tuples[1].values[8] == "PU; Two"

    def test_column_list_is_accepted(self) -> None:
        result = extract_table(SAMPLE_DUMP, "registration_areas", 4)

        assert result.tuples[0].values == ("1", "1", "Ward A", "01")

    def test_table_name_must_match_exactly(self) -> None:
        assert extract_values_blocks(SAMPLE_DUMP, "pu") == []

    def test_missing_table_gives_empty_block(self) -> None:
        assert extract_values_block(SAMPLE_DUMP, "wards") == ""
        assert extract_table(SAMPLE_DUMP, "wards", 4).tuples == []
