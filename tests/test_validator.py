"""Tests for the query validation pipeline."""

import pytest
from graphql import build_schema, parse

from graphql_mcp.backend.validator import MAX_QUERY_DEPTH, calculate_depth, validate_query
from graphql_mcp.core.errors import (
    DepthExceeded,
    InvalidInput,
    QuerySyntaxError,
    ReadOnlyViolation,
    SchemaValidationError,
)

from conftest import SCHEMA_SDL


def nested_query(depth: int) -> str:
    body = "leaf"
    for i in range(depth - 1):
        body = f"field{i} {{ {body} }}"
    return f"query {{ {body} }}"


@pytest.fixture(scope="module")
def schema():
    return build_schema(SCHEMA_SDL)


class TestShapeAndSyntax:
    def test_valid_simple_query(self) -> None:
        document = validate_query("query { hello }")
        assert document.definitions

    def test_valid_query_with_variables(self) -> None:
        validate_query("query($name: String!) { hello(name: $name) }", {"name": "World"})

    @pytest.mark.parametrize("query", [None, 123, ""])
    def test_query_must_be_a_string(self, query) -> None:
        with pytest.raises(InvalidInput, match="Invalid query"):
            validate_query(query)

    def test_variables_must_be_an_object(self) -> None:
        with pytest.raises(InvalidInput, match="Invalid variables"):
            validate_query("query { hello }", "string")

    def test_malformed_query_gets_generic_hint(self) -> None:
        with pytest.raises(QuerySyntaxError) as exc:
            validate_query("query { hello")
        message = str(exc.value)
        assert message.startswith("Syntax Error")
        assert "How to fix:" in message
        assert "missing braces" in message
        assert "Interpretation" not in message

    def test_invalid_character_gets_encoding_hint(self) -> None:
        with pytest.raises(QuerySyntaxError) as exc:
            validate_query("query { hello \u0e49 }")
        message = str(exc.value)
        assert "Syntax Error" in message
        assert "Interpretation" in message
        assert "Remove any non-ASCII" in message


class TestReadOnly:
    def test_mutation_rejected_in_read_only_mode(self) -> None:
        with pytest.raises(ReadOnlyViolation, match="NOT allowed"):
            validate_query('mutation { addUser(name: "Test") { id } }', read_only=True)

    def test_mutation_allowed_in_write_mode(self) -> None:
        validate_query('mutation { addUser(name: "Test") { id } }', read_only=False)

    def test_mutation_anywhere_in_document_is_rejected(self) -> None:
        query = """
            query A { hello }
            mutation B { addUser(name: "x") { id } }
        """
        with pytest.raises(ReadOnlyViolation):
            validate_query(query, read_only=True)

    @pytest.mark.parametrize("read_only", [True, False])
    def test_queries_pass_regardless_of_mode(self, read_only) -> None:
        validate_query("query { user(id: 1) { name } }", read_only=read_only)


class TestDepth:
    def test_leaf_counts_as_one_level(self) -> None:
        assert calculate_depth(parse("{ hello }")) == 1
        assert calculate_depth(parse("{ user { name } }")) == 2

    def test_fragments_do_not_add_depth(self) -> None:
        document = parse("""
            query { user { ... on User { name } ...Rest } }
            fragment Rest on User { id }
        """)
        assert calculate_depth(document) == 2

    def test_depth_at_limit_passes(self) -> None:
        validate_query(nested_query(MAX_QUERY_DEPTH))

    def test_depth_over_limit_fails(self) -> None:
        with pytest.raises(DepthExceeded) as exc:
            validate_query(nested_query(MAX_QUERY_DEPTH + 1))
        assert exc.value.depth == 16
        assert "exceeds maximum allowed depth of 15" in str(exc.value)

    def test_twenty_nested_fields(self) -> None:
        body = "f"
        for i in range(20):
            body = f"field{i} {{ {body} }}"
        with pytest.raises(DepthExceeded, match="exceeds maximum allowed depth"):
            validate_query(f"query {{ {body} }}")


class TestSchemaCompliance:
    def test_valid_query_against_schema(self, schema) -> None:
        validate_query("{ hello }", {}, schema)

    def test_unknown_field_lists_error_and_fix(self, schema) -> None:
        with pytest.raises(SchemaValidationError) as exc:
            validate_query("{ goodbye }", {}, schema)
        message = str(exc.value)
        assert message.startswith("Schema Validation Error:\n- ")
        assert "goodbye" in message
        assert "\n\nHow to fix:\n" in message
        assert "1. Check the 'graphql://schema' resource" in message
        assert "2. Ensure you are not querying fields" in message
        assert "3. " in message
        assert len(exc.value.violations) == 1

    def test_every_violation_is_listed(self, schema) -> None:
        with pytest.raises(SchemaValidationError) as exc:
            validate_query("{ goodbye farewell }", {}, schema)
        assert len(exc.value.violations) == 2
        assert str(exc.value).count("\n- ") == 2

    @pytest.mark.parametrize(
        "query",
        [
            "{ user(id: 123, invalid: true) { name } }",
            "{ user { name } }",
            "{ hello { subfield } }",
            "query($curr: Currency) { hello }",
            """
            query { user(id: "1") { ...InvalidFrag } }
            fragment InvalidFrag on String { name }
            """,
        ],
    )
    def test_schema_violations(self, schema, query) -> None:
        with pytest.raises(SchemaValidationError, match="How to fix"):
            validate_query(query, {}, schema)

    def test_aliases_and_fragments_pass(self, schema) -> None:
        validate_query('{ myUser: user(id: "1") { name } }', {}, schema)
        validate_query(
            """
            query { user(id: "1") { ...UserFields } }
            fragment UserFields on User { name }
            """,
            {},
            schema,
        )

    def test_read_only_checked_before_schema(self, schema) -> None:
        with pytest.raises(ReadOnlyViolation):
            validate_query('mutation { nope }', {}, schema, read_only=True)
