# ============================================================================
# GRAPHQL MCP - QUERY VALIDATOR
# ============================================================================
# Copyright 2026 Graforest. All Rights Reserved.
#
# Guards the upstream endpoint. Stages run in order and stop at the first
# failure:
#   1. Shape   — query is a string, variables is an object
#   2. Syntax  — graphql-core parser, with fix-it hints for agents
#   3. Write   — mutations rejected in read-only mode
#   4. Depth   — nested selections capped at MAX_QUERY_DEPTH
#   5. Schema  — graphql-core validation rules (only when a schema is known)
#
# Error texts are read by LLM agents. Keep the "How to fix:" blocks stable.
# ============================================================================

from collections.abc import Mapping
from typing import Any

from graphql import (
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    GraphQLSchema,
    GraphQLSyntaxError,
    InlineFragmentNode,
    OperationDefinitionNode,
    OperationType,
    SelectionSetNode,
    parse,
    validate,
)

from ..core.errors import (
    DepthExceeded,
    InvalidInput,
    QuerySyntaxError,
    ReadOnlyViolation,
    SchemaValidationError,
)

__all__ = [
    "MAX_QUERY_DEPTH",
    "validate_query",
    "calculate_depth",
    "has_mutation",
]

MAX_QUERY_DEPTH = 15

INVALID_CHARACTER_HINT = (
    "\n\nInterpretation:\n"
    "This indicates a malformed query structure containing an invalid character "
    "(often Unicode or hidden symbols).\n\n"
    "How to fix:\n"
    "1. Remove any non-ASCII characters or hidden symbols.\n"
    "2. Verify the query contains only valid GraphQL operators and ASCII characters.\n"
    "3. Ensure proper encoding of special characters."
)

GENERIC_SYNTAX_HINT = (
    "\n\nHow to fix:\n"
    "1. Check for missing braces or parentheses.\n"
    "2. Ensure field names are correct."
)

SCHEMA_FIX_HINT = (
    "\n\nHow to fix:\n"
    "1. Check the 'graphql://schema' resource for correct types and fields.\n"
    "2. Ensure you are not querying fields that don't exist on the type.\n"
    "3. Distinguish scalar types from object types: only object fields take a selection set."
)


def _syntax_message(error: GraphQLSyntaxError) -> str:
    detail = error.message
    if not detail.startswith("Syntax Error"):
        detail = f"Syntax Error: {detail}"
    if "Unexpected character" in detail or "Invalid character" in detail:
        return detail + INVALID_CHARACTER_HINT
    return detail + GENERIC_SYNTAX_HINT


def has_mutation(document: DocumentNode) -> bool:
    return any(
        isinstance(definition, OperationDefinitionNode)
        and definition.operation == OperationType.MUTATION
        for definition in document.definitions
    )


def _selection_depth(selection_set: SelectionSetNode | None, current: int) -> int:
    if selection_set is None:
        return current

    deepest = current
    for selection in selection_set.selections:
        if isinstance(selection, FieldNode):
            # a leaf still counts as one level below its parent
            deepest = max(deepest, _selection_depth(selection.selection_set, current + 1))
        elif isinstance(selection, InlineFragmentNode):
            deepest = max(deepest, _selection_depth(selection.selection_set, current))
        # fragment spreads are not resolved
    return deepest


def calculate_depth(document: DocumentNode) -> int:
    """Maximum field nesting across all operations and fragment definitions."""
    depth = 0
    for definition in document.definitions:
        if isinstance(definition, (OperationDefinitionNode, FragmentDefinitionNode)):
            depth = max(depth, _selection_depth(definition.selection_set, 0))
    return depth


def validate_query(
    query: Any,
    variables: Any = None,
    schema: GraphQLSchema | None = None,
    *,
    read_only: bool = True,
) -> DocumentNode:
    """Validate a GraphQL document and return its AST.

    Raises a ``ValidationError`` subclass describing the first failing stage.
    """
    if not query or not isinstance(query, str):
        raise InvalidInput("Invalid query: query must be a string.")

    if variables is not None and not isinstance(variables, Mapping):
        raise InvalidInput("Invalid variables: variables must be an object.")

    try:
        document = parse(query)
    except GraphQLSyntaxError as e:
        raise QuerySyntaxError(_syntax_message(e)) from e

    if read_only and has_mutation(document):
        raise ReadOnlyViolation("Validation Error: Mutations are NOT allowed in Read-only mode.")

    depth = calculate_depth(document)
    if depth > MAX_QUERY_DEPTH:
        raise DepthExceeded(depth, MAX_QUERY_DEPTH)

    if schema is not None:
        errors = validate(schema, document)
        if errors:
            violations = [e.message for e in errors]
            listing = "\n".join(f"- {v}" for v in violations)
            raise SchemaValidationError(
                f"Schema Validation Error:\n{listing}{SCHEMA_FIX_HINT}",
                violations,
            )

    return document
