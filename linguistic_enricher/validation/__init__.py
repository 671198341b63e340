"""
Checks run at every stage boundary: structural (JSON schema) and
referential (runtime invariants)
"""

from .schema import validate_schema
from .invariants import validate_invariants

VALIDATION_CHECKS = ('schema', 'invariants')


def validate_document(doc):
    """
    Run the schema and invariant checks on a document (which is left
    untouched), raising `EnricherException` on the first family of
    problems found
    """
    validate_schema(doc)
    validate_invariants(doc)
    return {'ok': True, 'checks': list(VALIDATION_CHECKS)}
