# License: BSD3

"""
Structural validation of seed documents against the packaged JSON
schema (`seed.schema.json`)
"""

import codecs
import json
import os

from jsonschema import Draft202012Validator

from ..errors import EnricherException, E_SCHEMA_INVALID

SCHEMA_FILE = os.path.join(os.path.dirname(__file__), 'seed.schema.json')


def load_schema(filename):
    """
    Read and sanity check a JSON schema file
    """
    with codecs.open(filename, 'r', 'utf-8') as stream:
        schema = json.load(stream)
    Draft202012Validator.check_schema(schema)
    return schema


SCHEMA = load_schema(SCHEMA_FILE)
_VALIDATOR = Draft202012Validator(SCHEMA)


def _error_path(err):
    "JSON-pointer-ish rendering of where an error occurred"
    return '/' + '/'.join(str(x) for x in err.absolute_path)


def schema_errors(doc):
    """
    Human readable descriptions of everything wrong with the document's
    structure, in a stable order (empty if it is valid)
    """
    errors = sorted(_VALIDATOR.iter_errors(doc),
                    key=lambda e: ([str(x) for x in e.absolute_path],
                                   e.message))
    return ['%s: %s' % (_error_path(e), e.message) for e in errors]


def validate_schema(doc):
    """
    Raise an `E_SCHEMA_INVALID` error listing every structural problem
    with the document
    """
    errors = schema_errors(doc)
    if errors:
        msg = 'Document does not match the seed schema (%d error%s): %s' %\
            (len(errors), '' if len(errors) == 1 else 's', errors[0])
        raise EnricherException(E_SCHEMA_INVALID, msg, {'errors': errors})
    return True
