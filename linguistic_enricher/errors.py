# License: BSD3

"""
Errors raised by the enrichment pipeline and its external adapters
"""

E_INVARIANT_VIOLATION = 'E_INVARIANT_VIOLATION'
E_SCHEMA_INVALID = 'E_SCHEMA_INVALID'
E_INVALID_TARGET = 'E_INVALID_TARGET'
E_INVALID_INPUT = 'E_INVALID_INPUT'
E_CLI_USAGE = 'E_CLI_USAGE'
E_PYTHON_NOT_FOUND = 'E_PYTHON_NOT_FOUND'
E_PYTHON_DEPENDENCY_MISSING = 'E_PYTHON_DEPENDENCY_MISSING'
E_PYTHON_MODEL_MISSING = 'E_PYTHON_MODEL_MISSING'
E_PYTHON_TIMEOUT = 'E_PYTHON_TIMEOUT'
E_PYTHON_SUBPROCESS_FAILED = 'E_PYTHON_SUBPROCESS_FAILED'
E_PYTHON_PROTOCOL_INVALID_JSON = 'E_PYTHON_PROTOCOL_INVALID_JSON'
E_SERVICE_UNAVAILABLE = 'E_SERVICE_UNAVAILABLE'

ERROR_CODES = frozenset([
    E_INVARIANT_VIOLATION,
    E_SCHEMA_INVALID,
    E_INVALID_TARGET,
    E_INVALID_INPUT,
    E_CLI_USAGE,
    E_PYTHON_NOT_FOUND,
    E_PYTHON_DEPENDENCY_MISSING,
    E_PYTHON_MODEL_MISSING,
    E_PYTHON_TIMEOUT,
    E_PYTHON_SUBPROCESS_FAILED,
    E_PYTHON_PROTOCOL_INVALID_JSON,
    E_SERVICE_UNAVAILABLE,
])


class EnricherException(Exception):
    """
    Something went wrong while enriching a document.

    Every instance carries one of the `ERROR_CODES` and a JSON-friendly
    dictionary of details (offending ids, counts, phase) so that callers
    can report the failure without parsing the message
    """
    def __init__(self, code, message, details=None):
        super(EnricherException, self).__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def __str__(self):
        return '[%s] %s' % (self.code, self.message)

    def to_json(self):
        "error envelope as used by the subprocess protocol and CLI"
        res = {'code': self.code, 'message': self.message}
        if self.details:
            res['details'] = self.details
        return res


def invariant_violation(message, **details):
    """
    Shorthand for the most common failure: a document that does not
    satisfy the preconditions of the current operation
    """
    return EnricherException(E_INVARIANT_VIOLATION, message, details)
