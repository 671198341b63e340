# License: BSD3

"""
Content-addressed identifiers.

An id is a namespace followed by a short hash of the thing it
identifies, so that the same payload always gets the same id
regardless of how (or in which key order) it was built ::

    mk_id('mwe', {'label': 'online store', 'token_ids': ['t1', 't2']})
    # => 'mwe-...'
"""

import hashlib
import json

HASH_LENGTH = 12


def canonical_json(payload):
    """
    Serialise a JSON-compatible value with sorted keys (at every depth)
    and no insignificant whitespace
    """
    return json.dumps(payload,
                      sort_keys=True,
                      separators=(',', ':'),
                      ensure_ascii=False)


def content_hash(payload, length=HASH_LENGTH):
    """
    Hex digest prefix for a payload. Strings are hashed as they are;
    anything else goes through `canonical_json` first
    """
    basis = payload if isinstance(payload, str) else canonical_json(payload)
    digest = hashlib.sha1(basis.encode('utf-8', 'surrogatepass'))
    return digest.hexdigest()[:length]


def mk_id(namespace, payload):
    """
    Deterministic identifier for the payload within the namespace
    """
    return '%s-%s' % (namespace, content_hash(payload))
