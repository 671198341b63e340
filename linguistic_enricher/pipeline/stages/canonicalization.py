# License: BSD3

"""
Stage 01: fix the canonical text (NFC, LF line endings) and the index
basis all later spans are expressed in
"""

import unicodedata

from ...document import clone, reject_existing
from ...offsets import DEFAULT_UNIT
from .surface_normalization import normalize_line_endings

NAME = 'canonicalization'

NORMALIZATION = {'unicode': 'NFC', 'line_endings': 'LF'}


def canonicalize(text):
    "NFC and LF"
    return unicodedata.normalize('NFC', normalize_line_endings(text))


def run_stage(doc, context=None):
    """
    Canonical text from the surface normalised input (if the previous
    stage recorded one) or else from the current text
    """
    reject_existing(doc, NAME, ('segments', 'tokens', 'annotations'))
    out = clone(doc)
    source = (out.get('inputs') or {}).get('surface_normalized_text')
    if not isinstance(source, str):
        source = out.get('canonical_text') or ''
    out['canonical_text'] = canonicalize(source)
    basis = out.setdefault('index_basis', {})
    basis.setdefault('unit', DEFAULT_UNIT)
    out.setdefault('provenance', {})['normalization'] = dict(NORMALIZATION)
    out['stage'] = 'canonical'
    return out
