# License: BSD3

"""
Seed documents: creation, copying and the lookups most stages need
"""

from collections import OrderedDict
import copy

from .errors import invariant_violation
from .ids import mk_id
from .offsets import DEFAULT_UNIT, OffsetIndex, document_unit

SCHEMA_VERSION = '1.0.0'


def seed_document(text, unit=None):
    """
    A fresh document wrapping some raw text, before any stage
    has seen it
    """
    return {'schema_version': SCHEMA_VERSION,
            'seed_id': mk_id('seed', text),
            'stage': 'canonical',
            'canonical_text': text,
            'index_basis': {'unit': unit or DEFAULT_UNIT},
            'segments': [],
            'tokens': [],
            'annotations': []}


def clone(doc):
    """
    Stage-local copy of a document: stages never modify their input
    """
    return copy.deepcopy(doc)


def text_index(doc):
    """
    `(OffsetIndex, unit)` pair for a document's canonical text
    """
    return OffsetIndex(doc.get('canonical_text') or ''), document_unit(doc)


def tokens_by_id(doc):
    "token id to token"
    return dict((tok['id'], tok) for tok in doc.get('tokens') or [])


def tokens_by_segment(doc):
    """
    Ordered dictionary from segment id to the list of its tokens,
    in document order. Every segment is present, even if empty
    """
    res = OrderedDict((seg['id'], []) for seg in doc.get('segments') or [])
    for tok in doc.get('tokens') or []:
        res.setdefault(tok.get('segment_id'), []).append(tok)
    return res


def segment_positions(doc):
    "segment id to its position in the document"
    return dict((seg['id'], i) for i, seg
                in enumerate(doc.get('segments') or []))


def reject_existing(doc, stage, fields):
    """
    Raise an invariant violation if the document already carries
    entries in any of the given list fields (eg. 'tokens')
    """
    found = dict((field, len(doc.get(field) or [])) for field in fields
                 if doc.get(field))
    if found:
        msg = '%s cannot run on a document that already has %s' %\
            (stage, ', '.join(sorted(found)))
        raise invariant_violation(msg, stage=stage, counts=found)


def reject_annotations(doc, stage, pred, what):
    """
    Raise an invariant violation if any annotation satisfies the
    predicate (ie. the stage's own output is already there)
    """
    offending = [ann.get('id') for ann in doc.get('annotations') or []
                 if pred(ann)]
    if offending:
        msg = '%s cannot run on a document that already has %s' %\
            (stage, what)
        raise invariant_violation(msg, stage=stage,
                                  count=len(offending),
                                  ids=offending)
