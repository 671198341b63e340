# License: BSD3

"""
Stage 07: accept the surviving multiword candidates, once we have
checked that each covers a contiguous run of tokens within a single
sentence
"""

from ...annotation import (POSITION_SELECTOR, QUOTE_SELECTOR, has_source,
                           mk_source, selector_token_ids, text_selectors)
from ...document import clone, reject_annotations, text_index, tokens_by_id
from ...errors import invariant_violation
from .mwe_construction import token_key

NAME = 'mwe-materialization'
SOURCE_NAME = 'mwe-materialization'


def candidate_tokens(annotation, tokens):
    """
    The tokens of a candidate in document order, after checking they
    exist, sit in one segment and have no gaps
    """
    ids = selector_token_ids(annotation)
    missing = [t for t in ids if t not in tokens]
    if not ids or missing:
        raise invariant_violation(
            'mwe %s refers to unknown tokens' % annotation.get('id'),
            stage=NAME, annotation=annotation.get('id'), missing=missing)
    toks = sorted((tokens[t] for t in ids), key=lambda t: t['i'])
    positions = [t['i'] for t in toks]
    if positions != list(range(positions[0], positions[0] + len(toks))):
        raise invariant_violation(
            'mwe %s covers non-contiguous tokens' % annotation.get('id'),
            stage=NAME, annotation=annotation.get('id'), token_ids=ids)
    if len(set(t['segment_id'] for t in toks)) > 1:
        raise invariant_violation(
            'mwe %s crosses a segment boundary' % annotation.get('id'),
            stage=NAME, annotation=annotation.get('id'), token_ids=ids)
    return toks


def run_stage(doc, context=None):
    """
    Promote `mwe` candidates to `accepted` (or `observation` for
    duplicates), with recomputed text anchors
    """
    reject_annotations(doc, NAME,
                       lambda a: a.get('kind') == 'mwe' and
                       has_source(a, SOURCE_NAME),
                       'materialized mwe annotations')
    out = clone(doc)
    index, unit = text_index(out)
    tokens = tokens_by_id(out)
    seen = set()
    for ann in out.setdefault('annotations', []):
        if ann.get('kind') != 'mwe' or ann.get('status') != 'candidate':
            continue
        toks = candidate_tokens(ann, tokens)
        key = token_key(ann)
        if key in seen:
            ann['status'] = 'observation'
            continue
        seen.add(key)
        anchor = ann.setdefault('anchor', {})
        selectors = [s for s in anchor.get('selectors') or []
                     if s.get('type') not in (POSITION_SELECTOR,
                                              QUOTE_SELECTOR)]
        anchor['selectors'] = selectors + text_selectors(toks, index, unit)
        ann['status'] = 'accepted'
        ann.setdefault('sources', []).append(
            mk_source(SOURCE_NAME, 'rule',
                      {'rule': 'candidate_merge',
                       'head_token_id': toks[-1]['id'],
                       'token_count': len(toks)}))
    out['stage'] = 'mwe_materialized'
    return out
