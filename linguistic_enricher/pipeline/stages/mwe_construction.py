# License: BSD3

"""
Stage 06: settle the candidate list. One candidate per set of tokens
survives (later duplicates become observations); survivors get their
final ids and, when the title index is available, fresh lexicon
evidence.
"""

from ...annotation import has_source, mk_source, selector_token_ids
from ...document import clone, reject_annotations
from ...external.wikipedia import SERVICE_NAME, empty_evidence
from ...ids import mk_id
from . import ensure_context

NAME = 'mwe-candidate-construction'
SOURCE_NAME = 'candidate-construction'


def token_key(annotation):
    "order-insensitive key for the tokens an annotation covers"
    return '|'.join(sorted(selector_token_ids(annotation)))


def _lexicon_source(annotation):
    for src in annotation.get('sources') or []:
        if src.get('name') == SERVICE_NAME:
            return src
    return None


def _refresh_lexicon(annotation, lexicon):
    """
    Make sure the candidate has a lexicon source, consulting the index
    if we can
    """
    src = _lexicon_source(annotation)
    if src is None:
        src = mk_source(SERVICE_NAME, 'lexicon', empty_evidence())
        annotation.setdefault('sources', []).append(src)
    if lexicon.enabled:
        evidence = lexicon.evidence(annotation.get('label') or '')
        if evidence is not None:
            src['evidence'] = evidence
    return src


def run_stage(doc, context=None):
    """
    Deduplicate, identify and (optionally) enrich `mwe` candidates
    """
    context = ensure_context(context)
    reject_annotations(doc, NAME,
                       lambda a: a.get('kind') == 'mwe' and
                       has_source(a, SOURCE_NAME),
                       'constructed mwe candidates')
    out = clone(doc)
    seen = set()
    for ann in out.setdefault('annotations', []):
        if ann.get('kind') != 'mwe' or ann.get('status') != 'candidate':
            continue
        key = token_key(ann)
        if key in seen:
            ann['status'] = 'observation'
            continue
        seen.add(key)
        ann['id'] = mk_id('mwe', {'key': key, 'label': ann.get('label')})
        _refresh_lexicon(ann, context.lexicon)
        ann.setdefault('sources', []).append(
            mk_source(SOURCE_NAME, 'rule', {'key': key}))
    out['stage'] = 'mwe_pattern_candidates'
    return out
