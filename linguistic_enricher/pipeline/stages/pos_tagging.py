# License: BSD3

"""
Stage 04: Penn Treebank part of speech tags (and their universal
coarse counterparts) for every token, sentence by sentence
"""

from ...document import clone, reject_existing, tokens_by_segment
from ...errors import invariant_violation
from ...external.postag import RULE_TAGGER_NAME, tag_words
from ...external.wikipedia import SERVICE_NAME
from . import ensure_context

NAME = 'pos-tagging'

LEXICON_KEY = SERVICE_NAME.replace('-', '_')


def run_stage(doc, context=None):
    """
    Tag every token. When the title index is configured, lexical
    tokens also get whatever evidence it has about them
    """
    context = ensure_context(context)
    if not doc.get('tokens'):
        raise invariant_violation('%s needs tokens' % NAME, stage=NAME)
    reject_existing(doc, NAME, ('annotations',))
    out = clone(doc)
    tagger = context.option('tagger', RULE_TAGGER_NAME)
    for tokens in tokens_by_segment(out).values():
        raw = tag_words([tok['surface'] for tok in tokens], tagger=tagger)
        for tok, rtok in zip(tokens, raw):
            tok['pos'] = {'tag': rtok.tag, 'coarse': rtok.coarse}
    if context.lexicon.enabled:
        for tok in out['tokens']:
            if (tok.get('flags') or {}).get('is_punct'):
                continue
            evidence = context.lexicon.evidence(tok['surface'])
            if evidence is not None:
                tok['lexicon'] = {LEXICON_KEY: evidence}
    out['stage'] = 'pos_tagged'
    return out
