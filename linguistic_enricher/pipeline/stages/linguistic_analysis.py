# License: BSD3

"""
Stage 08: shallow linguistic observations for the later stages to
refine

* a head-left dependency backbone per sentence: the first verb is the
  root, every other token hangs off its left neighbour (the first
  token off the root)
* lower cased lemmas for word tokens
* determiner/adjective/noun runs as noun phrases
* proper noun runs as named entities

None of this is meant as a final analysis, so everything is emitted
with status `observation`.
"""

from ...annotation import mk_source, text_selectors, token_selector
from ...document import clone, reject_annotations, text_index,\
    tokens_by_segment
from ...ids import mk_id

NAME = 'linguistic-analysis'
SOURCE_NAME = 'linguistic-analysis'

OWN_KINDS = frozenset(['dependency', 'lemma', 'noun_phrase',
                       'named_entity'])

NOUN_TAGS = frozenset(['NN', 'NNS', 'NNP', 'NNPS'])
PROPER_NOUN_TAGS = frozenset(['NNP', 'NNPS'])
NOUN_PHRASE_TAGS = NOUN_TAGS | frozenset(['DT', 'JJ', 'JJR', 'JJS'])


def _tag(token):
    return (token.get('pos') or {}).get('tag') or ''


def _is_punct(token):
    return bool((token.get('flags') or {}).get('is_punct'))


def _observation(kind, tokens, index, unit, **fields):
    "an observation anchored on a run of tokens"
    token_ids = [t['id'] for t in tokens]
    payload = dict(fields)
    payload['token_ids'] = token_ids
    ann = {'id': mk_id(kind.replace('_', '-'), payload),
           'kind': kind,
           'status': 'observation'}
    ann.update(fields)
    ann['anchor'] = {'selectors': [token_selector(token_ids)] +
                     text_selectors(tokens, index, unit)}
    ann['sources'] = [mk_source(SOURCE_NAME, 'model')]
    return ann


def sentence_root(tokens):
    "first verb of the sentence, or failing that its first token"
    for tok in tokens:
        if _tag(tok).startswith('VB'):
            return tok
    return tokens[0]


def dependencies(tokens, index, unit):
    """
    Backbone dependency observations for one sentence
    """
    res = []
    if not tokens:
        return res
    root = sentence_root(tokens)
    for j, tok in enumerate(tokens):
        if tok is root:
            ann = _observation('dependency', [tok], index, unit,
                               label='root', is_root=True,
                               dep={'id': tok['id']})
        else:
            head = tokens[j - 1] if j > 0 else root
            label = 'punct' if _is_punct(tok) else 'dep'
            ann = _observation('dependency', [tok], index, unit,
                               label=label, is_root=False,
                               dep={'id': tok['id']},
                               head={'id': head['id']})
        res.append(ann)
    return res


def lemmas(tokens, index, unit):
    "lemma observations for word-like tokens"
    return [_observation('lemma', [tok], index, unit,
                         lemma=tok['surface'].lower())
            for tok in tokens
            if not _is_punct(tok) and
            any(c.isalnum() for c in tok['surface'])]


def runs(tokens, tags):
    """
    Maximal runs of consecutive tokens whose tags are all in `tags`
    """
    current = []
    for tok in tokens:
        if _tag(tok) in tags:
            current.append(tok)
        else:
            if current:
                yield current
            current = []
    if current:
        yield current


def noun_phrases(tokens, index, unit):
    "determiner/adjective/noun runs containing a noun"
    return [_observation('noun_phrase', run, index, unit,
                         label=' '.join(t['surface'] for t in run))
            for run in runs(tokens, NOUN_PHRASE_TAGS)
            if any(_tag(t) in NOUN_TAGS for t in run)]


def named_entities(tokens, index, unit):
    "proper noun runs"
    return [_observation('named_entity', run, index, unit,
                         label=' '.join(t['surface'] for t in run))
            for run in runs(tokens, PROPER_NOUN_TAGS)]


def run_stage(doc, context=None):
    """
    Dependency, lemma, noun phrase and named entity observations
    """
    reject_annotations(doc, NAME, lambda a: a.get('kind') in OWN_KINDS,
                       'linguistic analysis annotations')
    out = clone(doc)
    index, unit = text_index(out)
    annotations = out.setdefault('annotations', [])
    for tokens in tokens_by_segment(out).values():
        annotations.extend(dependencies(tokens, index, unit))
        annotations.extend(lemmas(tokens, index, unit))
        annotations.extend(noun_phrases(tokens, index, unit))
        annotations.extend(named_entities(tokens, index, unit))
    out['stage'] = 'parsed'
    return out
