# License: BSD3

"""
Stage 10: pick one head token for every accepted chunk.

Rules, in order of priority:

1. the candidate pool depends on the chunk type (nouns for NP, verbs
   for VP, prepositions for PP, anything otherwise); an empty pool
   means any token will do
2. if exactly one token of the chunk is the sentence root or depends
   on something outside the chunk, and it is in the pool, it wins
3. otherwise position decides: rightmost for NP, leftmost elsewhere
4. a VP head that turns out to be an auxiliary, modal or demoted
   participle gives way to the non-demoted lexical verb with the most
   dependency edges (leftmost on ties)
5. if the VP head is still demoted, the leftmost non-demoted lexical
   verb takes over

Every decision is recorded on the `chunk_head` annotation.
"""

from frozendict import frozendict

from ...annotation import mk_source, selector_token_ids, text_selectors,\
    token_selector
from ...document import clone, reject_annotations, text_index,\
    tokens_by_id, tokens_by_segment
from ...ids import mk_id
from ...lexicon import AUXILIARY_WORDS

NAME = 'head-identification'
SOURCE_NAME = 'head-identification'

DEMOTED_VERBS = frozenset(['using', 'based', 'including', 'following',
                           'according', 'regarding', 'concerning',
                           'considering', 'depending'])
"""
Verb forms that behave like prepositions
"""

PARTICIPLE_MODIFIERS = frozenset(['given', 'authenticated', 'assigned',
                                  'specified', 'selected', 'required',
                                  'provided'])
"""
Participles demoted when directly followed by something noun phrase
like ("a given value")
"""

NP_LIKE_TAGS = frozenset(['DT', 'PDT', 'PRP$', 'JJ', 'JJR', 'JJS', 'NN',
                          'NNS', 'NNP', 'NNPS', 'CD', 'VBN'])
NOUN_TAGS = frozenset(['NN', 'NNS', 'NNP', 'NNPS'])
PREP_TAGS = frozenset(['IN', 'TO'])

NOTES = frozendict({
    'matrix_lexical_preference': 'vp_matrix_lexical_preference=true',
    'vp_lexical_override': 'vp_lexical_override=true',
})


def _tag(token):
    return (token.get('pos') or {}).get('tag') or ''


def _is_lexical_verb(token):
    return _tag(token).startswith('VB')


def candidate_pool(chunk_type, tokens):
    """
    `(pool, allow_any)` for a chunk's tokens
    """
    if chunk_type == 'NP':
        pool = [t for t in tokens if _tag(t) in NOUN_TAGS]
    elif chunk_type == 'VP':
        pool = [t for t in tokens if _is_lexical_verb(t)] or\
            [t for t in tokens if _tag(t) == 'MD']
    elif chunk_type == 'PP':
        pool = [t for t in tokens if _tag(t) in PREP_TAGS]
    else:
        pool = list(tokens)
    if not pool:
        return list(tokens), True
    return pool, False


def is_demoted(token, sentence):
    """
    True if a verb-ish token should not head a VP: auxiliaries and
    modals, preposition-like verb forms, participles used as modifiers
    """
    tag = _tag(token)
    surface = token['surface'].lower()
    if tag == 'MD' or surface in AUXILIARY_WORDS:
        return True
    if not tag.startswith('VB'):
        return False
    if surface in DEMOTED_VERBS:
        return True
    pos = token['i'] - sentence[0]['i']
    prev_tag = _tag(sentence[pos - 1]) if pos > 0 else None
    next_tag = _tag(sentence[pos + 1]) if pos + 1 < len(sentence) else None
    if surface in PARTICIPLE_MODIFIERS and next_tag in NP_LIKE_TAGS:
        return True
    return tag in ('VBN', 'VBD') and prev_tag in ('DT', 'PRP$')


def dependency_edges(doc):
    """
    Dependent token id to `(head id or None, is_root)` for the
    observed dependencies
    """
    edges = {}
    for ann in doc.get('annotations') or []:
        if ann.get('kind') != 'dependency' or\
                ann.get('status') != 'observation':
            continue
        head = (ann.get('head') or {}).get('id')
        edges[ann['dep']['id']] = (None if ann.get('is_root') else head,
                                   bool(ann.get('is_root')))
    return edges


def incident_degree(token_id, chunk_ids, edges):
    """
    Dependency edges touching a token, counting those within the chunk
    and root attachments
    """
    degree = 0
    for dep, (head, is_root) in edges.items():
        if dep == token_id and (is_root or head in chunk_ids):
            degree += 1
        elif head == token_id and dep in chunk_ids:
            degree += 1
    return degree


def _decision(candidates, chosen, rule, tie_break):
    return {'candidates': [t['id'] for t in candidates],
            'chosen': chosen['id'],
            'rule': rule,
            'tie_break': tie_break}


def select_head(chunk_type, tokens, sentence, edges):
    """
    `(head token, head decision, notes)` for a chunk

    Parameters
    ----------
    chunk_type : str
        NP, VP, PP or O
    tokens : list of dict
        Tokens of the chunk, in order
    sentence : list of dict
        Tokens of the chunk's sentence, in order
    edges : dict
        As returned by `dependency_edges`
    """
    chunk_ids = set(t['id'] for t in tokens)
    position = dict((t['id'], i) for i, t in enumerate(tokens))
    pool, allow_any = candidate_pool(chunk_type, tokens)
    pool_ids = set(t['id'] for t in pool)

    attached = [t for t in tokens if t['id'] in edges and
                (edges[t['id']][1] or
                 (edges[t['id']][0] is not None and
                  edges[t['id']][0] not in chunk_ids))]
    if len(attached) == 1 and (allow_any or attached[0]['id'] in pool_ids):
        head = attached[0]
        decision = _decision(pool, head, 'dependency_root', {})
    else:
        head = pool[-1] if chunk_type == 'NP' else pool[0]
        rule = 'allow_any_fallback' if allow_any else 'positional_fallback'
        decision = _decision(pool, head, rule,
                             {'index': position[head['id']]})
    notes = None
    if chunk_type != 'VP' or not is_demoted(head, sentence):
        return head, decision, notes

    lexical = [t for t in tokens
               if _is_lexical_verb(t) and not is_demoted(t, sentence)]
    has_edges = any(t['id'] in edges for t in tokens)
    if lexical and has_edges:
        ranked = sorted(lexical,
                        key=lambda t: (-incident_degree(t['id'], chunk_ids,
                                                        edges),
                                       position[t['id']],
                                       t['id']))
        head = ranked[0]
        decision = _decision(lexical, head, 'matrix_lexical_preference',
                             {'degree': incident_degree(head['id'],
                                                        chunk_ids, edges),
                              'index': position[head['id']]})
        notes = NOTES['matrix_lexical_preference']
    if is_demoted(head, sentence) and lexical:
        head = lexical[0]
        decision = _decision(lexical, head, 'vp_lexical_override',
                             {'index': position[head['id']]})
        notes = NOTES['vp_lexical_override']
    return head, decision, notes


def run_stage(doc, context=None):
    """
    One `chunk_head` per accepted chunk
    """
    reject_annotations(doc, NAME, lambda a: a.get('kind') == 'chunk_head',
                       'chunk_head annotations')
    out = clone(doc)
    index, unit = text_index(out)
    tokens = tokens_by_id(out)
    sentences = tokens_by_segment(out)
    edges = dependency_edges(out)
    heads = []
    for chunk in out.setdefault('annotations', []):
        if chunk.get('kind') != 'chunk' or chunk.get('status') != 'accepted':
            continue
        chunk_tokens = sorted((tokens[t] for t in selector_token_ids(chunk)),
                              key=lambda t: t['i'])
        sentence = sentences[chunk_tokens[0]['segment_id']]
        head, decision, notes = select_head(chunk.get('chunk_type'),
                                            chunk_tokens, sentence, edges)
        ann = {'id': mk_id('chunk-head', {'chunk_id': chunk['id'],
                                          'head': head['id']}),
               'kind': 'chunk_head',
               'status': 'accepted',
               'chunk_id': chunk['id'],
               'head': {'id': head['id']},
               'label': head['surface'],
               'head_decision': decision}
        if notes:
            ann['notes'] = notes
        ann['anchor'] = {'selectors': text_selectors([head], index, unit) +
                         [token_selector([head['id']])]}
        ann['sources'] = [mk_source(SOURCE_NAME, 'rule',
                                    {'rule': decision['rule']})]
        heads.append(ann)
    out['annotations'].extend(heads)
    out['stage'] = 'heads_identified'
    return out
