# License: BSD3

"""
Stage 11: semantic role relations between chunk heads.

Every token inside a chunk stands for that chunk's head (its
"predicate"), so roles link chunks rather than raw tokens. Roles come
from the observed dependencies where they carry informative labels:

1. direct labels (`nsubj` gives an actor, `dobj` a theme, ...)
2. preposition chains (`prep` + `pobj`), by preposition
3. clausal links between verbs (complement clauses, coordination)

A sentence whose dependencies carry no informative label at all is
read off its chunk sequence instead (`chunk_relations`).

Relations are deduplicated on (sentence, predicate, argument, role),
and dropped when they would link a token to itself or cross a
sentence boundary.
"""

from frozendict import frozendict

from ...annotation import (Span, has_source, mk_source, position_selector,
                           quote_selector, selector_token_ids,
                           token_selector)
from ...document import clone, reject_annotations, segment_positions,\
    text_index, tokens_by_id
from ...ids import mk_id
from ...lexicon import AUXILIARY_WORDS

NAME = 'relation-extraction'
SOURCE_NAME = 'relation-extraction'

LABEL_ROLES = frozendict({
    'nsubj': 'actor',
    'nsubjpass': 'patient',
    'dobj': 'theme',
    'obj': 'theme',
    'attr': 'theme',
    'acomp': 'theme',
    'iobj': 'recipient',
})

CLAUSAL_LABELS = frozenset(['xcomp', 'ccomp', 'advcl', 'relcl'])

PREPOSITION_ROLES = frozendict({
    'in': 'location',
    'on': 'location',
    'at': 'location',
    'into': 'location',
    'inside': 'location',
    'of': 'topic',
    'for': 'beneficiary',
    'with': 'instrument',
    'by': 'agent',
})

ROLE_LABELS = frozenset(LABEL_ROLES) | CLAUSAL_LABELS |\
    frozenset(['aux', 'prep', 'pobj', 'conj'])
"""
Dependency labels informative enough to take roles from
"""

NOUN_TAGS = frozenset(['NN', 'NNS', 'NNP', 'NNPS', 'PRP'])
COORDINATORS = frozenset(['and', 'or', 'but', 'nor'])


def _tag(token):
    return (token.get('pos') or {}).get('tag') or ''


def is_verbish(token):
    "verbs and modals"
    tag = _tag(token)
    return tag.startswith('VB') or tag == 'MD'


class Sentence(object):
    """
    What we know about one sentence: its chunks (in order, with their
    heads) and its dependency edges
    """
    def __init__(self, segment_id):
        self.segment_id = segment_id
        self.chunks = []
        self.edges = []

    def has_role_labels(self):
        "True if any dependency carries an informative label"
        return any(e['label'] in ROLE_LABELS for e in self.edges)


class Chunk(object):
    """
    An accepted chunk, its tokens and its head token
    """
    def __init__(self, chunk_type, tokens, head):
        self.chunk_type = chunk_type
        self.tokens = tokens
        self.head = head

    @property
    def is_transparent(self):
        """
        A VP made up only of auxiliaries and modals, which lends them
        to the VP that follows it
        """
        return self.chunk_type == 'VP' and\
            all(_tag(t) == 'MD' or t['surface'].lower() in AUXILIARY_WORDS
                for t in self.tokens)


class Collector(object):
    """
    Relation candidates, deduplicated, in order of discovery
    """
    def __init__(self, tokens):
        self.tokens = tokens
        self.seen = set()
        self.items = []

    def add(self, sentence_id, predicate, argument, role, evidence):
        "record a relation (if it is new and not degenerate)"
        if predicate is None or argument is None or role is None:
            return
        if predicate == argument:
            return
        pred_tok = self.tokens.get(predicate)
        arg_tok = self.tokens.get(argument)
        if pred_tok is None or arg_tok is None:
            return
        if pred_tok['segment_id'] != sentence_id or\
                arg_tok['segment_id'] != sentence_id:
            return
        key = (sentence_id, predicate, argument, role)
        if key in self.seen:
            return
        self.seen.add(key)
        evidence = dict(evidence)
        evidence['sentence_id'] = sentence_id
        self.items.append((sentence_id, predicate, argument, role, evidence))

# ---------------------------------------------------------------------
# dependency rules
# ---------------------------------------------------------------------


def dependency_relations(sentence, resolve, tokens, collector):
    """
    Roles from labelled dependencies (direct labels, preposition
    chains, clausal links)
    """
    sid = sentence.segment_id
    pobjs = {}
    for edge in sentence.edges:
        if edge['label'] == 'pobj' and edge['head'] is not None:
            pobjs.setdefault(edge['head'], []).append(edge['dep'])
    for edge in sentence.edges:
        label = edge['label']
        dep, head = edge['dep'], edge['head']
        if edge['is_root'] or head is None:
            continue
        if label in LABEL_ROLES:
            collector.add(sid, resolve(head), dep, LABEL_ROLES[label],
                          {'pattern': 'dependency_label',
                           'dependency_label': label})
        elif label == 'aux' and _tag(tokens[dep]) == 'MD':
            collector.add(sid, resolve(head), dep, 'modality',
                          {'pattern': 'dependency_label',
                           'dependency_label': label})
        elif label == 'prep':
            surface = tokens[dep]['surface'].lower()
            role = PREPOSITION_ROLES.get(surface)
            for pobj in pobjs.get(dep, []):
                collector.add(sid, resolve(head), pobj, role,
                              {'pattern': 'preposition_chain',
                               'prep_surface': surface})
        elif label in CLAUSAL_LABELS or label == 'conj':
            pred, arg = resolve(head), resolve(dep)
            if is_verbish(tokens[pred]) and is_verbish(tokens[arg]):
                role = 'coordination' if label == 'conj'\
                    else 'complement_clause'
                collector.add(sid, pred, arg, role,
                              {'pattern': 'clausal_link',
                               'dependency_label': label})

# ---------------------------------------------------------------------
# chunk fallback
# ---------------------------------------------------------------------


def _object_head(tokens, start):
    """
    Rightmost noun of the first noun run at or after `start` (stopping
    at a preposition), or None
    """
    found = None
    for tok in tokens[start:]:
        tag = _tag(tok)
        if tag in NOUN_TAGS:
            found = tok
        elif found is not None or tag in ('IN', 'TO'):
            break
    return found


def _chunk_object(chunk):
    "rightmost noun of a chunk"
    nouns = [t for t in chunk.tokens if _tag(t) in NOUN_TAGS]
    return nouns[-1] if nouns else None


def _is_coordinator(chunk):
    return chunk.chunk_type == 'O' and len(chunk.tokens) == 1 and\
        (_tag(chunk.tokens[0]) == 'CC' or
         chunk.tokens[0]['surface'].lower() in COORDINATORS)


def _internal_pps(chunk, head_pos):
    """
    `(preposition token, object token)` pairs inside a VP, after its head
    """
    res = []
    for pos in range(head_pos + 1, len(chunk.tokens)):
        tok = chunk.tokens[pos]
        if _tag(tok) == 'IN':
            obj = _object_head(chunk.tokens, pos + 1)
            if obj is not None:
                res.append((tok, obj))
    return res


def chunk_relations(sentence, collector):
    """
    Roles read off the chunk sequence of a sentence: actors from the
    NP before a VP, themes from the object in (or right after) it,
    modality from its modals, preposition roles from its PPs, and
    coordination between VPs joined by a coordinator
    """
    sid = sentence.segment_id
    chunks = sentence.chunks
    for k, chunk in enumerate(chunks):
        if chunk.chunk_type != 'VP' or not is_verbish(chunk.head):
            continue
        nxt = chunks[k + 1] if k + 1 < len(chunks) else None
        if chunk.is_transparent and nxt is not None and\
                nxt.chunk_type == 'VP':
            continue
        pred = chunk.head['id']
        modals = [t for t in chunk.tokens if _tag(t) == 'MD']
        j = k - 1
        while j >= 0 and chunks[j].is_transparent:
            modals.extend(t for t in chunks[j].tokens if _tag(t) == 'MD')
            j -= 1
        if j >= 0 and chunks[j].chunk_type == 'NP':
            actor = _chunk_object(chunks[j])
            if actor is not None:
                collector.add(sid, pred, actor['id'], 'actor',
                              {'pattern': 'chunk_np_before_vp'})
        for modal in modals:
            collector.add(sid, pred, modal['id'], 'modality',
                          {'pattern': 'chunk_modal'})

        head_pos = [t['id'] for t in chunk.tokens].index(pred)
        obj = _object_head(chunk.tokens, head_pos + 1)
        if obj is not None:
            collector.add(sid, pred, obj['id'], 'theme',
                          {'pattern': 'chunk_vp_object'})
        elif nxt is not None and nxt.chunk_type == 'NP':
            theme = _chunk_object(nxt)
            if theme is not None:
                collector.add(sid, pred, theme['id'], 'theme',
                              {'pattern': 'chunk_adjacent_np'})
        for prep, pobj in _internal_pps(chunk, head_pos):
            surface = prep['surface'].lower()
            collector.add(sid, pred, pobj['id'],
                          PREPOSITION_ROLES.get(surface),
                          {'pattern': 'chunk_pp', 'prep_surface': surface})

        j = k + 1
        while j < len(chunks) and chunks[j].chunk_type in ('NP', 'PP'):
            if chunks[j].chunk_type == 'PP':
                surface = chunks[j].tokens[0]['surface'].lower()
                pobj = _chunk_object(chunks[j])
                if pobj is not None:
                    collector.add(sid, pred, pobj['id'],
                                  PREPOSITION_ROLES.get(surface),
                                  {'pattern': 'chunk_pp',
                                   'prep_surface': surface})
            j += 1
        if j + 1 < len(chunks) and _is_coordinator(chunks[j]):
            j += 1
            while j < len(chunks) - 1 and chunks[j].is_transparent:
                j += 1
            if chunks[j].chunk_type == 'VP' and is_verbish(chunks[j].head):
                collector.add(sid, pred, chunks[j].head['id'],
                              'coordination',
                              {'pattern': 'chunk_coordination'})

# ---------------------------------------------------------------------
# stage
# ---------------------------------------------------------------------


def _is_own_relation(annotation):
    return annotation.get('kind') == 'dependency' and\
        annotation.get('status') == 'accepted' and\
        has_source(annotation, SOURCE_NAME)


def read_sentences(doc, tokens):
    """
    `(sentences, resolve)`: a `Sentence` per segment (in order) and a
    function mapping a token id to the head of the chunk it is in
    """
    sentences = dict((seg['id'], Sentence(seg['id']))
                     for seg in doc.get('segments') or [])
    annotations = doc.get('annotations') or []
    chunk_heads = dict((a['chunk_id'], a['head']['id']) for a in annotations
                       if a.get('kind') == 'chunk_head' and
                       a.get('status') == 'accepted')
    predicate_of = {}
    for ann in annotations:
        if ann.get('kind') != 'chunk' or ann.get('status') != 'accepted':
            continue
        head = chunk_heads.get(ann['id'])
        if head is None or head not in tokens:
            continue
        chunk_tokens = sorted((tokens[t] for t in selector_token_ids(ann)
                               if t in tokens), key=lambda t: t['i'])
        for tok in chunk_tokens:
            predicate_of[tok['id']] = head
        sentence = sentences.get(tokens[head]['segment_id'])
        if sentence is not None:
            sentence.chunks.append(Chunk(ann.get('chunk_type'),
                                         chunk_tokens, tokens[head]))
    for ann in annotations:
        if ann.get('kind') != 'dependency' or\
                ann.get('status') != 'observation':
            continue
        dep = ann['dep']['id']
        if dep not in tokens:
            continue
        sentence = sentences.get(tokens[dep]['segment_id'])
        if sentence is not None:
            sentence.edges.append({
                'dep': dep,
                'head': (ann.get('head') or {}).get('id'),
                'label': ann.get('label'),
                'is_root': bool(ann.get('is_root'))})
    for sentence in sentences.values():
        sentence.chunks.sort(key=lambda c: c.tokens[0]['i'])

    def resolve(token_id):
        "head of the chunk the token is in (or the token itself)"
        return predicate_of.get(token_id, token_id)
    return [sentences[s['id']] for s in doc.get('segments') or []], resolve


def mk_relation(item, tokens, index, unit):
    """
    Accepted `dependency` annotation for a relation candidate
    """
    sentence_id, predicate, argument, role, evidence = item
    arg = tokens[argument]
    span = Span.from_json(arg['span'])
    return {'id': mk_id('rel', {'sentence_id': sentence_id,
                                'predicate': predicate,
                                'argument': argument,
                                'role': role}),
            'kind': 'dependency',
            'status': 'accepted',
            'label': role,
            'is_root': False,
            'head': {'id': predicate},
            'dep': {'id': argument},
            'anchor': {'selectors': [token_selector([predicate, argument]),
                                     position_selector(span),
                                     quote_selector(index.slice(span,
                                                                unit))]},
            'sources': [mk_source(SOURCE_NAME, 'rule', evidence)]}


def run_stage(doc, context=None):
    """
    Accepted role relations (as `dependency` annotations) between
    chunk heads
    """
    reject_annotations(doc, NAME, _is_own_relation,
                       'relation-extraction dependencies')
    out = clone(doc)
    index, unit = text_index(out)
    tokens = tokens_by_id(out)
    sentences, resolve = read_sentences(out, tokens)
    collector = Collector(tokens)
    for sentence in sentences:
        if sentence.has_role_labels():
            dependency_relations(sentence, resolve, tokens, collector)
        else:
            chunk_relations(sentence, collector)
    order = segment_positions(out)

    def sort_key(item):
        "sentence, predicate start, argument start, role, id"
        sentence_id, predicate, argument, role, _ = item
        rel_id = mk_id('rel', {'sentence_id': sentence_id,
                               'predicate': predicate,
                               'argument': argument,
                               'role': role})
        return (order.get(sentence_id, -1),
                tokens[predicate]['span']['start'],
                tokens[argument]['span']['start'],
                role, rel_id)
    relations = [mk_relation(item, tokens, index, unit)
                 for item in sorted(collector.items, key=sort_key)]
    out.setdefault('annotations', []).extend(relations)
    out['stage'] = 'relations_extracted'
    return out
