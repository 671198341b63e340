# License: BSD3

"""
Stage 05: multiword expression candidates from part of speech
patterns.

Patterns are sequences of slots (a set of tags, optionally restricted
to or excluding some words) and optional groups of slots. Matching
backtracks over optional elements so that a pattern yields every
stretch of tokens it can cover from a given start; a match never
crosses punctuation or a sentence boundary. Matches over the same
tokens are merged into one candidate listing all the patterns that
found it.
"""

from ...annotation import mk_source, text_selectors, token_selector
from ...document import clone, reject_annotations, text_index,\
    tokens_by_segment
from ...external.wikipedia import SERVICE_NAME, empty_evidence
from ...ids import mk_id
from ...lexicon import AUXILIARY_WORDS
from . import ensure_context

NAME = 'mwe-candidate-extraction'
SOURCE_PREFIX = 'pattern-matcher/'

NOUN = frozenset(['NN', 'NNS', 'NNP', 'NNPS'])
PROPN = frozenset(['NNP', 'NNPS'])
ADJ = frozenset(['JJ', 'JJR', 'JJS'])
VERB = frozenset(['VB', 'VBD', 'VBG', 'VBN', 'VBP', 'VBZ'])
DET = frozenset(['DT'])

WEAK_OBJECTS = frozenset([
    'customer', 'customers', 'people', 'person', 'persons', 'user',
    'users', 'someone', 'somebody', 'thing', 'things', 'way', 'ways',
    'time', 'times', 'lot', 'lots', 'part', 'parts', 'one', 'ones',
])
"""
Nouns too generic to make a verb-object expression
"""

TO_VERB_ALLOWED = frozenset(['buy', 'pay', 'sell', 'order', 'ship', 'use',
                             'book', 'check'])
"""
Second verbs for which "VERB to VERB" is worth a candidate
"""


class Slot(object):
    """
    One token whose tag is in `tags` (and, if given, whose lower cased
    surface is in `words` and not in `exclude`)
    """
    def __init__(self, tags, words=None, exclude=None, optional=False):
        self.tags = tags
        self.words = words
        self.exclude = exclude or frozenset()
        self.optional = optional

    def accepts(self, token):
        "True if the slot can be filled by this token"
        tag = (token.get('pos') or {}).get('tag')
        surface = token['surface'].lower()
        return tag in self.tags and\
            (self.words is None or surface in self.words) and\
            surface not in self.exclude

    def consume(self, tokens, pos):
        "positions at which matching could continue after this slot"
        if pos < len(tokens) and self.accepts(tokens[pos]):
            return [pos + 1]
        return []


class Group(object):
    """
    A sequence of elements matched as a whole (typically optional)
    """
    def __init__(self, elements, optional=False):
        self.elements = elements
        self.optional = optional

    def consume(self, tokens, pos):
        "positions at which matching could continue after this group"
        return [x for x in match_elements(self.elements, tokens, pos)
                if x > pos]


def match_elements(elements, tokens, pos):
    """
    Every position where a match of the elements starting at `pos`
    could end (sorted, without duplicates)
    """
    if not elements:
        return [pos]
    head, rest = elements[0], elements[1:]
    ends = set()
    if head.optional:
        ends.update(match_elements(rest, tokens, pos))
    for after in head.consume(tokens, pos):
        ends.update(match_elements(rest, tokens, after))
    return sorted(ends)


def _verb(**kwargs):
    return Slot(VERB, exclude=AUXILIARY_WORDS, **kwargs)


PATTERNS = [
    ('adj_noun_noun', [Slot(ADJ), Slot(NOUN), Slot(NOUN)]),
    ('adj_adj_noun', [Slot(ADJ), Slot(ADJ), Slot(NOUN)]),
    ('adj_noun', [Slot(ADJ), Slot(NOUN)]),
    ('noun_noun_noun', [Slot(NOUN), Slot(NOUN), Slot(NOUN)]),
    ('noun_noun', [Slot(NOUN), Slot(NOUN)]),
    ('propn_propn', [Slot(PROPN), Slot(PROPN)]),
    ('noun_pos_noun', [Slot(NOUN), Slot(frozenset(['POS'])), Slot(NOUN)]),
    ('noun_of_noun', [Slot(NOUN), Slot(frozenset(['IN']),
                                       words=frozenset(['of'])),
                      Slot(NOUN)]),
    ('noun_of_det_noun', [Slot(NOUN), Slot(frozenset(['IN']),
                                           words=frozenset(['of'])),
                          Slot(DET), Slot(NOUN)]),
    ('verb_noun', [_verb(), Slot(NOUN)]),
    ('verb_det_noun', [_verb(), Slot(DET), Slot(NOUN)]),
    ('verb_object_pp', [_verb(),
                        Slot(DET, optional=True),
                        Slot(ADJ, optional=True),
                        Slot(NOUN),
                        Group([Slot(frozenset(['IN']),
                                    words=frozenset(['for', 'of'])),
                               Slot(NOUN)], optional=True)]),
    ('verb_particle', [_verb(), Slot(frozenset(['RP']))]),
    ('verb_to_verb', [_verb(), Slot(frozenset(['TO'])),
                      _verb(words=TO_VERB_ALLOWED)]),
]

VERB_OBJECT_PATTERNS = frozenset(['verb_noun', 'verb_det_noun',
                                  'verb_object_pp'])

NOUN_PHRASE_PATTERNS = frozenset(['adj_noun_noun', 'adj_adj_noun',
                                  'adj_noun', 'noun_noun_noun', 'noun_noun',
                                  'propn_propn', 'noun_pos_noun'])
"""
Patterns whose candidates can stand in for a noun inside a noun phrase
"""


def _tag(token):
    return (token.get('pos') or {}).get('tag')


def passes_semantic_filter(pattern_id, tokens):
    """
    Verb-object candidates need a noun, and a final noun that is not
    a weak object
    """
    if pattern_id not in VERB_OBJECT_PATTERNS:
        return True
    nouns = [t for t in tokens if _tag(t) in NOUN]
    if not nouns:
        return False
    return nouns[-1]['surface'].lower() not in WEAK_OBJECTS


def find_matches(tokens):
    """
    `(token list, pattern ids)` pairs for one sentence, merged by
    token sequence, in order of discovery
    """
    found = {}
    order = []
    for start in range(len(tokens)):
        for pattern_id, elements in PATTERNS:
            for end in match_elements(elements, tokens, start):
                if end <= start + 1:
                    continue
                match = tokens[start:end]
                if any((t.get('flags') or {}).get('is_punct') for t in match):
                    continue
                if not passes_semantic_filter(pattern_id, match):
                    continue
                key = tuple(t['id'] for t in match)
                if key not in found:
                    found[key] = (match, [])
                    order.append(key)
                if pattern_id not in found[key][1]:
                    found[key][1].append(pattern_id)
    return [found[k] for k in order]


def candidate_label(tokens):
    "surface of the candidate without its determiners"
    return ' '.join(t['surface'] for t in tokens if _tag(t) != 'DT')


def _sort_key(match):
    tokens, pattern_ids = match
    start = tokens[0]['span']['start']
    length = tokens[-1]['span']['end'] - start
    return (start, -length, sorted(pattern_ids)[0],
            '|'.join(t['id'] for t in tokens))


def run_stage(doc, context=None):
    """
    Candidate `mwe` annotations for every pattern match
    """
    context = ensure_context(context)
    reject_annotations(doc, NAME, lambda a: a.get('kind') == 'mwe',
                       'mwe annotations')
    out = clone(doc)
    index, unit = text_index(out)
    annotations = out.setdefault('annotations', [])
    matches = []
    for tokens in tokens_by_segment(out).values():
        matches.extend(find_matches(tokens))
    for tokens, pattern_ids in sorted(matches, key=_sort_key):
        pattern_ids = sorted(pattern_ids)
        token_ids = [t['id'] for t in tokens]
        label = candidate_label(tokens)
        evidence = None
        if context.lexicon.enabled:
            evidence = context.lexicon.evidence(label)
        sources = [mk_source(SOURCE_PREFIX + p, 'pattern')
                   for p in pattern_ids]
        sources.append(mk_source(SERVICE_NAME, 'lexicon',
                                 evidence or empty_evidence()))
        selectors = [token_selector(token_ids)] +\
            text_selectors(tokens, index, unit)
        annotations.append({
            'id': mk_id('mwe-candidate', {'token_ids': token_ids,
                                          'pattern_ids': pattern_ids}),
            'kind': 'mwe',
            'status': 'candidate',
            'label': label,
            'pattern_ids': pattern_ids,
            'anchor': {'selectors': selectors},
            'sources': sources,
        })
    out['stage'] = 'mwe_candidates'
    return out
