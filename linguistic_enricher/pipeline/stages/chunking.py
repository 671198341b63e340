# License: BSD3

"""
Stage 09: chunk each sentence into NP, VP, PP and O (outside) chunks
with a small finite state matcher over part of speech tags.

Each sentence is first turned into units: an accepted multiword
expression that can stand for a noun becomes a single noun unit, every
other token is a unit of its own. Punctuation and coordinators split
the units into runs and come out as `O` chunks on their own. Within a
run, at each position we try the three phrase matchers

* NP: (determiner) (modifier)* noun+
* PP: preposition NP
* VP: auxiliary* lexical-verb+ (NP) (to auxiliary* lexical-verb+ (NP))
  (PP)

and keep the longest match, preferring VP over PP over NP on ties. A
position where nothing matches becomes a one-unit `O` chunk.
"""

from frozendict import frozendict

from ...annotation import (mk_source, selector_token_ids,
                           text_selectors, token_selector)
from ...document import clone, reject_annotations, text_index,\
    tokens_by_id, tokens_by_segment
from ...ids import mk_id
from ...lexicon import AUXILIARY_WORDS
from .mwe_extraction import NOUN_PHRASE_PATTERNS

NAME = 'chunking'
SOURCE_NAME = 'chunking-pos-fsm'

VP_PP_DENY = frozenset(['for', 'at', 'in', 'than'])
"""
Prepositions whose phrases are never absorbed into a preceding VP
"""

PP_KINDS = frozendict({
    'of': 'genitive',
    'by': 'agentive',
    'for': 'benefactive',
    'with': 'instrumental',
    'without': 'privative',
    'at': 'locative',
    'in': 'locative',
    'on': 'locative',
    'inside': 'locative',
    'within': 'locative',
    'near': 'locative',
    'beside': 'locative',
    'between': 'locative',
    'among': 'locative',
    'under': 'locative',
    'below': 'locative',
    'above': 'locative',
    'over': 'locative',
    'behind': 'locative',
    'beyond': 'locative',
    'around': 'locative',
    'upon': 'locative',
    'outside': 'locative',
    'to': 'directional',
    'into': 'directional',
    'onto': 'directional',
    'toward': 'directional',
    'towards': 'directional',
    'from': 'ablative',
    'through': 'perlative',
    'via': 'perlative',
    'along': 'perlative',
    'across': 'perlative',
    'during': 'temporal',
    'before': 'temporal',
    'after': 'temporal',
    'since': 'temporal',
    'until': 'temporal',
    'till': 'temporal',
    'throughout': 'temporal',
    'than': 'comparative',
    'like': 'comparative',
    'as': 'comparative',
    'about': 'topical',
    'regarding': 'topical',
    'concerning': 'topical',
    'despite': 'concessive',
    'except': 'exceptive',
    'per': 'distributive',
    'because': 'causal',
})
DEFAULT_PP_KIND = 'generic'

DET_TAGS = frozenset(['DT', 'PDT', 'PRP$', 'WP$'])
MODIFIER_TAGS = frozenset(['JJ', 'JJR', 'JJS', 'VBN', 'VBG', 'CD'])
NOUN_TAGS = frozenset(['NN', 'NNS', 'NNP', 'NNPS', 'PRP'])
NOUN_PHRASE_INTERNAL_TAGS = frozenset(['NN', 'NNS', 'NNP', 'NNPS', 'JJ',
                                       'JJR', 'JJS', 'POS', 'CD'])
PREP_TAGS = frozenset(['IN', 'TO'])
COORDINATORS = frozenset(['and', 'or', 'but', 'nor'])


def _tag(token):
    return (token.get('pos') or {}).get('tag') or ''


class Unit(object):
    """
    What the chunk matchers step over: a single token, or a multiword
    expression standing for a noun

    Binary features (`det`, `adj`, `noun`, `verb`, `prep`, `aux`,
    `lex_verb`, `to_inf`) say which matcher slots the unit may fill
    """
    def __init__(self, tokens, is_mwe=False):
        self.tokens = tokens
        self.is_mwe = is_mwe
        first = tokens[0]
        tag = _tag(first)
        surface = first['surface'].lower()
        self.marker = surface
        self.punct = not is_mwe and\
            bool((first.get('flags') or {}).get('is_punct'))
        self.coordinator = not is_mwe and\
            (tag == 'CC' or surface in COORDINATORS)
        if is_mwe:
            self.det = self.adj = self.verb = self.prep = False
            self.aux = self.lex_verb = self.to_inf = False
            self.noun = True
            return
        self.det = tag in DET_TAGS
        self.adj = tag in MODIFIER_TAGS
        self.noun = tag in NOUN_TAGS
        self.verb = tag.startswith('VB') or tag == 'MD'
        self.aux = tag == 'MD' or (self.verb and surface in AUXILIARY_WORDS)
        self.lex_verb = self.verb and not self.aux
        self.prep = tag in PREP_TAGS
        self.to_inf = tag == 'TO'

    @property
    def breaks_run(self):
        "punctuation and coordinators end a run"
        return self.punct or self.coordinator


def _is_noun_mwe(annotation, tokens):
    """
    An accepted multiword expression can replace its tokens with a
    noun unit if it was found by a noun phrase pattern (or carries no
    pattern at all) and its tokens look noun phrase internal
    """
    patterns = annotation.get('pattern_ids')
    if patterns and not set(patterns) & NOUN_PHRASE_PATTERNS:
        return False
    tags = [_tag(t) for t in tokens]
    return all(t in NOUN_PHRASE_INTERNAL_TAGS for t in tags) and\
        tags[-1] in NOUN_TAGS


def noun_mwes(doc):
    """
    Token runs (lists of tokens) of the noun-like accepted multiword
    expressions, by segment id; among overlapping ones the leftmost
    (then longest) is kept
    """
    tokens = tokens_by_id(doc)
    found = {}
    for ann in doc.get('annotations') or []:
        if ann.get('kind') != 'mwe' or ann.get('status') != 'accepted':
            continue
        ids = selector_token_ids(ann)
        if len(ids) < 2 or any(t not in tokens for t in ids):
            continue
        toks = sorted((tokens[t] for t in ids), key=lambda t: t['i'])
        positions = [t['i'] for t in toks]
        if positions != list(range(positions[0],
                                   positions[0] + len(positions))):
            continue
        segment_id = toks[0]['segment_id']
        if any(t['segment_id'] != segment_id for t in toks):
            continue
        if _is_noun_mwe(ann, toks):
            found.setdefault(segment_id, []).append(toks)
    res = {}
    for segment_id, runs in found.items():
        runs.sort(key=lambda ts: (ts[0]['i'], -len(ts)))
        chosen = []
        end = None
        for toks in runs:
            if end is not None and toks[0]['i'] < end:
                continue
            chosen.append(toks)
            end = toks[-1]['i'] + 1
        res[segment_id] = chosen
    return res


def build_units(tokens, mwes):
    """
    Units for a sentence, given the multiword token runs to collapse
    """
    starts = dict((m[0]['id'], m) for m in mwes)
    units = []
    i = 0
    while i < len(tokens):
        mwe = starts.get(tokens[i]['id'])
        if mwe is not None:
            units.append(Unit(mwe, is_mwe=True))
            i += len(mwe)
        else:
            units.append(Unit([tokens[i]]))
            i += 1
    return units

# ---------------------------------------------------------------------
# matchers
# ---------------------------------------------------------------------


def match_np(run, pos):
    "number of units an NP starting at `pos` covers (0 if none)"
    i = pos
    if i < len(run) and run[i].det:
        i += 1
    while i < len(run) and run[i].adj:
        i += 1
    nouns = 0
    while i < len(run) and run[i].noun:
        i += 1
        nouns += 1
    return i - pos if nouns else 0


def match_pp(run, pos):
    "number of units a PP starting at `pos` covers (0 if none)"
    if pos < len(run) and run[pos].prep:
        np_len = match_np(run, pos + 1)
        if np_len:
            return 1 + np_len
    return 0


def match_verb_complex(run, pos):
    "auxiliaries then at least one lexical verb (0 if none)"
    i = pos
    while i < len(run) and run[i].aux:
        i += 1
    verbs = 0
    while i < len(run) and run[i].lex_verb:
        i += 1
        verbs += 1
    return i - pos if verbs else 0


def match_vp(run, pos):
    "number of units a VP starting at `pos` covers (0 if none)"
    i = pos + match_verb_complex(run, pos)
    if i == pos:
        return 0
    i += match_np(run, i)
    if i < len(run) and run[i].to_inf:
        continuation = match_verb_complex(run, i + 1)
        if continuation:
            i += 1 + continuation
            i += match_np(run, i)
    if i < len(run) and run[i].prep and not run[i].to_inf and\
            run[i].marker not in VP_PP_DENY:
        i += match_pp(run, i)
    return i - pos


def chunk_run(run):
    """
    `(chunk type, units)` pairs covering a run, left to right
    """
    res = []
    pos = 0
    while pos < len(run):
        # ties go to the first listed
        candidates = [('VP', match_vp(run, pos)),
                      ('PP', match_pp(run, pos)),
                      ('NP', match_np(run, pos))]
        best_type, best_len = max(candidates, key=lambda c: c[1])
        if best_len == 0:
            res.append(('O', run[pos:pos + 1]))
            pos += 1
        else:
            res.append((best_type, run[pos:pos + best_len]))
            pos += best_len
    return res


def chunk_units(units):
    """
    `(chunk type, units)` pairs covering a whole sentence
    """
    res = []
    run = []
    for unit in units:
        if unit.breaks_run:
            res.extend(chunk_run(run))
            res.append(('O', [unit]))
            run = []
        else:
            run.append(unit)
    res.extend(chunk_run(run))
    return res

# ---------------------------------------------------------------------
# annotations
# ---------------------------------------------------------------------


def pp_kind(marker):
    "semantic kind of a prepositional phrase, by its preposition"
    return PP_KINDS.get(marker.lower(), DEFAULT_PP_KIND)


def mk_chunk(chunk_type, units, segment_id, index, unit):
    """
    `chunk` annotation for a typed sequence of units
    """
    tokens = [t for u in units for t in u.tokens]
    token_ids = [t['id'] for t in tokens]
    ann = {'id': mk_id('chunk', {'segment_id': segment_id,
                                 'token_ids': token_ids,
                                 'chunk_type': chunk_type}),
           'kind': 'chunk',
           'status': 'accepted',
           'chunk_type': chunk_type,
           'label': ' '.join(t['surface'] for t in tokens)}
    evidence = {'pattern': chunk_type}
    if chunk_type == 'PP':
        ann['pp_kind'] = pp_kind(tokens[0]['surface'])
        evidence['marker'] = tokens[0]['surface'].lower()
    mwe_units = [u for u in units if u.is_mwe]
    if mwe_units:
        evidence['mwe_units'] = len(mwe_units)
    ann['anchor'] = {'selectors': text_selectors(tokens, index, unit) +
                     [token_selector(token_ids)]}
    ann['sources'] = [mk_source(SOURCE_NAME, 'rule', evidence)]
    return ann


def run_stage(doc, context=None):
    """
    `chunk` annotations covering every sentence
    """
    reject_annotations(doc, NAME, lambda a: a.get('kind') == 'chunk',
                       'chunk annotations')
    out = clone(doc)
    index, unit = text_index(out)
    chunks = []
    mwes = noun_mwes(out)
    for segment_id, tokens in tokens_by_segment(out).items():
        units = build_units(tokens, mwes.get(segment_id, []))
        for chunk_type, chunk in chunk_units(units):
            chunks.append(mk_chunk(chunk_type, chunk, segment_id,
                                   index, unit))
    out.setdefault('annotations', []).extend(chunks)
    out['stage'] = 'chunked'
    return out
