# License: BSD3

"""
Stage 03: split each segment into word and punctuation tokens.

Treebank tokenization does most of the work; we then give symbols
(emoji and the like) tokens of their own and run a merge cascade that
glues back together things we prefer to keep whole:

1. ellipses spelt out as separate periods
2. dotted abbreviations whose final period was split off ("U.S.")
3. hyphenated compounds ("state-of-the-art")
4. curly apostrophe-s possessives ("customer’s")
"""

import re
import unicodedata

from ...annotation import Span
from ...document import clone, reject_existing, text_index
from ...errors import invariant_violation
from ...external.nltk_text import word_spans

NAME = 'tokenization'

TITLE_ABBREVIATIONS = frozenset(['mr', 'mrs', 'ms', 'dr', 'prof', 'sr', 'jr',
                                 'st', 'vs', 'etc'])
CURLY_APOSTROPHE_S = frozenset(['’s', '’S', 'ʼs', 'ʼS'])

_DOTTED = re.compile(r'^[A-Za-z](\.[A-Za-z])+$')
_WORD = re.compile(r'^\w+$')


def is_punct(surface):
    "True if every character is Unicode punctuation"
    return bool(surface) and\
        all(unicodedata.category(c).startswith('P') for c in surface)


def _is_symbol(char):
    return unicodedata.category(char) == 'So'


def split_symbols(text, pieces):
    """
    Give every symbol character (emoji, dingbats) a token of its own
    """
    res = []
    for start, end in pieces:
        run_start = start
        for pos in range(start, end):
            if _is_symbol(text[pos]):
                if run_start < pos:
                    res.append((run_start, pos))
                res.append((pos, pos + 1))
                run_start = pos + 1
        if run_start < end:
            res.append((run_start, end))
    return res


def _merge_where(text, pieces, should_merge):
    """
    Merge each piece into its predecessor when the two are adjacent
    and `should_merge(previous_surface, surface)` holds
    """
    res = []
    for start, end in pieces:
        if res and res[-1][1] == start and\
                should_merge(text[res[-1][0]:res[-1][1]], text[start:end]):
            res[-1] = (res[-1][0], end)
        else:
            res.append((start, end))
    return res


def merge_ellipses(text, pieces):
    "'.' '.' '.' => '...'"
    return _merge_where(text, pieces,
                        lambda prev, cur: cur == '.' and
                        prev and set(prev) == set('.'))


def merge_dotted_abbreviations(text, pieces):
    "'U.S' '.' => 'U.S.' and 'Dr' '.' => 'Dr.'"
    return _merge_where(text, pieces,
                        lambda prev, cur: cur == '.' and
                        (bool(_DOTTED.match(prev)) or
                         prev.lower() in TITLE_ABBREVIATIONS))


def merge_hyphen_compounds(text, pieces):
    "'state' '-' 'of' ... => 'state-of-...'"
    res = []
    i = 0
    while i < len(pieces):
        start, end = pieces[i]
        if res and text[start:end] == '-' and i + 1 < len(pieces):
            prev_start, prev_end = res[-1]
            next_start, next_end = pieces[i + 1]
            if prev_end == start and next_start == end and\
                    _WORD.match(text[prev_start:prev_end].split('-')[-1]) and\
                    _WORD.match(text[next_start:next_end]):
                res[-1] = (prev_start, next_end)
                i += 2
                continue
        res.append((start, end))
        i += 1
    return res


def merge_apostrophe_s(text, pieces):
    "'customer' '’s' => 'customer’s'"
    return _merge_where(text, pieces,
                        lambda prev, cur: cur in CURLY_APOSTROPHE_S and
                        bool(_WORD.match(prev)))


MERGE_CASCADE = [merge_ellipses,
                 merge_dotted_abbreviations,
                 merge_hyphen_compounds,
                 merge_apostrophe_s]


def segment_pieces(text):
    """
    Codepoint `(start, end)` pairs for the tokens of a piece of text
    """
    pieces = split_symbols(text, word_spans(text))
    for merge in MERGE_CASCADE:
        pieces = merge(text, pieces)
    return pieces


def run_stage(doc, context=None):
    """
    Tokens for every segment, and the token range of each segment
    """
    reject_existing(doc, NAME, ('tokens', 'annotations'))
    if not doc.get('segments'):
        raise invariant_violation('%s needs segments' % NAME, stage=NAME)
    out = clone(doc)
    index, unit = text_index(out)
    tokens = []
    for seg in out['segments']:
        seg_span = index.span_from_unit(Span.from_json(seg['span']), unit)
        seg_text = index.text[seg_span.start:seg_span.end]
        first = len(tokens)
        for start, end in segment_pieces(seg_text):
            cspan = Span(start, end).shift(seg_span.start)
            surface = index.text[cspan.start:cspan.end]
            tokens.append({'id': 't%d' % (len(tokens) + 1),
                           'i': len(tokens),
                           'segment_id': seg['id'],
                           'span': index.span_to_unit(cspan, unit).to_json(),
                           'surface': surface,
                           'flags': {'is_punct': is_punct(surface)}})
        seg['token_range'] = {'start': first, 'end': len(tokens)}
    out['tokens'] = tokens
    out['stage'] = 'tokenized'
    return out
