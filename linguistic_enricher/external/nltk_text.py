# License: BSD3

"""
Sentence and word boundaries, courtesy of NLTK.

Both splitters work on codepoint offsets and need no downloaded NLTK
data: Punkt is used untrained (with our abbreviation list), and the
Treebank word tokenizer is purely rule based.
"""

import unicodedata

from nltk.tokenize.punkt import PunktParameters, PunktSentenceTokenizer
from nltk.tokenize.treebank import TreebankWordTokenizer

ABBREVIATIONS = frozenset([
    'mr', 'mrs', 'ms', 'dr', 'prof', 'sr', 'jr', 'st', 'mt', 'vs',
    'etc', 'e.g', 'i.e', 'cf', 'al', 'approx', 'dept', 'est', 'fig',
    'no', 'nos', 'vol', 'inc', 'ltd', 'co', 'corp', 'gen', 'gov',
    'u.s', 'u.k', 'u.n', 'a.m', 'p.m',
    'jan', 'feb', 'mar', 'apr', 'jun', 'jul', 'aug', 'sep', 'sept',
    'oct', 'nov', 'dec',
])
"""
Lower cased abbreviations, without their final period, which never
end a sentence
"""


def _mk_sentence_tokenizer():
    "untrained Punkt with our abbreviation list"
    params = PunktParameters()
    params.abbrev_types = set(ABBREVIATIONS)
    return PunktSentenceTokenizer(params)


_SENTENCE_TOKENIZER = _mk_sentence_tokenizer()
_WORD_TOKENIZER = TreebankWordTokenizer()


def _strip_span(text, start, end):
    "narrow a span so that it neither begins nor ends on whitespace"
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    return start, end


def _starts_lowercase(text, start, end):
    "True if the first letter-like character in the span is lower case"
    for char in text[start:end]:
        if char.isalpha():
            return char.islower()
        if not (char.isspace() or unicodedata.category(char)[0] == 'P'):
            return False
    return False


def sentence_spans(text):
    """
    Codepoint `(start, end)` pairs for the sentences in a text,
    stripped of surrounding whitespace, empty ones dropped.

    A boundary that would start the next sentence with a lower case
    letter is not a boundary (Punkt has no statistics to tell it so)
    """
    pieces = []
    for start, end in _SENTENCE_TOKENIZER.span_tokenize(text):
        start, end = _strip_span(text, start, end)
        if start == end:
            continue
        if pieces and _starts_lowercase(text, start, end):
            pieces[-1] = (pieces[-1][0], end)
        else:
            pieces.append((start, end))
    return pieces


def word_spans(text):
    """
    Codepoint `(start, end)` pairs for the Treebank-style tokens of a
    piece of text (contractions split off, final period detached)
    """
    return list(_WORD_TOKENIZER.span_tokenize(text))
