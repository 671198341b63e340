#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# License: BSD3

"""
Penn Treebank part of speech tags for tokens, built on NLTK taggers.

The default tagger needs no downloaded models: it is a backoff chain
of a unigram tagger over our closed-class lexicon, a capitalisation
rule, suffix regular expressions and finally a default noun tag. The
averaged perceptron tagger can be used instead when its NLTK data is
installed.

Whatever tagger is used, its output is touched up by a few context
rules (`repair_tags`) and the possessive override
(`override_possessives`).
"""

import re

from frozendict import frozendict
from nltk.tag import DefaultTagger, RegexpTagger, UnigramTagger
from nltk.tag.sequential import SequentialBackoffTagger

from ..errors import (EnricherException,
                      E_INVALID_INPUT,
                      E_PYTHON_MODEL_MISSING)
from ..lexicon import LEXICON, BE_HAVE_WORDS

# I don't yet see how "too few public methods" is helpful
# pylint: disable=R0903

RULE_TAGGER_NAME = 'rules'
PERCEPTRON_TAGGER_NAME = 'perceptron'

SUFFIX_PATTERNS = [
    (r'^[.!?]+$', '.'),
    (r'^,$', ','),
    (r'^(:|;|-+|\.\.\.|…)$', ':'),
    (r'^[(\[{]$', '-LRB-'),
    (r'^[)\]}]$', '-RRB-'),
    (r'^(``|"|“)$', '``'),
    (r"^(''|”|'|’)$", "''"),
    (r'^\$$', '$'),
    (r'^#$', '#'),
    (r"(?i)^['’]s$", 'POS'),
    (r"(?i)^n['’]t$", 'RB'),
    (r"(?i)^['’](m|re|ve)$", 'VBP'),
    (r"(?i)^['’](ll|d)$", 'MD'),
    (r'^[+-]?\d+([.,:/]\d+)*(st|nd|rd|th|s)?$', 'CD'),
    (r'^[^\w\s]+$', 'SYM'),
    (r'(?i)^\w+ing$', 'VBG'),
    (r'(?i)^\w{3,}ed$', 'VBD'),
    (r'(?i)^\w+ly$', 'RB'),
    (r'(?i)^\w+(ous|ful|ive|able|ible|ical|less|ish)$', 'JJ'),
    (r'(?i)^\w+(ness|ment|tion|sion|ity|ance|ence|ship|ism|ist)$', 'NN'),
    (r'(?i)^\w*[^\Ws]s$', 'NNS'),
]
"""
Shape and suffix rules, tried in order, for words the lexicon
does not know
"""

PENN_TO_COARSE = frozendict({
    'NN': 'NOUN', 'NNS': 'NOUN',
    'NNP': 'PROPN', 'NNPS': 'PROPN',
    'VB': 'VERB', 'VBD': 'VERB', 'VBG': 'VERB',
    'VBN': 'VERB', 'VBP': 'VERB', 'VBZ': 'VERB',
    'MD': 'AUX',
    'JJ': 'ADJ', 'JJR': 'ADJ', 'JJS': 'ADJ',
    'RB': 'ADV', 'RBR': 'ADV', 'RBS': 'ADV', 'WRB': 'ADV',
    'DT': 'DET', 'PDT': 'DET', 'WDT': 'DET', 'PRP$': 'DET', 'WP$': 'DET',
    'IN': 'ADP',
    'TO': 'PART', 'POS': 'PART', 'RP': 'PART',
    'CC': 'CCONJ',
    'CD': 'NUM',
    'PRP': 'PRON', 'WP': 'PRON', 'EX': 'PRON',
    'UH': 'INTJ',
    '.': 'PUNCT', ',': 'PUNCT', ':': 'PUNCT', '``': 'PUNCT', "''": 'PUNCT',
    '-LRB-': 'PUNCT', '-RRB-': 'PUNCT', 'HYPH': 'PUNCT', 'NFP': 'PUNCT',
    '$': 'SYM', '#': 'SYM', 'SYM': 'SYM',
    'FW': 'X', 'LS': 'X',
})

NOUN_TAGS = frozenset(['NN', 'NNS', 'NNP', 'NNPS'])
FINITE_TAGS = frozenset(['VBZ', 'VBP', 'VBD', 'MD'])
SUBJECT_TAGS = frozenset(['PRP', 'NN', 'NNS', 'NNP', 'NNPS', 'WDT', 'WP'])
MODIFIER_TAGS = frozenset(['DT', 'JJ', 'JJR', 'JJS', 'PRP$', 'POS', 'CD'])
OBJECT_START_TAGS = frozenset(['DT', 'PRP$', 'PRP', 'NNP', 'NNPS', 'NN',
                               'NNS', 'CD', 'IN', 'TO', 'RB',
                               'JJ', 'JJR', 'JJS'])
COORDINATED_OBJECT_START_TAGS = frozenset(['DT', 'PRP$', 'PRP', 'NNP',
                                           'NNPS', 'NN', 'NNS', 'CD',
                                           'JJ', 'JJR', 'JJS'])
POSSESSOR_TAGS = NOUN_TAGS
POSSESSED_TAGS = NOUN_TAGS | frozenset(['JJ', 'JJR', 'JJS', 'DT', 'PDT'])

_APOSTROPHE_S = re.compile("^['’‘`´ʼ][sS]?$")
_CAPITALISED = re.compile(r'^[A-Z][\w.\-]*$')
_SENTENCE_INITIAL_SUFFIXED = re.compile(r'(?i)^\w+(ing|ed|ly|s)$')


class EnricherPosTagException(EnricherException):
    """
    Exceptions that arise during POS tagging or when loading
    POS tag resources
    """
    def __init__(self, code, message, details=None):
        super(EnricherPosTagException, self).__init__(code, message, details)

# ---------------------------------------------------------------------
# tokens
# ---------------------------------------------------------------------


class RawToken(object):
    """
    A token with a part of speech tag associated with it
    """
    def __init__(self, word, tag):
        self.word = word
        self.tag = tag

    def __str__(self):
        return self.word + "/" + self.tag

    @property
    def coarse(self):
        "universal part of speech for the tag"
        return coarse_tag(self.tag)


def coarse_tag(tag):
    "universal part of speech for a Penn tag"
    return PENN_TO_COARSE.get(tag, 'X')

# ---------------------------------------------------------------------
# taggers
# ---------------------------------------------------------------------


class CapitalisedWordTagger(SequentialBackoffTagger):
    """
    Capitalised words are proper nouns, except at the very start of a
    sentence where a verb, adverb or plural suffix gets the benefit of
    the doubt
    """
    def choose_tag(self, tokens, index, history):
        word = tokens[index]
        if not _CAPITALISED.match(word):
            return None
        if index == 0 and _SENTENCE_INITIAL_SUFFIXED.match(word):
            return None
        return 'NNP'


def mk_rule_tagger():
    """
    Lexicon, then capitalisation, then suffixes, then plain nouns
    """
    fallback = RegexpTagger(SUFFIX_PATTERNS,
                            backoff=DefaultTagger('NN'))
    capitals = CapitalisedWordTagger(backoff=fallback)
    return UnigramTagger(model=dict(LEXICON.tags), backoff=capitals)


_TAGGERS = {}


def get_tagger(name=RULE_TAGGER_NAME):
    """
    The (cached) NLTK tagger of the given name

    Raises
    ------
    EnricherPosTagException
        if the name is unknown or the tagger model is not installed
    """
    if name in _TAGGERS:
        return _TAGGERS[name]
    if name == RULE_TAGGER_NAME:
        tagger = mk_rule_tagger()
    elif name == PERCEPTRON_TAGGER_NAME:
        from nltk.tag.perceptron import PerceptronTagger
        try:
            tagger = PerceptronTagger()
        except LookupError as err:
            raise EnricherPosTagException(
                E_PYTHON_MODEL_MISSING,
                'NLTK perceptron tagger model is not installed',
                {'tagger': name, 'reason': str(err).strip()})
    else:
        raise EnricherPosTagException(E_INVALID_INPUT,
                                      'Unknown tagger: %s' % name,
                                      {'tagger': name})
    _TAGGERS[name] = tagger
    return tagger

# ---------------------------------------------------------------------
# context rules
# ---------------------------------------------------------------------


def _nearest_verb_tag(tags, before):
    "tag of the closest verb to the left of position `before`, if any"
    for tag in reversed(tags[:before]):
        if tag.startswith('VB') or tag == 'MD':
            return tag
    return None


def _plural_proper_subject(tags, i):
    "a plural proper noun, or two coordinated ones, right before `i`"
    prev = tags[i - 1] if i > 0 else None
    if prev == 'NNPS':
        return True
    return prev == 'NNP' and i >= 3 and tags[i - 2] == 'CC' and\
        tags[i - 3] in ('NNP', 'NNPS')


def _starts_object(tags, i):
    "`i` starts an object, possibly after a coordinated base form verb"
    if i < len(tags) and tags[i] in OBJECT_START_TAGS:
        return True
    return i + 2 < len(tags) and tags[i] == 'CC' and\
        tags[i + 1] in ('NN', 'VB', 'VBP') and\
        tags[i + 2] in OBJECT_START_TAGS


def repair_tags(words, tags):
    """
    Fix the verb/noun confusions a context-free tagger makes,
    returning a new list of tags. Rules are applied left to right so
    each one sees the repairs made before it:

    * base form after `to` or a modal
    * past participle after be/have or a determiner, or before a noun
      at the start of the sentence
    * gerund used as a noun modifier ("a shopping cart")
    * plural noun that is really a finite verb ("it starts at")
    * singular noun that is really a base form verb after a plural
      proper noun subject ("Alice and Bob buy cars")
    * same thing for the second half of a coordination
      ("... and tests each")
    """
    tags = list(tags)
    for i, word in enumerate(words):
        tag = tags[i]
        prev = tags[i - 1] if i > 0 else None
        nxt = tags[i + 1] if i + 1 < len(tags) else None
        prev_word = words[i - 1].lower() if i > 0 else None
        if prev in ('TO', 'MD') and tag in ('NN', 'VBP'):
            tags[i] = 'VB'
        elif tag == 'VBD' and (prev in ('DT', 'PRP$') or
                               prev_word in BE_HAVE_WORDS or
                               (i == 0 and nxt in NOUN_TAGS)):
            tags[i] = 'VBN'
        elif tag == 'VBG' and prev in MODIFIER_TAGS and\
                nxt in ('NN', 'NNS'):
            tags[i] = 'NN'
        elif tag == 'NNS' and prev in SUBJECT_TAGS and\
                nxt in OBJECT_START_TAGS and\
                not any(t in FINITE_TAGS for t in tags[:i]):
            tags[i] = 'VBZ'
        elif tag == 'NN' and _plural_proper_subject(tags, i) and\
                _starts_object(tags, i + 1) and\
                not any(t in FINITE_TAGS for t in tags[:i]):
            tags[i] = 'VBP'
        elif prev == 'CC' and nxt in COORDINATED_OBJECT_START_TAGS:
            verb_tag = _nearest_verb_tag(tags, i - 1)
            if tag == 'NNS' and any(t in FINITE_TAGS for t in tags[:i - 1]):
                tags[i] = 'VBZ'
            elif tag == 'NN' and verb_tag == 'VB':
                tags[i] = 'VB'
            elif tag == 'NN' and i >= 2 and tags[i - 2] == 'VBP':
                tags[i] = 'VBP'
    return tags


def is_apostrophe_s(word):
    "apostrophe variant, optionally followed by s"
    return bool(_APOSTROPHE_S.match(word))


def override_possessives(words, tags):
    """
    An apostrophe-s (or bare apostrophe) is a possessive marker only
    between a noun and a noun/adjective/determiner; a `POS` tag
    anywhere else is taken to be a contracted "is"
    """
    tags = list(tags)
    for i, word in enumerate(words):
        if not is_apostrophe_s(word):
            continue
        prev = tags[i - 1] if i > 0 else None
        nxt = tags[i + 1] if i + 1 < len(tags) else None
        if prev in POSSESSOR_TAGS and nxt in POSSESSED_TAGS:
            tags[i] = 'POS'
        elif tags[i] == 'POS':
            tags[i] = 'VBZ'
    return tags


def tag_words(words, tagger=RULE_TAGGER_NAME):
    """
    Tag a single sentence

    Parameters
    ----------
    words : list of str
        Token surfaces of one sentence
    tagger : str
        Tagger name (see `get_tagger`)

    Returns
    -------
    res : list of RawToken
    """
    if not words:
        return []
    tags = [tag for _, tag in get_tagger(tagger).tag(list(words))]
    tags = override_possessives(words, repair_tags(words, tags))
    return [RawToken(word, tag) for word, tag in zip(words, tags)]
