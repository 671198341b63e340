"""
Low-level representation of the annotations carried by a seed
document.

Documents themselves are plain JSON-compatible dictionaries (they
travel through files, subprocesses and the CLI as-is); this module
provides the few value types and builders that make working with
their anchors less error prone.

An annotation is anchored by a list of selectors, following the
W3C Web Annotation model:

* `TokenSelector`: the ids of the tokens it covers
* `TextPositionSelector`: a span over the canonical text
* `TextQuoteSelector`: the literal text that span covers
"""

# License: BSD3

# pylint: disable=too-few-public-methods

TOKEN_SELECTOR = 'TokenSelector'
POSITION_SELECTOR = 'TextPositionSelector'
QUOTE_SELECTOR = 'TextQuoteSelector'

ANNOTATION_KINDS = frozenset([
    'mwe',
    'chunk',
    'chunk_head',
    'dependency',
    'lemma',
    'noun_phrase',
    'named_entity',
    'comparative',
    'quantifier_scope',
    'copula_frame',
    'pp_attachment',
    'modality_scope',
    'negation_scope',
])

STATUSES = frozenset(['candidate', 'observation', 'accepted'])


class Span(object):
    """
    What portion of text an annotation corresponds to.

    The way we interpret spans amounts to how Python interprets array
    slice indices. One way to understand them is to think of offsets
    as sitting in between individual characters ::

          h   o   w   d   y
        0   1   2   3   4   5

    So `(0,5)` covers the whole word above, and `(1,2)` picks out the
    letter "o". Which unit the offsets count (codepoints, UTF-16 code
    units, UTF-8 bytes) is up to the document; see
    `linguistic_enricher.offsets`
    """
    def __init__(self, start, end):
        self.start = start
        self.end = end

    def __str__(self):
        return '(%d,%d)' % (self.start, self.end)

    def __repr__(self):
        return 'Span(%d, %d)' % (self.start, self.end)

    def __eq__(self, other):
        return\
            isinstance(other, Span) and\
            self.start == other.start and\
            self.end == other.end

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return (self.start, self.end).__hash__()

    def shift(self, offset):
        """
        Return a copy of this span, shifted to the right
        (if offset is positive) or left (if negative).
        """
        return Span(self.start + offset, self.end + offset)

    def encloses(self, other):
        """
        Return True if this span includes the argument

        Note that `x.encloses(x) == True`
        """
        if other is None:
            return False
        else:
            return\
                self.start <= other.start and\
                self.end >= other.end

    def overlaps(self, other):
        """
        Return the overlapping region if two spans have regions
        in common, or else None. ::

            Span(5, 10).overlaps(Span(8, 12)) == Span(8, 10)
            Span(5, 10).overlaps(Span(10, 12)) == None
        """
        if other is None:
            return None
        common_start = max(self.start, other.start)
        common_end = min(self.end, other.end)
        if common_start < common_end:
            return Span(common_start, common_end)
        else:
            return None

    def to_json(self):
        "dictionary form, as stored in documents"
        return {'start': self.start, 'end': self.end}

    @classmethod
    def from_json(cls, obj):
        "read a `{start, end}` dictionary"
        return cls(obj['start'], obj['end'])


# ---------------------------------------------------------------------
# selectors and sources
# ---------------------------------------------------------------------


def token_selector(token_ids):
    "selector for a list of token ids"
    return {'type': TOKEN_SELECTOR, 'token_ids': list(token_ids)}


def position_selector(span):
    "selector for a `Span`"
    return {'type': POSITION_SELECTOR, 'span': span.to_json()}


def quote_selector(exact):
    "selector for a literal piece of text"
    return {'type': QUOTE_SELECTOR, 'exact': exact}


def text_selectors(tokens, index, unit):
    """
    Quote and position selectors for the stretch of text running from
    the first to the last of the given (document order) tokens

    Parameters
    ----------
    tokens : list of dict
        Tokens, in document order
    index : OffsetIndex
        Offsets for the document's canonical text
    unit : str
        Document index basis

    Returns
    -------
    selectors : list of dict
        `[TextQuoteSelector, TextPositionSelector]`
    """
    span = Span(tokens[0]['span']['start'], tokens[-1]['span']['end'])
    return [quote_selector(index.slice(span, unit)),
            position_selector(span)]


def find_selector(annotation, selector_type):
    """
    The first selector of the given type on an annotation, or None
    """
    anchor = annotation.get('anchor') or {}
    for selector in anchor.get('selectors') or []:
        if selector.get('type') == selector_type:
            return selector
    return None


def selector_token_ids(annotation):
    """
    Token ids from an annotation's TokenSelector (empty if it has none)
    """
    selector = find_selector(annotation, TOKEN_SELECTOR)
    if selector is None:
        return []
    return list(selector.get('token_ids') or [])


def mk_source(name, kind, evidence=None):
    "provenance entry"
    source = {'name': name, 'kind': kind}
    if evidence is not None:
        source['evidence'] = evidence
    return source


def has_source(annotation, name):
    "True if the annotation lists a source of this name"
    return any(src.get('name') == name
               for src in annotation.get('sources') or [])
