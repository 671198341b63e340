# License: BSD3

"""
Runtime invariants: the things a JSON schema cannot say about a
document.

* spans stay within the text, and fall on character boundaries in
  the declared index basis
* segments and tokens are ordered, positioned and uniquely identified
* every token, segment and chunk reference resolves
* quoted text agrees with the span it claims to quote
* accepted chunks cover contiguous, sorted tokens
"""

from ..annotation import (Span,
                          POSITION_SELECTOR, QUOTE_SELECTOR, TOKEN_SELECTOR)
from ..errors import EnricherException, invariant_violation
from ..offsets import OffsetIndex, document_unit


class _Problems(object):
    """
    Accumulates invariant problems so we can report all of them
    """
    def __init__(self):
        self.messages = []
        self.ids = []

    def add(self, message, offending=None):
        "record a problem (and the id of the offending object, if any)"
        self.messages.append(message)
        if offending is not None and offending not in self.ids:
            self.ids.append(offending)

    def raise_if_any(self):
        "raise an invariant violation summarising what we found"
        if self.messages:
            msg = 'Document violates %d invariant%s: %s' %\
                (len(self.messages),
                 '' if len(self.messages) == 1 else 's',
                 self.messages[0])
            raise invariant_violation(msg,
                                      errors=self.messages,
                                      count=len(self.messages),
                                      ids=self.ids)


def _check_span(problems, where, span, index, unit):
    """
    Record problems with a `{start, end}` span; return it as a `Span`
    if it is usable
    """
    start, end = span.get('start'), span.get('end')
    length = index.length(unit)
    if not 0 <= start <= end <= length:
        problems.add('%s: span (%d,%d) out of bounds for text of length %d'
                     % (where, start, end, length))
        return None
    try:
        index.span_from_unit(Span(start, end), unit)
    except EnricherException:
        problems.add('%s: span (%d,%d) splits a character in %s'
                     % (where, start, end, unit))
        return None
    return Span(start, end)


def _check_unique(problems, what, items):
    "record duplicate ids among items"
    seen = set()
    for item in items:
        ident = item.get('id')
        if ident in seen:
            problems.add('duplicate %s id %s' % (what, ident), ident)
        seen.add(ident)


def _check_segments(problems, doc, index, unit):
    segments = doc.get('segments') or []
    tokens = doc.get('tokens') or []
    _check_unique(problems, 'segment', segments)
    last_start = None
    spans = {}
    for pos, seg in enumerate(segments):
        where = 'segment %s' % seg['id']
        if seg['index'] != pos:
            problems.add('%s: index %d does not match position %d'
                         % (where, seg['index'], pos), seg['id'])
        span = _check_span(problems, where, seg['span'], index, unit)
        if span is not None:
            spans[seg['id']] = span
            if last_start is not None and span.start < last_start:
                problems.add('%s: segments are not ordered by start'
                             % where, seg['id'])
            last_start = span.start
        trange = seg['token_range']
        if not 0 <= trange['start'] <= trange['end'] <= len(tokens):
            problems.add('%s: token range [%d,%d) out of bounds (%d tokens)'
                         % (where, trange['start'], trange['end'],
                            len(tokens)), seg['id'])
            continue
        for tok in tokens[trange['start']:trange['end']]:
            if tok.get('segment_id') != seg['id']:
                problems.add('%s: token %s in its range belongs to %s'
                             % (where, tok['id'], tok.get('segment_id')),
                             seg['id'])
    return spans


def _check_tokens(problems, doc, index, unit, segment_spans):
    tokens = doc.get('tokens') or []
    segment_ids = set(seg['id'] for seg in doc.get('segments') or [])
    _check_unique(problems, 'token', tokens)
    last_start = None
    for pos, tok in enumerate(tokens):
        where = 'token %s' % tok['id']
        if tok['i'] != pos:
            problems.add('%s: i=%d does not match position %d'
                         % (where, tok['i'], pos), tok['id'])
        if tok['segment_id'] not in segment_ids:
            problems.add('%s: unknown segment %s'
                         % (where, tok['segment_id']), tok['id'])
        span = _check_span(problems, where, tok['span'], index, unit)
        if span is None:
            continue
        if last_start is not None and span.start < last_start:
            problems.add('%s: tokens are not ordered by start' % where,
                         tok['id'])
        last_start = span.start
        seg_span = segment_spans.get(tok['segment_id'])
        if seg_span is not None and not seg_span.encloses(span):
            problems.add('%s: span %s lies outside segment %s'
                         % (where, span, tok['segment_id']), tok['id'])


def _check_selectors(problems, ann, index, unit, tokens):
    where = 'annotation %s' % ann['id']
    position = None
    quote = None
    for selector in ann['anchor']['selectors']:
        stype = selector['type']
        if stype == TOKEN_SELECTOR:
            for tid in selector['token_ids']:
                if tid not in tokens:
                    problems.add('%s: unknown token %s' % (where, tid),
                                 ann['id'])
        elif stype == POSITION_SELECTOR:
            position = _check_span(problems, where, selector['span'],
                                   index, unit)
        elif stype == QUOTE_SELECTOR:
            quote = selector['exact']
    if position is not None and quote is not None:
        actual = index.slice(position, unit)
        if actual != quote:
            problems.add('%s: quote %r does not match text %r at %s'
                         % (where, quote, actual, position), ann['id'])


def _check_chunk_tokens(problems, ann, offsets):
    "`offsets` maps token ids to their position in the token list"
    token_ids = []
    for selector in ann['anchor']['selectors']:
        if selector['type'] == TOKEN_SELECTOR:
            token_ids = selector['token_ids']
    positions = [offsets[t] for t in token_ids if t in offsets]
    if not positions:
        problems.add('chunk %s: no tokens' % ann['id'], ann['id'])
    elif positions != list(range(positions[0],
                                 positions[0] + len(positions))):
        problems.add('chunk %s: tokens are not contiguous and sorted'
                     % ann['id'], ann['id'])


def _check_annotations(problems, doc, index, unit):
    annotations = doc.get('annotations') or []
    tokens = dict((tok['id'], tok) for tok in doc.get('tokens') or [])
    offsets = dict((tok['id'], n)
                   for n, tok in enumerate(doc.get('tokens') or []))
    chunk_ids = set(ann['id'] for ann in annotations
                    if ann['kind'] == 'chunk')
    _check_unique(problems, 'annotation', annotations)
    for ann in annotations:
        where = 'annotation %s' % ann['id']
        _check_selectors(problems, ann, index, unit, tokens)
        kind = ann['kind']
        if kind == 'dependency':
            if ann['dep']['id'] not in tokens:
                problems.add('%s: unknown dependent token %s'
                             % (where, ann['dep']['id']), ann['id'])
            if not ann.get('is_root'):
                head = (ann.get('head') or {}).get('id')
                if head not in tokens:
                    problems.add('%s: unknown head token %s'
                                 % (where, head), ann['id'])
        elif kind == 'chunk_head':
            if ann['chunk_id'] not in chunk_ids:
                problems.add('%s: unknown chunk %s'
                             % (where, ann['chunk_id']), ann['id'])
            if ann['head']['id'] not in tokens:
                problems.add('%s: unknown head token %s'
                             % (where, ann['head']['id']), ann['id'])
        elif kind == 'chunk' and ann['status'] == 'accepted':
            _check_chunk_tokens(problems, ann, offsets)


def invariant_errors(doc):
    """
    Descriptions of every invariant the (schema-valid) document
    violates, in document order
    """
    problems = _Problems()
    _collect(problems, doc)
    return problems.messages


def _collect(problems, doc):
    index = OffsetIndex(doc['canonical_text'])
    unit = document_unit(doc)
    segment_spans = _check_segments(problems, doc, index, unit)
    _check_tokens(problems, doc, index, unit, segment_spans)
    _check_annotations(problems, doc, index, unit)


def validate_invariants(doc):
    """
    Raise an `E_INVARIANT_VIOLATION` error if the document (assumed
    to be schema-valid) breaks any runtime invariant
    """
    problems = _Problems()
    _collect(problems, doc)
    problems.raise_if_any()
    return True
