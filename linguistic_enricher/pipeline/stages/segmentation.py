# License: BSD3

"""
Stage 02: split the canonical text into sentence segments
"""

from ...annotation import Span
from ...document import clone, reject_existing, text_index
from ...errors import invariant_violation
from ...external.nltk_text import sentence_spans

NAME = 'segmentation'


def run_stage(doc, context=None):
    """
    One `sentence` segment per sentence found, with an empty token
    range (tokenization fills it in)
    """
    reject_existing(doc, NAME, ('segments', 'tokens', 'annotations'))
    out = clone(doc)
    text = out.get('canonical_text') or ''
    if not text.strip():
        raise invariant_violation('%s needs non-blank text' % NAME,
                                  stage=NAME, length=len(text))
    index, unit = text_index(out)
    pieces = sentence_spans(text)
    if not pieces:
        raise invariant_violation('%s found no segments' % NAME,
                                  stage=NAME, length=len(text))
    segments = []
    for i, (start, end) in enumerate(pieces):
        span = index.span_to_unit(Span(start, end), unit)
        segments.append({'id': 's%d' % (i + 1),
                         'index': i,
                         'kind': 'sentence',
                         'span': span.to_json(),
                         'token_range': {'start': 0, 'end': 0}})
    out['segments'] = segments
    out['stage'] = 'segmented'
    return out
