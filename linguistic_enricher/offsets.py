# License: BSD3

"""
Index bases.

Spans in a document are offsets into its `canonical_text`, counted in
one of three units: UTF-16 code units (what a JavaScript or Java
client would see), Unicode codepoints (what a Python `str` sees), or
UTF-8 bytes. Internally we always work on codepoints and convert at
the edges through an `OffsetIndex` ::

    index = OffsetIndex(u'A\U0001F600 B')
    index.to_unit(2, UTF16)         # => 3
    index.from_unit(5, BYTES_UTF8)  # => 2
"""

from .annotation import Span
from .errors import invariant_violation

UTF16 = 'utf16_code_units'
CODEPOINTS = 'unicode_codepoints'
BYTES_UTF8 = 'bytes_utf8'

INDEX_UNITS = (UTF16, CODEPOINTS, BYTES_UTF8)
DEFAULT_UNIT = UTF16


def _unit_width(char, unit):
    "how many units a single codepoint occupies"
    if unit == UTF16:
        return 2 if ord(char) > 0xFFFF else 1
    elif unit == BYTES_UTF8:
        return len(char.encode('utf-8', 'surrogatepass'))
    else:
        return 1


class OffsetIndex(object):
    """
    Precomputed offset tables for a text.

    `to_unit` maps a codepoint offset (0 to len(text) inclusive) into
    the target unit; `from_unit` goes the other way and refuses offsets
    that fall inside a multi-unit character
    """
    def __init__(self, text):
        self.text = text
        self._forward = {}
        self._backward = {}
        for unit in (UTF16, BYTES_UTF8):
            table = [0]
            for char in text:
                table.append(table[-1] + _unit_width(char, unit))
            self._forward[unit] = table
            self._backward[unit] = dict((off, i) for i, off
                                        in enumerate(table))

    def length(self, unit):
        "length of the text in the given unit"
        if unit == CODEPOINTS:
            return len(self.text)
        return self._forward[unit][-1]

    def to_unit(self, offset, unit):
        "codepoint offset to unit offset"
        if unit == CODEPOINTS:
            return offset
        return self._forward[unit][offset]

    def from_unit(self, offset, unit):
        "unit offset to codepoint offset"
        if unit == CODEPOINTS:
            if not 0 <= offset <= len(self.text):
                raise invariant_violation(
                    'Offset %d is outside the text' % offset,
                    offset=offset, unit=unit)
            return offset
        try:
            return self._backward[unit][offset]
        except KeyError:
            raise invariant_violation(
                'Offset %d is not a character boundary in %s'
                % (offset, unit), offset=offset, unit=unit)

    def span_to_unit(self, span, unit):
        "codepoint `Span` to unit `Span`"
        return Span(self.to_unit(span.start, unit),
                    self.to_unit(span.end, unit))

    def span_from_unit(self, span, unit):
        "unit `Span` to codepoint `Span`"
        return Span(self.from_unit(span.start, unit),
                    self.from_unit(span.end, unit))

    def slice(self, span, unit):
        """
        The text covered by a span expressed in the given unit
        """
        cspan = self.span_from_unit(span, unit)
        return self.text[cspan.start:cspan.end]


def document_unit(doc):
    """
    The index basis a document declares (defaulting to UTF-16)
    """
    return (doc.get('index_basis') or {}).get('unit') or DEFAULT_UNIT
