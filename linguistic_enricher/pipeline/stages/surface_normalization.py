# License: BSD3

"""
Stage 00: tidy the surface of the raw text (byte order mark, line
endings, tabs and runs of spaces) before anything else looks at it
"""

import re
import unicodedata

from ...document import clone, reject_existing

NAME = 'surface-normalization'

BOM = '\ufeff'
_INDENT = re.compile(r'^[ \t]*')
_SPACE_RUN = re.compile(r' {2,}')


def normalize_line_endings(text):
    "CRLF and lone CR become LF"
    return text.replace('\r\n', '\n').replace('\r', '\n')


def normalize_line(line):
    """
    Tabs become spaces, runs of spaces collapse to one and trailing
    whitespace goes; leading indentation is kept as is (modulo tabs)
    """
    indent = _INDENT.match(line).group(0)
    body = line[len(indent):].replace('\t', ' ')
    body = _SPACE_RUN.sub(' ', body).rstrip()
    if not body:
        return ''
    return indent.replace('\t', ' ') + body


def normalize_surface(text):
    """
    Surface normalised version of a text ::

        normalize_surface('A\\t\\tB   C   \\nD\\t E   ') == 'A B C\\nD E'
    """
    if text.startswith(BOM):
        text = text[len(BOM):]
    lines = normalize_line_endings(text).split('\n')
    text = '\n'.join(normalize_line(x) for x in lines)
    return unicodedata.normalize('NFC', text)


def run_stage(doc, context=None):
    """
    Normalise the document's text surface, remembering the original
    """
    reject_existing(doc, NAME, ('segments', 'tokens', 'annotations'))
    out = clone(doc)
    original = out.get('canonical_text') or ''
    normalized = normalize_surface(original)
    inputs = out.setdefault('inputs', {})
    inputs.setdefault('original_text', original)
    inputs['surface_normalized_text'] = normalized
    out['canonical_text'] = normalized
    out['stage'] = 'canonical'
    return out
