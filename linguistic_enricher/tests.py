# -*- coding: utf-8 -*-
#
# License: BSD3
# pylint: disable=too-many-public-methods, invalid-name

"""
Tests for the linguistic_enricher building blocks
"""

import hashlib
import unittest

from linguistic_enricher.annotation import (Span,
                                            find_selector,
                                            has_source,
                                            mk_source,
                                            selector_token_ids,
                                            text_selectors,
                                            token_selector,
                                            POSITION_SELECTOR,
                                            QUOTE_SELECTOR)
from linguistic_enricher.document import (seed_document, reject_existing,
                                          reject_annotations,
                                          tokens_by_segment)
from linguistic_enricher.errors import (EnricherException,
                                        E_INVARIANT_VIOLATION,
                                        ERROR_CODES,
                                        invariant_violation)
from linguistic_enricher.ids import canonical_json, content_hash, mk_id
from linguistic_enricher.lexicon import (LexEntry, Lexicon,
                                         LexiconException, LEXICON,
                                         AUXILIARY_WORDS, BE_HAVE_WORDS)
from linguistic_enricher.offsets import (OffsetIndex,
                                         BYTES_UTF8, CODEPOINTS, UTF16)

# ---------------------------------------------------------------------
# spans
# ---------------------------------------------------------------------


class SpanTest(unittest.TestCase):
    "tests for linguistic_enricher.annotation.Span"

    def __init__(self, *args, **kwargs):
        super(SpanTest, self).__init__(*args, **kwargs)
        self.addTypeEqualityFunc(Span, self.assertEqualStrFail)

    def assertEqualStrFail(self, a, b, msg):
        """
        just like assertEqual but display both sides with str on failure
        """
        if a != b:
            msg = msg or "{0} != {1}".format(a, b)
            raise self.failureException(msg)

    def assertOverlap(self, expected, pair1, pair2):
        "true if `pair1.overlaps(pair2) == expected` (modulo boxing)"
        (x1, y1) = pair1
        (x2, y2) = pair2
        (rx, ry) = expected
        o = Span(x1, y1).overlaps(Span(x2, y2))
        self.assertTrue(o)
        self.assertEqual(Span(rx, ry), o)

    def assertNotOverlap(self, pair1, pair2):
        "true if the two spans have nothing in common"
        (x1, y1) = pair1
        (x2, y2) = pair2
        self.assertFalse(Span(x1, y1).overlaps(Span(x2, y2)))

    def test_overlap(self):
        "Span.overlaps() function"

        self.assertNotOverlap((5, 10), (11, 12))
        self.assertNotOverlap((11, 12), (5, 10))

        # should not overlap at edges
        self.assertNotOverlap((5, 10), (10, 15))

        self.assertOverlap((6, 9), (5, 10), (6, 9))
        self.assertOverlap((6, 9), (6, 9), (5, 10))
        self.assertOverlap((7, 10), (5, 10), (7, 12))
        self.assertOverlap((7, 10), (7, 12), (5, 10))

    def test_encloses(self):
        "Span.encloses() function"
        self.assertTrue(Span(5, 10).encloses(Span(5, 10)))
        self.assertTrue(Span(5, 10).encloses(Span(6, 8)))
        self.assertFalse(Span(5, 10).encloses(Span(4, 8)))
        self.assertFalse(Span(5, 10).encloses(None))

    def test_equality(self):
        "spans are values"
        self.assertNotEqual(Span(0, 2), Span(0, 3))
        self.assertEqual(1, len(set([Span(1, 2), Span(1, 2)])))

    def test_json(self):
        "spans are stored as {start, end}"
        span = Span(3, 7)
        self.assertEqual({'start': 3, 'end': 7}, span.to_json())
        self.assertEqual(span, Span.from_json(span.to_json()))
        self.assertEqual(Span(5, 9), span.shift(2))

# ---------------------------------------------------------------------
# offsets
# ---------------------------------------------------------------------


class OffsetIndexTest(unittest.TestCase):
    "index basis conversions"

    text = u'A\U0001F600 Bé'

    def test_lengths(self):
        "text length in every unit"
        index = OffsetIndex(self.text)
        self.assertEqual(5, index.length(CODEPOINTS))
        self.assertEqual(6, index.length(UTF16))
        self.assertEqual(9, index.length(BYTES_UTF8))

    def test_to_unit(self):
        "codepoint offsets into other units"
        index = OffsetIndex(self.text)
        self.assertEqual(3, index.to_unit(2, UTF16))
        self.assertEqual(5, index.to_unit(2, BYTES_UTF8))
        self.assertEqual(2, index.to_unit(2, CODEPOINTS))

    def test_from_unit(self):
        "unit offsets back into codepoints"
        index = OffsetIndex(self.text)
        self.assertEqual(2, index.from_unit(3, UTF16))
        self.assertEqual(2, index.from_unit(5, BYTES_UTF8))
        self.assertEqual(5, index.from_unit(9, BYTES_UTF8))

    def test_from_unit_mid_character(self):
        "an offset inside a surrogate pair or multibyte sequence"
        index = OffsetIndex(self.text)
        for offset, unit in [(2, UTF16), (3, BYTES_UTF8), (6, CODEPOINTS)]:
            with self.assertRaises(EnricherException) as cm:
                index.from_unit(offset, unit)
            self.assertEqual(E_INVARIANT_VIOLATION, cm.exception.code)

    def test_slice(self):
        "the same text whatever the unit"
        index = OffsetIndex(self.text)
        self.assertEqual(u'Bé', index.slice(Span(3, 5), CODEPOINTS))
        self.assertEqual(u'Bé', index.slice(Span(4, 6), UTF16))
        self.assertEqual(u'Bé', index.slice(Span(6, 9), BYTES_UTF8))

    def test_span_round_trip(self):
        "codepoint spans survive a trip through each unit"
        index = OffsetIndex(self.text)
        span = Span(1, 4)
        for unit in (UTF16, BYTES_UTF8, CODEPOINTS):
            self.assertEqual(span,
                             index.span_from_unit(index.span_to_unit(span,
                                                                      unit),
                                                  unit))

# ---------------------------------------------------------------------
# ids
# ---------------------------------------------------------------------


class IdsTest(unittest.TestCase):
    "deterministic ids"

    def test_key_order(self):
        "key order does not change the id"
        self.assertEqual(mk_id('x', {'b': 1, 'a': {'d': 2, 'c': 3}}),
                         mk_id('x', {'a': {'c': 3, 'd': 2}, 'b': 1}))

    def test_canonical_json(self):
        "sorted keys, compact separators, unicode kept"
        self.assertEqual(u'{"a":[1,2],"b":"é"}',
                         canonical_json({'b': u'é', 'a': [1, 2]}))

    def test_string_payload(self):
        "strings are hashed as they are"
        expected = hashlib.sha1(b'abc').hexdigest()[:12]
        self.assertEqual(expected, content_hash('abc'))
        self.assertEqual('seed-' + expected, mk_id('seed', 'abc'))

    def test_shape(self):
        "namespace, dash, twelve hex digits"
        ident = mk_id('chunk', {'token_ids': ['t1']})
        self.assertRegex(ident, r'^chunk-[0-9a-f]{12}$')
        self.assertNotEqual(ident, mk_id('chunk', {'token_ids': ['t2']}))

# ---------------------------------------------------------------------
# lexicon
# ---------------------------------------------------------------------


class LexiconTest(unittest.TestCase):
    "closed class lexicon"

    def test_read_entry(self):
        "entries with and without subclass"
        self.assertEqual(LexEntry('is', 'auxiliary', 'VBZ', 'be'),
                         LexEntry.read_entry('is:auxiliary:VBZ:be'))
        self.assertEqual(LexEntry('the', 'determiner', 'DT', None),
                         LexEntry.read_entry('the:determiner:DT:'))
        self.assertEqual(LexEntry('the', 'determiner', 'DT', None),
                         LexEntry.read_entry('the:determiner:DT'))
        self.assertRaises(LexiconException, LexEntry.read_entry, 'oops')

    def test_capitalised_variants(self):
        "closed class words are known capitalised, open class ones not"
        lex = Lexicon.from_entries(LexEntry.read_entries([
            'the:determiner:DT:', '', 'went:verb:VBD:']))
        self.assertEqual('DT', lex.tags['The'])
        self.assertEqual('DT', lex.tags['THE'])
        self.assertEqual('VBD', lex.tags['went'])
        self.assertNotIn('Went', lex.tags)
        self.assertEqual(frozenset(['went']), lex.words('verb'))
        self.assertEqual(frozenset(), lex.words('noun'))

    def test_packaged_lexicon(self):
        "the lexicon we ship"
        self.assertEqual('DT', LEXICON.tags['the'])
        self.assertEqual('TO', LEXICON.tags['to'])
        self.assertEqual('MD', LEXICON.tags['will'])
        self.assertIn('can', AUXILIARY_WORDS)
        self.assertIn('is', AUXILIARY_WORDS)
        self.assertIn('has', BE_HAVE_WORDS)
        self.assertNotIn('do', BE_HAVE_WORDS)
        self.assertIn('was', LEXICON.words('auxiliary', 'be'))

# ---------------------------------------------------------------------
# annotations, documents, errors
# ---------------------------------------------------------------------


class AnnotationHelpersTest(unittest.TestCase):
    "selector and source helpers"

    def test_text_selectors(self):
        "quote and position for a run of tokens"
        text = u'big \U0001F600 cat'
        index = OffsetIndex(text)
        tokens = [{'id': 't1', 'span': {'start': 4, 'end': 6}},
                  {'id': 't2', 'span': {'start': 7, 'end': 10}}]
        quote, position = text_selectors(tokens, index, UTF16)
        self.assertEqual(QUOTE_SELECTOR, quote['type'])
        self.assertEqual(u'\U0001F600 cat', quote['exact'])
        self.assertEqual(POSITION_SELECTOR, position['type'])
        self.assertEqual({'start': 4, 'end': 10}, position['span'])

    def test_lookup(self):
        "finding selectors and sources"
        ann = {'anchor': {'selectors': [token_selector(['t1', 't2'])]},
               'sources': [mk_source('chunking-pos-fsm', 'rule')]}
        self.assertEqual(['t1', 't2'], selector_token_ids(ann))
        self.assertIsNone(find_selector(ann, QUOTE_SELECTOR))
        self.assertTrue(has_source(ann, 'chunking-pos-fsm'))
        self.assertFalse(has_source(ann, 'relation-extraction'))
        self.assertEqual([], selector_token_ids({}))
        self.assertNotIn('evidence', mk_source('x', 'rule'))


class DocumentTest(unittest.TestCase):
    "seed documents"

    def test_seed(self):
        "fresh document for raw text"
        doc = seed_document('Hello.')
        self.assertEqual('canonical', doc['stage'])
        self.assertEqual(UTF16, doc['index_basis']['unit'])
        self.assertEqual(mk_id('seed', 'Hello.'), doc['seed_id'])
        self.assertEqual([], doc['tokens'])
        self.assertEqual(BYTES_UTF8,
                         seed_document('x', BYTES_UTF8)['index_basis']['unit'])

    def test_reject(self):
        "one-way door helpers"
        doc = seed_document('Hello.')
        reject_existing(doc, 'tokenization', ('tokens', 'annotations'))
        doc['tokens'] = [{'id': 't1'}]
        with self.assertRaises(EnricherException) as cm:
            reject_existing(doc, 'tokenization', ('tokens', 'annotations'))
        self.assertEqual(E_INVARIANT_VIOLATION, cm.exception.code)
        self.assertEqual({'tokens': 1}, cm.exception.details['counts'])

        doc['annotations'] = [{'id': 'a1', 'kind': 'chunk'}]
        with self.assertRaises(EnricherException) as cm:
            reject_annotations(doc, 'chunking',
                               lambda a: a['kind'] == 'chunk', 'chunks')
        self.assertEqual(['a1'], cm.exception.details['ids'])

    def test_tokens_by_segment(self):
        "every segment present, in order"
        doc = {'segments': [{'id': 's1'}, {'id': 's2'}],
               'tokens': [{'id': 't1', 'segment_id': 's2'}]}
        grouped = tokens_by_segment(doc)
        self.assertEqual(['s1', 's2'], list(grouped))
        self.assertEqual([], grouped['s1'])


class ErrorsTest(unittest.TestCase):
    "error values"

    def test_invariant_violation(self):
        "code, message and details"
        err = invariant_violation('bad', ids=['x'])
        self.assertIn(err.code, ERROR_CODES)
        self.assertEqual('[E_INVARIANT_VIOLATION] bad', str(err))
        self.assertEqual({'code': E_INVARIANT_VIOLATION,
                          'message': 'bad',
                          'details': {'ids': ['x']}},
                         err.to_json())
        self.assertEqual({'code': E_INVARIANT_VIOLATION, 'message': 'x'},
                         EnricherException(E_INVARIANT_VIOLATION,
                                           'x').to_json())
