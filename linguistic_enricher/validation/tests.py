# License: BSD3
# pylint: disable=too-many-public-methods, invalid-name

"""
Tests for document validation
"""

import copy
import unittest

from linguistic_enricher.errors import (EnricherException,
                                        E_INVARIANT_VIOLATION,
                                        E_SCHEMA_INVALID)
from linguistic_enricher.validation import validate_document
from linguistic_enricher.validation.invariants import (invariant_errors,
                                                       validate_invariants)
from linguistic_enricher.validation.schema import (schema_errors,
                                                   validate_schema)


def mk_doc():
    """
    A small valid document: one sentence, three tokens, one chunk
    and a root dependency
    """
    return {
        'schema_version': '1.0.0',
        'seed_id': 'seed-000000000000',
        'stage': 'chunked',
        'canonical_text': 'Hi there.',
        'index_basis': {'unit': 'utf16_code_units'},
        'segments': [{'id': 's1', 'index': 0, 'kind': 'sentence',
                      'span': {'start': 0, 'end': 9},
                      'token_range': {'start': 0, 'end': 3}}],
        'tokens': [
            {'id': 't1', 'i': 0, 'segment_id': 's1', 'surface': 'Hi',
             'span': {'start': 0, 'end': 2}, 'flags': {'is_punct': False},
             'pos': {'tag': 'UH', 'coarse': 'INTJ'}},
            {'id': 't2', 'i': 1, 'segment_id': 's1', 'surface': 'there',
             'span': {'start': 3, 'end': 8}, 'flags': {'is_punct': False},
             'pos': {'tag': 'RB', 'coarse': 'ADV'}},
            {'id': 't3', 'i': 2, 'segment_id': 's1', 'surface': '.',
             'span': {'start': 8, 'end': 9}, 'flags': {'is_punct': True},
             'pos': {'tag': '.', 'coarse': 'PUNCT'}},
        ],
        'annotations': [
            {'id': 'chunk-1', 'kind': 'chunk', 'status': 'accepted',
             'chunk_type': 'O',
             'anchor': {'selectors': [
                 {'type': 'TokenSelector', 'token_ids': ['t1', 't2']},
                 {'type': 'TextPositionSelector',
                  'span': {'start': 0, 'end': 8}},
                 {'type': 'TextQuoteSelector', 'exact': 'Hi there'}]},
             'sources': [{'name': 'chunking-pos-fsm', 'kind': 'rule'}]},
            {'id': 'dep-1', 'kind': 'dependency', 'status': 'observation',
             'label': 'root', 'is_root': True, 'dep': {'id': 't1'},
             'anchor': {'selectors': [
                 {'type': 'TokenSelector', 'token_ids': ['t1']}]},
             'sources': [{'name': 'linguistic-analysis', 'kind': 'model'}]},
        ],
    }


class ValidateDocumentTest(unittest.TestCase):
    "schema then invariants"

    def test_valid(self):
        "a valid document passes, twice, untouched"
        doc = mk_doc()
        before = copy.deepcopy(doc)
        expected = {'ok': True, 'checks': ['schema', 'invariants']}
        self.assertEqual(expected, validate_document(doc))
        self.assertEqual(expected, validate_document(doc))
        self.assertEqual(before, doc)

    def test_schema_first(self):
        "structural problems are reported before referential ones"
        doc = mk_doc()
        del doc['canonical_text']
        doc['tokens'][0]['i'] = 5
        with self.assertRaises(EnricherException) as cm:
            validate_document(doc)
        self.assertEqual(E_SCHEMA_INVALID, cm.exception.code)


class SchemaTest(unittest.TestCase):
    "JSON schema"

    def assertSchemaInvalid(self, doc):
        "the document fails schema validation with listed errors"
        with self.assertRaises(EnricherException) as cm:
            validate_schema(doc)
        self.assertEqual(E_SCHEMA_INVALID, cm.exception.code)
        self.assertTrue(cm.exception.details['errors'])
        self.assertEqual(cm.exception.details['errors'], schema_errors(doc))

    def test_valid(self):
        "no errors for a good document"
        self.assertEqual([], schema_errors(mk_doc()))
        self.assertTrue(validate_schema(mk_doc()))

    def test_missing_field(self):
        "required top level fields"
        doc = mk_doc()
        del doc['seed_id']
        self.assertSchemaInvalid(doc)

    def test_unknown_stage(self):
        "stage must be a known checkpoint"
        doc = mk_doc()
        doc['stage'] = 'frobnicated'
        self.assertSchemaInvalid(doc)

    def test_bad_selector(self):
        "selectors are one of three shapes"
        doc = mk_doc()
        doc['annotations'][0]['anchor']['selectors'].append(
            {'type': 'CssSelector', 'value': 'p'})
        self.assertSchemaInvalid(doc)

    def test_dependency_needs_label(self):
        "kind specific requirements"
        doc = mk_doc()
        del doc['annotations'][1]['label']
        self.assertSchemaInvalid(doc)

    def test_chunk_needs_type(self):
        "chunks have a chunk type"
        doc = mk_doc()
        del doc['annotations'][0]['chunk_type']
        self.assertSchemaInvalid(doc)


class InvariantsTest(unittest.TestCase):
    "runtime invariants"

    def assertViolation(self, doc, fragment):
        "the document breaks an invariant mentioning `fragment`"
        with self.assertRaises(EnricherException) as cm:
            validate_invariants(doc)
        self.assertEqual(E_INVARIANT_VIOLATION, cm.exception.code)
        errors = cm.exception.details['errors']
        self.assertEqual(len(errors), cm.exception.details['count'])
        self.assertTrue(any(fragment in e for e in errors), errors)

    def test_valid(self):
        "no problems in a good document"
        self.assertEqual([], invariant_errors(mk_doc()))
        self.assertTrue(validate_invariants(mk_doc()))

    def test_span_out_of_bounds(self):
        "spans stay inside the text"
        doc = mk_doc()
        doc['tokens'][2]['span'] = {'start': 8, 'end': 12}
        self.assertViolation(doc, 'out of bounds')

    def test_span_splits_character(self):
        "UTF-16 spans may not cut a surrogate pair in half"
        doc = mk_doc()
        doc['canonical_text'] = u'Hi there\U0001F600'
        doc['segments'][0]['span'] = {'start': 0, 'end': 10}
        doc['tokens'][2]['surface'] = u'\U0001F600'
        doc['tokens'][2]['span'] = {'start': 8, 'end': 9}
        self.assertViolation(doc, 'splits a character')

    def test_duplicate_ids(self):
        "token ids are unique"
        doc = mk_doc()
        doc['tokens'][1]['id'] = 't1'
        self.assertViolation(doc, 'duplicate token id t1')

    def test_token_position(self):
        "token i matches its position"
        doc = mk_doc()
        doc['tokens'][1]['i'] = 7
        self.assertViolation(doc, 'does not match position')

    def test_unknown_segment(self):
        "token segments resolve"
        doc = mk_doc()
        doc['tokens'][0]['segment_id'] = 's9'
        self.assertViolation(doc, 'unknown segment s9')

    def test_token_order(self):
        "tokens are ordered by start"
        doc = mk_doc()
        doc['tokens'][0]['span'], doc['tokens'][1]['span'] =\
            doc['tokens'][1]['span'], doc['tokens'][0]['span']
        self.assertViolation(doc, 'not ordered')

    def test_quote_mismatch(self):
        "quotes agree with their spans"
        doc = mk_doc()
        doc['annotations'][0]['anchor']['selectors'][2]['exact'] = 'Hi thar'
        self.assertViolation(doc, 'does not match text')

    def test_unknown_token_reference(self):
        "token selectors resolve"
        doc = mk_doc()
        doc['annotations'][0]['anchor']['selectors'][0]['token_ids'] =\
            ['t1', 't9']
        self.assertViolation(doc, 'unknown token t9')

    def test_dependency_head(self):
        "a non-root dependency needs a known head"
        doc = mk_doc()
        dep = doc['annotations'][1]
        dep['is_root'] = False
        dep['head'] = {'id': 't42'}
        self.assertViolation(doc, 'unknown head token t42')

    def test_chunk_head_reference(self):
        "chunk heads point at known chunks"
        doc = mk_doc()
        doc['annotations'].append({
            'id': 'head-1', 'kind': 'chunk_head', 'status': 'accepted',
            'chunk_id': 'chunk-9', 'head': {'id': 't1'},
            'anchor': {'selectors': [{'type': 'TokenSelector',
                                      'token_ids': ['t1']}]},
            'sources': [{'name': 'head-identification', 'kind': 'rule'}]})
        self.assertViolation(doc, 'unknown chunk chunk-9')

    def test_chunk_contiguity(self):
        "accepted chunks cover contiguous, sorted tokens"
        doc = mk_doc()
        chunk = doc['annotations'][0]
        chunk['anchor']['selectors'] = [
            {'type': 'TokenSelector', 'token_ids': ['t1', 't3']}]
        self.assertViolation(doc, 'not contiguous')

    def test_all_problems_listed(self):
        "every problem is reported, not just the first"
        doc = mk_doc()
        doc['tokens'][1]['i'] = 7
        doc['annotations'][0]['anchor']['selectors'][2]['exact'] = 'Hi'
        self.assertEqual(2, len(invariant_errors(doc)))

    def test_bad_position_reported_once(self):
        "chunk contiguity goes by token order, not by `i`"
        doc = mk_doc()
        doc['tokens'][1]['i'] = 7
        [problem] = invariant_errors(doc)
        self.assertIn('t2', problem)
        self.assertNotIn('chunk', problem)
