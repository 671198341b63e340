# License: BSD3
# pylint: disable=too-many-public-methods, invalid-name

"""
Tests for the stage table and the orchestrator
"""

import copy
import unittest
from unittest import mock

from linguistic_enricher.annotation import (POSITION_SELECTOR, QUOTE_SELECTOR,
                                            Span, find_selector)
from linguistic_enricher.errors import (EnricherException,
                                        E_INVALID_INPUT,
                                        E_INVALID_TARGET,
                                        E_INVARIANT_VIOLATION,
                                        E_SCHEMA_INVALID)
from linguistic_enricher.offsets import INDEX_UNITS, OffsetIndex
from linguistic_enricher.validation import validate_document

from . import run as run_mod
from .registry import (PIPELINE_TARGETS, STAGES, get_stage,
                       resolve_stages)
from .run import run_pipeline

ALICE = 'Alice sees Bob in Berlin.'


def relations(doc):
    "`(role, predicate surface, argument surface)` for every relation"
    tokens = dict((t['id'], t['surface']) for t in doc['tokens'])
    return [(a['label'], tokens[a['head']['id']], tokens[a['dep']['id']])
            for a in doc['annotations']
            if a['kind'] == 'dependency' and a['status'] == 'accepted']


class RegistryTest(unittest.TestCase):
    "stage table"

    def test_stages(self):
        "twelve stages, in order"
        self.assertEqual(list(range(12)), [s.index for s in STAGES])
        self.assertEqual('00-surface-normalization', STAGES[0].label)
        self.assertEqual('11-relation-extraction', STAGES[-1].label)
        self.assertEqual(STAGES[9], get_stage('chunking'))
        self.assertEqual(None, get_stage('parsing'))

    def test_targets(self):
        "checkpoints, once each, in pipeline order"
        self.assertEqual(('canonical', 'segmented', 'tokenized',
                          'pos_tagged', 'mwe_candidates',
                          'mwe_pattern_candidates', 'mwe_materialized',
                          'parsed', 'chunked', 'heads_identified',
                          'relations_extracted'),
                         PIPELINE_TARGETS)

    def test_resolve(self):
        "every stage up to the last producing the target"
        self.assertEqual(2, len(resolve_stages('canonical')))
        self.assertEqual(9, len(resolve_stages('parsed')))
        self.assertEqual('chunking', resolve_stages('chunked')[-1].name)
        self.assertEqual(10, len(resolve_stages('chunked')))
        self.assertEqual(11, len(resolve_stages('heads_identified')))
        self.assertEqual(12, len(resolve_stages('relations_extracted')))

    def test_invalid_target(self):
        "unknown targets are refused"
        with self.assertRaises(EnricherException) as cm:
            resolve_stages('done')
        self.assertEqual(E_INVALID_TARGET, cm.exception.code)
        self.assertEqual(list(PIPELINE_TARGETS),
                         cm.exception.details['valid'])


class OrchestratorTest(unittest.TestCase):
    "validation hooks and error tagging"

    def patched_hooks(self, schema=None, invariants=None):
        "replace the boundary checks with mocks"
        schema = schema or mock.Mock(return_value=True)
        invariants = invariants or mock.Mock(return_value=True)
        return mock.patch.object(run_mod, 'HOOKS',
                                 [('schema', schema),
                                  ('invariants', invariants)])

    def test_hook_calls(self):
        "both checks at entry, around each stage, and at the end"
        schema = mock.Mock(return_value=True)
        invariants = mock.Mock(return_value=True)
        with self.patched_hooks(schema, invariants):
            run_pipeline('Hi.', {'target': 'canonical'})
        # entry, 2 stages x (before, after), final
        self.assertEqual(6, schema.call_count)
        self.assertEqual(6, invariants.call_count)

    def test_hook_failure(self):
        "a failed check names its phase and keeps its code"
        broken = mock.Mock(side_effect=EnricherException(E_SCHEMA_INVALID,
                                                         'boom'))
        with self.patched_hooks(invariants=broken):
            with self.assertRaises(EnricherException) as cm:
                run_pipeline('Hi.', {'target': 'canonical'})
        self.assertEqual(E_SCHEMA_INVALID, cm.exception.code)
        self.assertEqual('Validation failed at entry:invariants: boom',
                         cm.exception.message)
        self.assertEqual('entry:invariants', cm.exception.details['phase'])

    def test_later_hook_failure(self):
        "failures after a stage are reported as such"

        def schema(doc):
            "fails once the text has been segmented"
            if doc['stage'] == 'segmented':
                raise EnricherException(E_SCHEMA_INVALID, 'no')
            return True
        with self.patched_hooks(schema=schema):
            with self.assertRaises(EnricherException) as cm:
                run_pipeline('Hi.', {'target': 'tokenized'})
        self.assertEqual('after:segmentation:schema',
                         cm.exception.details['phase'])

    def test_stage_failure(self):
        "stage errors are prefixed with the stage name"
        with self.assertRaises(EnricherException) as cm:
            run_pipeline('   ')
        self.assertEqual(E_INVARIANT_VIOLATION, cm.exception.code)
        self.assertEqual('stage:segmentation', cm.exception.details['phase'])
        self.assertTrue(cm.exception.message.startswith('segmentation: '))

    def test_bad_input(self):
        "only text and documents"
        with self.assertRaises(EnricherException) as cm:
            run_pipeline(42)
        self.assertEqual(E_INVALID_INPUT, cm.exception.code)
        with self.assertRaises(EnricherException) as cm:
            run_pipeline('Hi.', {'index_basis': 'bytes'})
        self.assertEqual(E_INVALID_INPUT, cm.exception.code)
        with self.assertRaises(EnricherException) as cm:
            run_pipeline('Hi.', {'target': 'finished'})
        self.assertEqual(E_INVALID_TARGET, cm.exception.code)

    def test_index_basis(self):
        "seeded documents use the requested unit"
        doc = run_pipeline(u'Caf\xe9 opens.',
                           {'target': 'segmented',
                            'index_basis': {'unit': 'bytes_utf8'}})
        self.assertEqual('bytes_utf8', doc['index_basis']['unit'])
        self.assertEqual({'start': 0, 'end': 12},
                         doc['segments'][0]['span'])

    def test_input_untouched(self):
        "documents passed in are copied"
        doc = run_pipeline('Hi there.', {'target': 'segmented'})
        before = copy.deepcopy(doc)
        with self.assertRaises(EnricherException):
            run_pipeline(doc)
        self.assertEqual(before, doc)


class EndToEndTest(unittest.TestCase):
    "whole runs"

    def test_relations(self):
        "who does what where"
        doc = run_pipeline(ALICE)
        self.assertEqual('relations_extracted', doc['stage'])
        found = relations(doc)
        self.assertIn(('actor', 'sees', 'Alice'), found)
        self.assertIn(('theme', 'sees', 'Bob'), found)
        self.assertIn(('location', 'sees', 'Berlin'), found)
        self.assertEqual({'ok': True, 'checks': ['schema', 'invariants']},
                         validate_document(doc))

    def test_mwe(self):
        "verb-object candidates are materialized but not chunked as nouns"
        doc = run_pipeline(ALICE, {'target': 'chunked'})
        mwes = [a for a in doc['annotations'] if a['kind'] == 'mwe']
        self.assertEqual(['sees Bob'], [a['label'] for a in mwes])
        self.assertEqual(['accepted'], [a['status'] for a in mwes])
        chunks = [(a['chunk_type'], a['label']) for a in doc['annotations']
                  if a['kind'] == 'chunk']
        self.assertEqual([('NP', 'Alice'), ('VP', 'sees Bob'),
                          ('PP', 'in Berlin'), ('O', '.')], chunks)

    def test_deterministic(self):
        "two runs, one answer"
        self.assertEqual(run_pipeline(ALICE), run_pipeline(ALICE))

    def test_targets(self):
        "each target stops at its checkpoint"
        for target in ('segmented', 'parsed', 'heads_identified'):
            self.assertEqual(target,
                             run_pipeline(ALICE, {'target': target})['stage'])

    def test_coordinated_subject(self):
        "base form verbs after two names are verbs, not nouns"
        doc = run_pipeline('Alice and Bob buy and sell cars.')
        mwes = [a['label'] for a in doc['annotations']
                if a['kind'] == 'mwe' and a['status'] == 'accepted']
        self.assertNotIn('Bob buy', mwes)
        found = relations(doc)
        self.assertIn(('actor', 'buy', 'Bob'), found)
        self.assertIn(('theme', 'sell', 'cars'), found)

    def test_span_round_trip(self):
        "every quoted span matches the text, whatever the index unit"
        text = u'Z\xf6e sees Bob \U0001F600 in Berlin.'
        index = OffsetIndex(text)
        for unit in INDEX_UNITS:
            doc = run_pipeline(text, {'index_basis': {'unit': unit}})
            self.assertEqual(unit, doc['index_basis']['unit'])
            for tok in doc['tokens']:
                self.assertEqual(tok['surface'],
                                 index.slice(Span.from_json(tok['span']),
                                             unit))
            checked = 0
            for ann in doc['annotations']:
                position = find_selector(ann, POSITION_SELECTOR)
                quote = find_selector(ann, QUOTE_SELECTOR)
                if position is None or quote is None:
                    continue
                self.assertEqual(quote['exact'],
                                 index.slice(Span.from_json(position['span']),
                                             unit))
                checked += 1
            self.assertTrue(checked)

    def test_abbreviation(self):
        "one sentence despite the period"
        doc = run_pipeline('Dr. Smith went home.', {'target': 'segmented'})
        self.assertEqual(1, len(doc['segments']))

    def test_no_rerun(self):
        "a finished document cannot be fed back in"
        doc = run_pipeline(ALICE)
        with self.assertRaises(EnricherException) as cm:
            run_pipeline(doc)
        self.assertEqual(E_INVARIANT_VIOLATION, cm.exception.code)
        self.assertEqual('stage:surface-normalization',
                         cm.exception.details['phase'])
