# License: BSD3
# pylint: disable=too-many-public-methods, invalid-name

"""
Tests for the adapters to things outside the pipeline: NLTK, the
title index service and Python worker processes
"""

import io
import json
import subprocess
import unittest
from unittest import mock

import requests

from linguistic_enricher.document import seed_document
from linguistic_enricher.errors import (EnricherException,
                                        E_INVALID_INPUT,
                                        E_INVARIANT_VIOLATION,
                                        E_PYTHON_DEPENDENCY_MISSING,
                                        E_PYTHON_MODEL_MISSING,
                                        E_PYTHON_NOT_FOUND,
                                        E_PYTHON_PROTOCOL_INVALID_JSON,
                                        E_PYTHON_SUBPROCESS_FAILED,
                                        E_PYTHON_TIMEOUT,
                                        E_SERVICE_UNAVAILABLE)

from . import nltk_text, postag, protocol, runner, runtime, worker
from .wikipedia import (LexiconServiceWarning,
                        WikipediaTitleIndex,
                        empty_evidence,
                        map_query_evidence)

ENDPOINT = 'http://titles.example'

# ---------------------------------------------------------------------
# nltk
# ---------------------------------------------------------------------


class NltkTextTest(unittest.TestCase):
    "sentence and word boundaries"

    def test_sentences(self):
        "whitespace is trimmed off sentences"
        self.assertEqual([(0, 10), (11, 19)],
                         nltk_text.sentence_spans('It rained. We left.'))
        self.assertEqual([(2, 5)], nltk_text.sentence_spans('  Hi.\n'))
        self.assertEqual([], nltk_text.sentence_spans(''))

    def test_abbreviations(self):
        "known abbreviations never end a sentence"
        self.assertEqual([(0, 24)], nltk_text.sentence_spans(
            'Mr. Jones met Dr. Smith.'))

    def test_words(self):
        "treebank tokens with their offsets"
        self.assertEqual([(0, 2), (3, 8), (8, 9)],
                         nltk_text.word_spans('Hi there.'))


class PostagTest(unittest.TestCase):
    "rule based tagging"

    def test_tag_words(self):
        "lexicon, capitals, suffixes, then context repairs"
        tokens = postag.tag_words(['Alice', 'sees', 'Bob', 'in', 'Berlin',
                                   '.'])
        self.assertEqual(['NNP', 'VBZ', 'NNP', 'IN', 'NNP', '.'],
                         [t.tag for t in tokens])
        self.assertEqual('Alice/NNP', str(tokens[0]))
        self.assertEqual('VERB', tokens[1].coarse)
        self.assertEqual([], postag.tag_words([]))

    def test_repair_tags(self):
        "context rules"
        self.assertEqual(['TO', 'VB'],
                         postag.repair_tags(['to', 'buy'], ['TO', 'NN']))
        self.assertEqual(['DT', 'VBN', 'NN'],
                         postag.repair_tags(['the', 'printed', 'page'],
                                            ['DT', 'VBD', 'NN']))
        self.assertEqual(['DT', 'NN', 'NN'],
                         postag.repair_tags(['a', 'shopping', 'cart'],
                                            ['DT', 'VBG', 'NN']))
        self.assertEqual(['PRP', 'VBZ', 'DT', 'NN'],
                         postag.repair_tags(['it', 'sells', 'the', 'car'],
                                            ['PRP', 'NNS', 'DT', 'NN']))

    def test_plural_subject_verbs(self):
        "base form verbs after coordinated proper nouns"
        words = ['Alice', 'and', 'Bob', 'buy', 'and', 'sell', 'cars', '.']
        self.assertEqual(['NNP', 'CC', 'NNP', 'VBP', 'CC', 'VBP', 'NNS',
                          '.'],
                         [t.tag for t in postag.tag_words(words)])
        # compounds and coordinated objects are left alone
        self.assertEqual(['NNP', 'NN', 'NNS', 'VBD'],
                         postag.repair_tags(['Paris', 'hotel', 'prices',
                                             'rose'],
                                            ['NNP', 'NN', 'NNS', 'VBD']))
        self.assertEqual(['PRP', 'VBP', 'NNS', 'CC', 'NN', 'NN'],
                         postag.repair_tags(['They', 'like', 'cats', 'and',
                                             'dog', 'food'],
                                            ['PRP', 'VBP', 'NNS', 'CC',
                                             'NN', 'NN']))

    def test_possessives(self):
        "apostrophe-s between nouns, a verb elsewhere"
        self.assertEqual(['NNP', 'POS', 'NN'],
                         postag.override_possessives(
                             ['John', "'s", 'car'], ['NNP', 'POS', 'NN']))
        self.assertEqual(['PRP', 'VBZ', 'NN'],
                         postag.override_possessives(
                             ['It', "'s", 'late'], ['PRP', 'POS', 'NN']))
        self.assertEqual(['NNP', 'POS', 'NN'],
                         [t.tag for t in postag.tag_words(['John', "'s",
                                                           'car'])])
        self.assertTrue(postag.is_apostrophe_s(u'’s'))
        self.assertFalse(postag.is_apostrophe_s('s'))

    def test_coarse(self):
        "universal tags"
        self.assertEqual('NOUN', postag.coarse_tag('NN'))
        self.assertEqual('PROPN', postag.coarse_tag('NNP'))
        self.assertEqual('X', postag.coarse_tag('XYZ'))

    def test_unknown_tagger(self):
        "tagger names are checked"
        with self.assertRaises(EnricherException) as cm:
            postag.get_tagger('crystal-ball')
        self.assertEqual(E_INVALID_INPUT, cm.exception.code)

# ---------------------------------------------------------------------
# title index
# ---------------------------------------------------------------------


class EvidenceTest(unittest.TestCase):
    "mapping index answers to evidence"

    def test_signals(self):
        "exact, prefix, parenthetical and hyphen variants"
        evidence = map_query_evidence('New York', [
            'New York', 'New York (state)', {'t': 'New_York_City'},
            'New-York'])
        self.assertTrue(evidence['wiki_exact_match'])
        self.assertEqual(3, evidence['wiki_prefix_count'])
        self.assertEqual(1, evidence['wiki_parenthetical_variant_count'])
        self.assertTrue(evidence['wiki_hyphen_space_variant_match'])
        self.assertFalse(evidence['wiki_apostrophe_variant_match'])
        self.assertFalse(evidence['wiki_singular_plural_variant_match'])
        self.assertTrue(evidence['wiki_any_signal'])

    def test_variants(self):
        "apostrophes and plurals"
        evidence = map_query_evidence("McDonald's", ['McDonalds'])
        self.assertTrue(evidence['wiki_apostrophe_variant_match'])
        self.assertTrue(evidence['wiki_any_signal'])
        evidence = map_query_evidence('car', ['cars', 42, None])
        self.assertTrue(evidence['wiki_singular_plural_variant_match'])
        self.assertEqual(1, evidence['wiki_prefix_count'])

    def test_nothing(self):
        "no rows, no signal"
        self.assertEqual(empty_evidence(), map_query_evidence('x', []))
        self.assertEqual(empty_evidence(), map_query_evidence(' ', ['x']))


class WikipediaTitleIndexTest(unittest.TestCase):
    "the HTTP client, against a fake session"

    def mk_client(self, rows=None):
        "client whose session answers with the given rows"
        resp = mock.Mock()
        resp.json.return_value = {'rows': rows or []}
        session = mock.Mock()
        session.post.return_value = resp
        return WikipediaTitleIndex(ENDPOINT + '/', session=session)

    def test_disabled(self):
        "no endpoint, no lookups"
        client = WikipediaTitleIndex.from_options({})
        self.assertFalse(client.enabled)
        self.assertEqual(None, client.query_title('Berlin'))
        self.assertEqual(None, client.evidence('Berlin'))
        self.assertFalse(client.health())

    def test_from_options(self):
        "configured through the services option"
        client = WikipediaTitleIndex.from_options(
            {'services': {'wikipedia-title-index':
                          {'endpoint': ENDPOINT, 'timeout_ms': 500}}})
        self.assertTrue(client.enabled)
        self.assertEqual(ENDPOINT, client.endpoint)
        self.assertEqual(500, client.timeout_ms)

    def test_query(self):
        "prefix queries, memoized"
        client = self.mk_client(['Berlin', 'Berlin Wall'])
        evidence = client.evidence('Berlin')
        self.assertTrue(evidence['wiki_exact_match'])
        self.assertEqual(2, evidence['wiki_prefix_count'])
        client.evidence('Berlin')
        client.session.post.assert_called_once_with(
            ENDPOINT + '/v1/titles/query',
            json={'prefix': 'Berlin', 'limit': 10},
            timeout=2.0)

    def test_unreachable(self):
        "failures warn and give no evidence"
        client = self.mk_client()
        client.session.post.side_effect = requests.ConnectionError('down')
        with self.assertWarns(LexiconServiceWarning):
            self.assertEqual(None, client.evidence('Berlin'))
        with self.assertWarns(LexiconServiceWarning):
            client.evidence('Berlin')
        # failures are not remembered
        self.assertEqual(2, client.session.post.call_count)

    def test_bad_answer(self):
        "answers without rows are failures too"
        client = self.mk_client()
        client.session.post.return_value.json.return_value = {'oops': 1}
        with self.assertWarns(LexiconServiceWarning):
            self.assertEqual(None, client.query_title('Berlin'))
        client.session.post.return_value.json.side_effect = ValueError('!')
        with self.assertWarns(LexiconServiceWarning):
            self.assertEqual(None, client.query_title('Bonn'))

    def test_health(self):
        "health checks"
        client = self.mk_client()
        client.session.get.return_value = mock.Mock(ok=True)
        self.assertTrue(client.health())
        client.session.get.assert_called_once_with(ENDPOINT + '/health',
                                                   timeout=2.0)
        client.session.get.side_effect = requests.Timeout('slow')
        with self.assertWarns(LexiconServiceWarning):
            self.assertFalse(client.health())

# ---------------------------------------------------------------------
# subprocess protocol
# ---------------------------------------------------------------------


class ProtocolTest(unittest.TestCase):
    "request and response envelopes"

    def assertProtocolError(self, func, raw):
        "the raw message is refused as malformed"
        with self.assertRaises(EnricherException) as cm:
            func(raw)
        self.assertEqual(E_PYTHON_PROTOCOL_INVALID_JSON, cm.exception.code)

    def test_request(self):
        "stable serialization, parsed back"
        raw = protocol.serialize_request('chunking', {'a': 1})
        self.assertEqual('{"options": {}, "payload": {"a": 1}, '
                         '"stage": "chunking"}', raw)
        self.assertEqual(('chunking', {'a': 1}, {}),
                         protocol.parse_request(raw))

    def test_bad_request(self):
        "requests need a stage and a payload"
        self.assertProtocolError(protocol.parse_request, 'nope')
        self.assertProtocolError(protocol.parse_request, '{"payload": 1}')
        self.assertProtocolError(protocol.parse_request, '{"stage": "x"}')

    def test_response(self):
        "results and reported errors"
        self.assertEqual(3, protocol.parse_response(
            json.dumps(protocol.ok_response(3))))
        err = EnricherException(E_INVALID_INPUT, 'bad', {'why': 'test'})
        with self.assertRaises(EnricherException) as cm:
            protocol.parse_response(json.dumps(protocol.error_response(err)))
        self.assertEqual(E_INVALID_INPUT, cm.exception.code)
        self.assertEqual('bad', cm.exception.message)
        self.assertEqual({'why': 'test'}, cm.exception.details)

    def test_bad_response(self):
        "anything but an envelope is a protocol error"
        for raw in ['oops', None, '[]', '{"ok": "yes"}', '{"ok": true}',
                    '{"ok": false}', '{"ok": false, "error": {"code": 1}}']:
            self.assertProtocolError(protocol.parse_response, raw)


class RunnerTest(unittest.TestCase):
    "launching Python processes"

    def patched_run(self, **kwargs):
        "fake `subprocess.run`"
        return mock.patch.object(runner.subprocess, 'run', **kwargs)

    def test_options(self):
        "executable and timeout"
        self.assertEqual(('python3', 30.0), runner.python_options(None))
        self.assertEqual(('/opt/py', 0.5), runner.python_options(
            {'python': {'executable': '/opt/py', 'timeout_ms': 500}}))

    def test_success(self):
        "standard output is returned"
        proc = mock.Mock(returncode=0, stdout='hello\n', stderr='')
        with self.patched_run(return_value=proc) as run:
            self.assertEqual('hello\n', runner.call_python(['-c', 'x'],
                                                           stdin='in'))
        args, kwargs = run.call_args
        self.assertEqual(['python3', '-c', 'x'], args[0])
        self.assertEqual('in', kwargs['input'])
        self.assertEqual(30.0, kwargs['timeout'])

    def test_not_found(self):
        "missing interpreter"
        with self.patched_run(side_effect=FileNotFoundError()):
            with self.assertRaises(EnricherException) as cm:
                runner.call_python(['--version'],
                                   options={'python':
                                            {'executable': 'nopython'}})
        self.assertEqual(E_PYTHON_NOT_FOUND, cm.exception.code)
        self.assertEqual('nopython', cm.exception.details['executable'])

    def test_timeout(self):
        "slow interpreter"
        with self.patched_run(
                side_effect=subprocess.TimeoutExpired(['python3'], 1.0)):
            with self.assertRaises(EnricherException) as cm:
                runner.call_python(['-c', 'x'],
                                   options={'python': {'timeout_ms': 1000}})
        self.assertEqual(E_PYTHON_TIMEOUT, cm.exception.code)
        self.assertEqual(1000, cm.exception.details['timeout_ms'])

    def test_failure(self):
        "non-zero exit"
        proc = mock.Mock(returncode=2, stdout='', stderr='Traceback\n')
        with self.patched_run(return_value=proc):
            with self.assertRaises(EnricherException) as cm:
                runner.call_python(['-c', 'x'])
        self.assertEqual(E_PYTHON_SUBPROCESS_FAILED, cm.exception.code)
        self.assertEqual(2, cm.exception.details['exit_code'])
        self.assertEqual('Traceback', cm.exception.details['stderr'])

    def test_run_python(self):
        "requests go to the worker module"
        proc = mock.Mock(returncode=0, stdout='{"ok": true, "result": 1}',
                         stderr='')
        with self.patched_run(return_value=proc) as run:
            self.assertEqual(1, runner.run_python('{}'))
        self.assertEqual(['python3', '-m', runner.WORKER_MODULE],
                         run.call_args[0][0])


class WorkerTest(unittest.TestCase):
    "the worker side"

    def test_handle(self):
        "stages run on the payload"
        raw = protocol.serialize_request('canonicalization',
                                         seed_document('a\r\nb'))
        response = worker.handle(raw)
        self.assertTrue(response['ok'])
        self.assertEqual('a\nb', response['result']['canonical_text'])

    def test_errors(self):
        "failures become error envelopes"
        response = worker.handle(protocol.serialize_request('magic', {}))
        self.assertEqual({'ok': False,
                          'error': {'code': E_INVALID_INPUT,
                                    'message': 'Unknown stage: magic',
                                    'details': {'stage': 'magic'}}},
                         response)
        response = worker.handle('garbage')
        self.assertEqual(E_PYTHON_PROTOCOL_INVALID_JSON,
                         response['error']['code'])
        response = worker.handle(protocol.serialize_request(
            'segmentation', seed_document('  ')))
        self.assertEqual(E_INVARIANT_VIOLATION, response['error']['code'])

    def test_main(self):
        "one request in, one response out"
        raw = protocol.serialize_request('canonicalization',
                                         seed_document('x'))
        with mock.patch('sys.stdin', io.StringIO(raw)):
            with mock.patch('sys.stdout', new_callable=io.StringIO) as out:
                worker.main()
        self.assertEqual('x', protocol.parse_response(out.getvalue())
                         ['canonical_text'])


class RuntimeTest(unittest.TestCase):
    "doctor checks, against a fake interpreter"

    def fake_python(self, broken=()):
        """
        `call_python` stand-in: any `-c` snippet mentioning one of the
        broken names exits with an error
        """
        def call_python(args, stdin=None, options=None):
            "fake interpreter"
            if args == ['--version']:
                return 'Python 3.12.1\n'
            if any(name in args[-1] for name in broken):
                raise EnricherException(E_PYTHON_SUBPROCESS_FAILED, 'exit 1')
            return ''
        return mock.patch.object(runtime, 'call_python',
                                 side_effect=call_python)

    def test_all_good(self):
        "the full report"
        with self.fake_python():
            report = runtime.run_runtime_checks()
        self.assertEqual({'ok': True,
                          'python': {'executable': 'python3',
                                     'version': 'Python 3.12.1'},
                          'dependencies': {'nltk': True,
                                           'jsonschema': True,
                                           'requests': True},
                          'model': {'name': runtime.TAGGER_MODEL,
                                    'required': False,
                                    'installed': True},
                          'services': {}},
                         report)

    def test_missing_dependency(self):
        "missing modules are listed"
        with self.fake_python(broken=['import requests']):
            with self.assertRaises(EnricherException) as cm:
                runtime.run_runtime_checks()
        self.assertEqual(E_PYTHON_DEPENDENCY_MISSING, cm.exception.code)
        self.assertEqual(['requests'], cm.exception.details['missing'])

    def test_model(self):
        "the tagger model only matters for the perceptron tagger"
        with self.fake_python(broken=[runtime.TAGGER_MODEL]):
            report = runtime.run_runtime_checks({'tagger': 'rules'})
            self.assertFalse(report['model']['installed'])
            with self.assertRaises(EnricherException) as cm:
                runtime.run_runtime_checks({'tagger': 'perceptron'})
        self.assertEqual(E_PYTHON_MODEL_MISSING, cm.exception.code)

    def test_not_found(self):
        "interpreter errors other than exit codes propagate"
        err = EnricherException(E_PYTHON_NOT_FOUND, 'nope')
        with mock.patch.object(runtime, 'call_python', side_effect=err):
            with self.assertRaises(EnricherException) as cm:
                runtime.run_runtime_checks()
        self.assertEqual(E_PYTHON_NOT_FOUND, cm.exception.code)

    def test_services(self):
        "unreachable services fail strict checks only"
        options = {'services': {'wikipedia-title-index':
                                {'endpoint': ENDPOINT}}}
        with self.fake_python():
            with mock.patch.object(WikipediaTitleIndex, 'health',
                                   return_value=False):
                report = runtime.run_runtime_checks(options)
                options['strict'] = True
                with self.assertRaises(EnricherException) as cm:
                    runtime.run_runtime_checks(options)
        self.assertEqual({'wikipedia-title-index': {'endpoint': ENDPOINT,
                                                    'ok': False}},
                         report['services'])
        self.assertEqual(E_SERVICE_UNAVAILABLE, cm.exception.code)
