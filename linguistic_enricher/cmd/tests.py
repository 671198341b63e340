# License: BSD3
# pylint: disable=too-many-public-methods, invalid-name

"""
Tests for the command line interface
"""

from contextlib import contextmanager
import io
import json
import os
import tempfile
import unittest
from unittest import mock

from linguistic_enricher.document import seed_document
from linguistic_enricher.errors import (EnricherException,
                                        E_INVALID_TARGET,
                                        E_PYTHON_NOT_FOUND)

from . import doctor as cmd_doctor
from . import run as cmd_run
from .main import main, mk_argparser

REPORT = {'ok': True,
          'python': {'executable': 'python3', 'version': 'Python 3.12.1'},
          'dependencies': {'nltk': True, 'jsonschema': True,
                           'requests': True},
          'model': {'name': 'averaged_perceptron_tagger_eng',
                    'required': False,
                    'installed': False},
          'services': {'wikipedia-title-index': {'endpoint': 'http://idx',
                                                 'ok': False}}}


@contextmanager
def no_endpoint():
    "hide any title index endpoint set in the environment"
    with mock.patch.dict(os.environ):
        os.environ.pop(cmd_run.ENDPOINT_ENV, None)
        yield


@contextmanager
def captured():
    "`(stdout, stderr)` string buffers"
    with mock.patch('sys.stdout', new_callable=io.StringIO) as out:
        with mock.patch('sys.stderr', new_callable=io.StringIO) as err:
            yield out, err


class CliTestCase(unittest.TestCase):
    "scratch directory"

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmpdir = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def scratch(self, name, content):
        "write a scratch file, returning its path"
        path = os.path.join(self.tmpdir, name)
        with open(path, 'w', encoding='utf-8') as stream:
            stream.write(content)
        return path


class RunCommandTest(CliTestCase):
    "linguistic-enricher run"

    def run_cmd(self, argv, **kwargs):
        "`(status, stdout, stderr, fake pipeline)` for a command line"
        kwargs.setdefault('return_value', {'stage': 'canonical'})
        with no_endpoint(), captured() as (out, err):
            with mock.patch.object(cmd_run, 'run_pipeline',
                                   **kwargs) as pipeline:
                status = main(argv)
        return status, out.getvalue(), err.getvalue(), pipeline

    def test_text(self):
        "text in, compact JSON out"
        status, out, _, pipeline = self.run_cmd(['run', '--text', 'Hi.'])
        self.assertEqual(0, status)
        self.assertEqual('{"stage": "canonical"}\n', out)
        pipeline.assert_called_once_with('Hi.',
                                         {'target': 'relations_extracted',
                                          'tagger': 'rules'})

    def test_pretty(self):
        "indented output"
        _, out, _, _ = self.run_cmd(['run', '--text', 'Hi.', '--pretty'])
        self.assertEqual('{\n  "stage": "canonical"\n}\n', out)

    def test_input_files(self):
        "text files are text, json files are documents"
        path = self.scratch('in.txt', 'Some text.')
        _, _, _, pipeline = self.run_cmd(['run', '--in', path,
                                          '--target', 'tokenized'])
        self.assertEqual(('Some text.', {'target': 'tokenized',
                                         'tagger': 'rules'}),
                         pipeline.call_args[0])
        doc = seed_document('Hi.')
        path = self.scratch('in.json', json.dumps(doc))
        _, _, _, pipeline = self.run_cmd(['run', '--in', path])
        self.assertEqual(doc, pipeline.call_args[0][0])

    def test_out(self):
        "output file"
        path = os.path.join(self.tmpdir, 'out.json')
        status, out, _, _ = self.run_cmd(['run', '--text', 'Hi.',
                                          '--out', path])
        self.assertEqual((0, ''), (status, out))
        with open(path, encoding='utf-8') as stream:
            self.assertEqual({'stage': 'canonical'}, json.load(stream))

    def test_options(self):
        "service and timeout flags"
        with no_endpoint():
            args = mk_argparser().parse_args(
                ['run', '--text', 'x', '--endpoint', 'http://idx',
                 '--timeout-ms', '500', '--tagger', 'perceptron'])
        self.assertEqual({'target': 'relations_extracted',
                          'tagger': 'perceptron',
                          'services': {'wikipedia-title-index':
                                       {'endpoint': 'http://idx',
                                        'timeout_ms': 500}}},
                         cmd_run.options_from_args(args))
        with no_endpoint():
            args = mk_argparser().parse_args(
                ['run', '--text', 'x', '--timeout-ms', '500'])
        self.assertEqual({'target': 'relations_extracted',
                          'tagger': 'rules'},
                         cmd_run.options_from_args(args))

    def test_missing_file(self):
        "unreadable input"
        path = os.path.join(self.tmpdir, 'nowhere.txt')
        status, out, err, _ = self.run_cmd(['run', '--in', path])
        self.assertEqual((1, ''), (status, out))
        self.assertTrue(err.startswith('CLI failed [E_INVALID_INPUT]: '))

    def test_pipeline_failure(self):
        "errors are reported on stderr"
        failure = EnricherException(E_INVALID_TARGET, 'Unknown target')
        status, out, err, _ = self.run_cmd(['run', '--text', 'Hi.'],
                                           side_effect=failure)
        self.assertEqual((1, ''), (status, out))
        self.assertEqual('CLI failed [E_INVALID_TARGET]: Unknown target\n',
                         err)


class UsageTest(unittest.TestCase):
    "bad command lines"

    def assertUsageError(self, argv):
        "exit status 2 and a usage failure"
        with no_endpoint(), captured() as (_, err):
            with self.assertRaises(SystemExit) as cm:
                main(argv)
        self.assertEqual(2, cm.exception.code)
        self.assertIn('CLI failed [E_CLI_USAGE]', err.getvalue())

    def test_usage(self):
        "missing subcommand, missing input, unknown target"
        self.assertUsageError([])
        self.assertUsageError(['frobnicate'])
        self.assertUsageError(['run'])
        self.assertUsageError(['run', '--text', 'x', '--in', 'y'])
        self.assertUsageError(['run', '--text', 'x', '--target', 'done'])
        self.assertUsageError(['validate'])


class ValidateCommandTest(CliTestCase):
    "linguistic-enricher validate"

    def run_cmd(self, argv):
        "`(status, stdout, stderr)`"
        with captured() as (out, err):
            status = main(argv)
        return status, out.getvalue(), err.getvalue()

    def test_valid(self):
        "a fresh seed document"
        path = self.scratch('doc.json', json.dumps(seed_document('Hi.')))
        self.assertEqual((0, '{"ok": true, "checks": ["schema", '
                          '"invariants"]}\n', ''),
                         self.run_cmd(['validate', '--in', path]))

    def test_invalid(self):
        "schema failures"
        path = self.scratch('doc.json', json.dumps({'stage': 'x'}))
        status, out, err = self.run_cmd(['validate', '--in', path])
        self.assertEqual((1, ''), (status, out))
        self.assertTrue(err.startswith('CLI failed [E_SCHEMA_INVALID]: '))

    def test_not_json(self):
        "unparsable input"
        path = self.scratch('doc.json', '{oops')
        status, _, err = self.run_cmd(['validate', '--in', path])
        self.assertEqual(1, status)
        self.assertTrue(err.startswith('CLI failed [E_INVALID_INPUT]: '))


class DoctorCommandTest(unittest.TestCase):
    "linguistic-enricher doctor"

    def run_cmd(self, argv, **kwargs):
        "`(status, stdout, stderr, fake checks)`"
        kwargs.setdefault('return_value', REPORT)
        with no_endpoint(), captured() as (out, err):
            with mock.patch.object(cmd_doctor, 'run_runtime_checks',
                                   **kwargs) as checks:
                status = main(argv)
        return status, out.getvalue(), err.getvalue(), checks

    def test_json(self):
        "the report, as JSON"
        status, out, _, checks = self.run_cmd(
            ['doctor', '--python', '/opt/py', '--tagger', 'perceptron',
             '--strict'])
        self.assertEqual(0, status)
        self.assertEqual(REPORT, json.loads(out))
        checks.assert_called_once_with({'strict': True,
                                        'python': {'executable': '/opt/py'},
                                        'tagger': 'perceptron'})

    def test_table(self):
        "the report, as a table"
        _, out, _, _ = self.run_cmd(['doctor', '--table'])
        lines = out.splitlines()
        self.assertEqual(['check', 'status', 'detail'], lines[0].split())
        self.assertIn('python3 (Python 3.12.1)', out)
        self.assertIn('import requests', out)
        self.assertIn('DOWN', out)
        self.assertIn('http://idx', out)
        self.assertIn('optional', out)

    def test_failure(self):
        "failed checks"
        failure = EnricherException(E_PYTHON_NOT_FOUND,
                                    'Python executable not found: nopy')
        status, out, err, _ = self.run_cmd(['doctor', '--python', 'nopy'],
                                           side_effect=failure)
        self.assertEqual((1, ''), (status, out))
        self.assertEqual('CLI failed [E_PYTHON_NOT_FOUND]: '
                         'Python executable not found: nopy\n', err)
