# License: BSD3

"""
Check that the Python runtime (and any services) can be used

Reports the interpreter version, which dependencies import, whether
the perceptron tagger model is installed and, if an endpoint is
configured, whether the title index answers.
"""

import os

from tabulate import tabulate

from ..external.runtime import run_runtime_checks
from ..external.wikipedia import SERVICE_NAME
from ..util import dump_json
from .run import ENDPOINT_ENV

NAME = 'doctor'


def config_argparser(psr):
    """
    Subcommand flags.

    You should create and pass in the subparser to which the flags
    are to be added.
    """
    psr.add_argument('--python', metavar='EXE',
                     help='Python interpreter to check')
    psr.add_argument('--endpoint', metavar='URL',
                     default=os.environ.get(ENDPOINT_ENV),
                     help='Wikipedia title index endpoint '
                     '(default: $%s)' % ENDPOINT_ENV)
    psr.add_argument('--tagger', default=None,
                     help='tagger the runtime must support')
    psr.add_argument('--strict', action='store_true',
                     help='fail if a configured service is unreachable')
    psr.add_argument('--table', action='store_true',
                     help='print a table instead of JSON')
    psr.set_defaults(func=main)


def options_from_args(args):
    "runtime check options for the command line arguments"
    options = {'strict': args.strict}
    if args.python:
        options['python'] = {'executable': args.python}
    if args.endpoint:
        options['services'] = {SERVICE_NAME: {'endpoint': args.endpoint}}
    if args.tagger:
        options['tagger'] = args.tagger
    return options


def _status(flag):
    return 'ok' if flag else 'MISSING'


def report_table(report):
    """
    Human readable rendition of a runtime check report
    """
    python = report['python']
    rows = [['python', 'ok', '%s (%s)' % (python['executable'],
                                         python['version'])]]
    for name, found in sorted(report['dependencies'].items()):
        rows.append(['import ' + name, _status(found), ''])
    model = report['model']
    rows.append(['model ' + model['name'], _status(model['installed']),
                 'required' if model['required'] else 'optional'])
    for name, service in sorted(report['services'].items()):
        rows.append(['service ' + name,
                     'ok' if service['ok'] else 'DOWN',
                     service['endpoint']])
    return tabulate(rows, headers=['check', 'status', 'detail'])


def main(args):
    """
    Subcommand main.

    You shouldn't need to call this yourself if you're using
    `config_argparser`
    """
    report = run_runtime_checks(options_from_args(args))
    if args.table:
        print(report_table(report))
    else:
        print(dump_json(report, pretty=True))
