# License: BSD3

"""
Enrich a text up to a pipeline checkpoint

The input is either text (`--text`, or a file given with `--in`) or,
for a `.json` input file, a document from an earlier run.
"""

import os

from ..errors import EnricherException, E_INVALID_INPUT
from ..external.postag import PERCEPTRON_TAGGER_NAME, RULE_TAGGER_NAME
from ..external.wikipedia import SERVICE_NAME
from ..pipeline import PIPELINE_TARGETS, run_pipeline
from ..pipeline.registry import DEFAULT_TARGET
from ..util import dump_json, read_json, write_text

NAME = 'run'

ENDPOINT_ENV = 'WIKI_INDEX_ENDPOINT'


def config_argparser(psr):
    """
    Subcommand flags.

    You should create and pass in the subparser to which the flags
    are to be added.
    """
    inputs = psr.add_mutually_exclusive_group(required=True)
    inputs.add_argument('--in', metavar='FILE', dest='input',
                        help='input file (text, or a .json document)')
    inputs.add_argument('--text', metavar='TEXT',
                        help='input text')
    psr.add_argument('--out', metavar='FILE',
                     help='write the document here (instead of stdout)')
    psr.add_argument('--target', choices=PIPELINE_TARGETS,
                     default=DEFAULT_TARGET,
                     help='pipeline checkpoint to reach (default: %(default)s)')
    psr.add_argument('--pretty', action='store_true',
                     help='indent the JSON output')
    psr.add_argument('--timeout-ms', metavar='N', type=int,
                     help='timeout for title index lookups, in milliseconds')
    psr.add_argument('--endpoint', metavar='URL',
                     default=os.environ.get(ENDPOINT_ENV),
                     help='Wikipedia title index endpoint '
                     '(default: $%s)' % ENDPOINT_ENV)
    psr.add_argument('--tagger', choices=[RULE_TAGGER_NAME,
                                          PERCEPTRON_TAGGER_NAME],
                     default=RULE_TAGGER_NAME,
                     help='part of speech tagger (default: %(default)s)')
    psr.set_defaults(func=main)


def read_input(args):
    """
    Text or document to enrich
    """
    if args.text is not None:
        return args.text
    try:
        if args.input.endswith('.json'):
            return read_json(args.input)
        with open(args.input, encoding='utf-8') as stream:
            return stream.read()
    except (OSError, ValueError) as err:
        raise EnricherException(E_INVALID_INPUT,
                                'Could not read %s: %s' % (args.input, err),
                                {'path': args.input})


def options_from_args(args):
    """
    Pipeline options for the command line arguments
    """
    options = {'target': args.target,
               'tagger': args.tagger}
    if args.endpoint:
        service = {'endpoint': args.endpoint}
        if args.timeout_ms:
            service['timeout_ms'] = args.timeout_ms
        options['services'] = {SERVICE_NAME: service}
    return options


def main(args):
    """
    Subcommand main.

    You shouldn't need to call this yourself if you're using
    `config_argparser`
    """
    doc = run_pipeline(read_input(args), options_from_args(args))
    text = dump_json(doc, pretty=args.pretty)
    if args.out:
        write_text(args.out, text)
    else:
        print(text)
