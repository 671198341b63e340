# License: BSD3

"""
Check a document against the schema and runtime invariants
"""

from ..errors import EnricherException, E_INVALID_INPUT
from ..util import dump_json, read_json
from ..validation import validate_document

NAME = 'validate'


def config_argparser(psr):
    """
    Subcommand flags.

    You should create and pass in the subparser to which the flags
    are to be added.
    """
    psr.add_argument('--in', metavar='FILE', dest='input', required=True,
                     help='document to check (JSON)')
    psr.add_argument('--pretty', action='store_true',
                     help='indent the JSON output')
    psr.set_defaults(func=main)


def main(args):
    """
    Subcommand main.

    You shouldn't need to call this yourself if you're using
    `config_argparser`
    """
    try:
        doc = read_json(args.input)
    except (OSError, ValueError) as err:
        raise EnricherException(E_INVALID_INPUT,
                                'Could not read %s: %s' % (args.input, err),
                                {'path': args.input})
    print(dump_json(validate_document(doc), pretty=args.pretty))
