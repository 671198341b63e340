# License: BSD3

"""
linguistic-enricher command line entry point
"""

import argparse
import sys

from ..errors import EnricherException, E_CLI_USAGE
from ..util import add_subcommand
from . import SUBCOMMANDS


def report_failure(err):
    "print a failure on stderr"
    print('CLI failed [%s]: %s' % (err.code, err.message), file=sys.stderr)


class ArgumentParser(argparse.ArgumentParser):
    """
    Argument parser reporting usage errors the way we report other
    failures (exit status 2)
    """
    def error(self, message):
        self.print_usage(sys.stderr)
        report_failure(EnricherException(E_CLI_USAGE, message))
        sys.exit(2)


def mk_argparser():
    "parser for all subcommands"
    psr = ArgumentParser(prog='linguistic-enricher',
                         description='Deterministic linguistic enrichment '
                         'of text into annotated seed documents')
    subparsers = psr.add_subparsers(title='subcommands', dest='command')
    subparsers.required = True
    for module in SUBCOMMANDS:
        subparser = add_subcommand(subparsers, module)
        module.config_argparser(subparser)
    return psr


def main(argv=None):
    """
    Run a subcommand, returning the process exit status
    """
    args = mk_argparser().parse_args(argv)
    try:
        args.func(args)
    except EnricherException as err:
        report_failure(err)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
