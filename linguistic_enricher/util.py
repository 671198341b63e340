# License: BSD3

"""
Miscellaneous utility functions
"""

import json


def add_subcommand(subparsers, module):
    '''
    Add a subcommand to an argparser following some conventions:

        - the module can have an optional NAME constant
          (giving the name of the command); otherwise we
          assume it's the unqualified module name
        - the first line of its docstring is its help text
        - subsequent lines (if any) form its epilog

    Returns the resulting subparser for the module
    '''

    if 'NAME' in module.__dict__:
        module_name = module.NAME
    else:
        module_name = module.__name__.split('.')[-1]

    module_help_parts = [x for x in module.__doc__.strip().split('\n', 1)
                         if x]
    if len(module_help_parts) > 1:
        module_help = module_help_parts[0]
        module_epilog = '\n'.join(module_help_parts[1:]).strip()
    else:
        module_help = module.__doc__
        module_epilog = None
    return subparsers.add_parser(module_name,
                                 help=module_help,
                                 epilog=module_epilog)


def dump_json(data, pretty=False):
    """
    JSON text for a document or report; `pretty` indents it
    """
    if pretty:
        return json.dumps(data, indent=2, ensure_ascii=False)
    return json.dumps(data, ensure_ascii=False)


def read_json(path):
    "JSON data from a file"
    with open(path, encoding='utf-8') as stream:
        return json.load(stream)


def write_text(path, text):
    "write text to a file (with a final newline)"
    with open(path, 'w', encoding='utf-8') as stream:
        stream.write(text)
        stream.write('\n')
