"""
linguistic-enricher subcommands
"""

# License: BSD3

from . import (run,
               validate,
               doctor)

SUBCOMMANDS = [run, validate, doctor]
