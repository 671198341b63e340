# License: BSD3

"""
The orchestrator: run a prefix of the stage table on a document,
checking the document at every stage boundary
"""

import copy

from ..document import seed_document
from ..errors import EnricherException, E_INVALID_INPUT
from ..offsets import INDEX_UNITS
from ..validation.invariants import validate_invariants
from ..validation.schema import validate_schema
from .registry import DEFAULT_TARGET, resolve_stages
from .stages import StageContext

HOOKS = [('schema', validate_schema),
         ('invariants', validate_invariants)]
"""
Boundary checks, in the order they run
"""


def _tagged(err, phase, message):
    "copy of an error, tagged with the phase it happened in"
    details = dict(err.details)
    details['phase'] = phase
    return EnricherException(err.code, message, details)


def check_boundary(doc, where):
    """
    Run the boundary checks on a document; `where` is the phase prefix
    (eg. `before:chunking`)
    """
    for check, hook in HOOKS:
        phase = '%s:%s' % (where, check)
        try:
            hook(doc)
        except EnricherException as err:
            raise _tagged(err, phase, 'Validation failed at %s: %s' %
                          (phase, err.message))


def _index_unit(options):
    "index unit requested for a document seeded from raw text"
    basis = options.get('index_basis')
    if isinstance(basis, dict):
        basis = basis.get('unit')
    if basis is not None and basis not in INDEX_UNITS:
        raise EnricherException(E_INVALID_INPUT,
                                'Unknown index basis: %r' % (basis,),
                                {'index_basis': basis,
                                 'valid': list(INDEX_UNITS)})
    return basis


def initial_document(data, options):
    """
    Starting document for a run: raw text is wrapped in a fresh seed
    document, a partial document is copied (and left alone)
    """
    if isinstance(data, str):
        return seed_document(data, _index_unit(options))
    elif isinstance(data, dict):
        return copy.deepcopy(data)
    else:
        raise EnricherException(E_INVALID_INPUT,
                                'Input must be text or a document, not %s' %
                                type(data).__name__,
                                {'type': type(data).__name__})


def run_pipeline(data, options=None):
    """
    Enrich a text (or partial document) up to a pipeline checkpoint.

    Parameters
    ----------
    data : str or dict
        Raw text, or a document produced by an earlier run
    options : dict, optional
        Run options; `target` names the checkpoint to reach
        (default: `relations_extracted`)

    Returns
    -------
    doc : dict
        A new document; the input is never modified

    Raises
    ------
    EnricherException
        On an unknown target or bad input, or as soon as a stage or
        boundary check fails (no partial output is returned). The
        failing phase is recorded in `details["phase"]`
    """
    options = dict(options or {})
    stages = resolve_stages(options.get('target') or DEFAULT_TARGET)
    doc = initial_document(data, options)
    context = StageContext.from_options(options)

    check_boundary(doc, 'entry')
    for stage in stages:
        check_boundary(doc, 'before:%s' % stage.name)
        try:
            doc = stage.run(doc, context)
        except EnricherException as err:
            raise _tagged(err, 'stage:%s' % stage.name,
                          '%s: %s' % (stage.name, err.message))
        check_boundary(doc, 'after:%s' % stage.name)
    check_boundary(doc, 'final')
    return doc
