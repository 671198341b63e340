# License: BSD3

"""
The stage table: which stage modules run, in which order, and which
document `stage` value (pipeline checkpoint) each one leaves behind
"""

from collections import namedtuple

from ..errors import EnricherException, E_INVALID_TARGET
from .stages import (surface_normalization,
                     canonicalization,
                     segmentation,
                     tokenization,
                     pos_tagging,
                     mwe_extraction,
                     mwe_construction,
                     mwe_materialization,
                     linguistic_analysis,
                     chunking,
                     head_identification,
                     relation_extraction)


class StageEntry(namedtuple('StageEntry', 'index name target module')):
    """
    A stage module and the checkpoint it produces
    """
    @property
    def label(self):
        "eg. `09-chunking`"
        return '%02d-%s' % (self.index, self.name)

    def run(self, doc, context=None):
        "apply the stage"
        return self.module.run_stage(doc, context)


def _entry(index, target, module):
    return StageEntry(index, module.NAME, target, module)


STAGES = [
    _entry(0, 'canonical', surface_normalization),
    _entry(1, 'canonical', canonicalization),
    _entry(2, 'segmented', segmentation),
    _entry(3, 'tokenized', tokenization),
    _entry(4, 'pos_tagged', pos_tagging),
    _entry(5, 'mwe_candidates', mwe_extraction),
    _entry(6, 'mwe_pattern_candidates', mwe_construction),
    _entry(7, 'mwe_materialized', mwe_materialization),
    _entry(8, 'parsed', linguistic_analysis),
    _entry(9, 'chunked', chunking),
    _entry(10, 'heads_identified', head_identification),
    _entry(11, 'relations_extracted', relation_extraction),
]

PIPELINE_TARGETS = []
for _stage in STAGES:
    if _stage.target not in PIPELINE_TARGETS:
        PIPELINE_TARGETS.append(_stage.target)
PIPELINE_TARGETS = tuple(PIPELINE_TARGETS)

DEFAULT_TARGET = 'relations_extracted'


def resolve_stages(target):
    """
    Stages to run (from the first) to reach a checkpoint: every stage
    up to and including the last one that produces it

    Raises
    ------
    EnricherException
        `E_INVALID_TARGET` if no stage produces the target
    """
    last = None
    for pos, stage in enumerate(STAGES):
        if stage.target == target:
            last = pos
    if last is None:
        raise EnricherException(E_INVALID_TARGET,
                                'Unknown pipeline target: %r' % (target,),
                                {'target': target,
                                 'valid': list(PIPELINE_TARGETS)})
    return STAGES[:last + 1]


def get_stage(name):
    """
    Stage entry by stage name (eg. `chunking`), or None
    """
    for stage in STAGES:
        if stage.name == name:
            return stage
    return None
