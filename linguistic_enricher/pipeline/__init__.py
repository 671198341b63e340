"""
The enrichment pipeline: a fixed sequence of stages (see `registry`)
run by an orchestrator that checks the document between stages
"""

from .registry import PIPELINE_TARGETS, STAGES, resolve_stages
from .run import run_pipeline
