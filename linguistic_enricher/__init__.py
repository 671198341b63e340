"""
linguistic-enricher turns plain text into a *seed document*: the text
itself plus layers of linguistic annotation over it, each layer added
by one stage of a fixed, deterministic pipeline.

Stages
------
The pipeline (see `linguistic_enricher.pipeline.registry`) runs, in
order:

* surface normalization and canonicalization (Unicode NFC, LF)
* segmentation into sentences, tokenization
* part of speech tagging (NLTK, plus some context repairs)
* multiword expression extraction, construction and materialization
* heuristic linguistic analysis (dependencies, lemmas, noun phrases,
  named entities)
* chunking, chunk head identification, and finally role relations
  between chunk heads

Every annotation is anchored to the text by selectors (token ids,
a span in the document's index basis, and the quoted text), and has a
deterministic id, so that two runs on the same input give the same
document.

Documents are checked against a JSON schema and a set of runtime
invariants before and after every stage (`linguistic_enricher.validation`).

Public API
----------
* `run_pipeline(input, options)`: enrich text (or a partial document)
  up to a checkpoint in `PIPELINE_TARGETS`
* `validate_document(doc)`
* `run_doctor(options)`: check the Python runtime and services
"""

from .external.runtime import run_runtime_checks
from .pipeline import PIPELINE_TARGETS, run_pipeline
from .validation import validate_document


def run_doctor(options=None):
    """
    Runtime checks report (see
    `linguistic_enricher.external.runtime.run_runtime_checks`)
    """
    return run_runtime_checks(options)
