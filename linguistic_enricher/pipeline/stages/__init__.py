"""
The enrichment stages, in pipeline order.

Each stage module exposes a `NAME` and a `run_stage(doc, context)`
function which returns a new document, leaving its input alone. A
stage refuses to run on a document that already carries what it
would produce.
"""

from collections import namedtuple

from ...external.wikipedia import WikipediaTitleIndex


class StageContext(namedtuple('StageContext', 'options lexicon')):
    """
    What a stage may know besides its input document: the run options
    and the (possibly disabled) title index client
    """
    @classmethod
    def from_options(cls, options=None):
        "context for a run with the given options"
        options = dict(options or {})
        return cls(options, WikipediaTitleIndex.from_options(options))

    def option(self, key, default=None):
        "run option, with a default"
        return self.options.get(key, default)


def ensure_context(context):
    "the given context, or a default one"
    if context is None:
        return StageContext.from_options({})
    return context
