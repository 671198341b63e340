# License: BSD3

"""
Worker side of the subprocess protocol: read one request on standard
input, run the stage it names on its payload and write the response
envelope on standard output.

Usage: python -m linguistic_enricher.external.worker < request.json
"""

import json
import sys

from ..errors import EnricherException, E_INVALID_INPUT
from ..pipeline.registry import get_stage
from ..pipeline.stages import StageContext
from .protocol import error_response, ok_response, parse_request


def handle(raw):
    """
    Response envelope (a dict) for a raw request
    """
    try:
        stage_name, payload, options = parse_request(raw)
        stage = get_stage(stage_name)
        if stage is None:
            raise EnricherException(E_INVALID_INPUT,
                                    'Unknown stage: %s' % stage_name,
                                    {'stage': stage_name})
        result = stage.run(payload, StageContext.from_options(options))
        return ok_response(result)
    except EnricherException as err:
        return error_response(err)


def main():
    "worker entry point"
    response = handle(sys.stdin.read())
    sys.stdout.write(json.dumps(response, ensure_ascii=False))
    sys.stdout.write('\n')


if __name__ == '__main__':
    main()
