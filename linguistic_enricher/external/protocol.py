# License: BSD3

"""
JSON envelopes exchanged with a Python worker process.

A request is `{stage, payload, options}`; a response is either
`{ok: true, result}` or `{ok: false, error: {code, message, details?}}`
"""

import json

from ..errors import EnricherException, E_PYTHON_PROTOCOL_INVALID_JSON


def serialize_request(stage, payload, options=None):
    """
    Request envelope, as a line of JSON
    """
    return json.dumps({'stage': stage,
                       'payload': payload,
                       'options': options or {}},
                      sort_keys=True, ensure_ascii=False)


def ok_response(result):
    "envelope for a successful call"
    return {'ok': True, 'result': result}


def error_response(err):
    "envelope for an `EnricherException`"
    return {'ok': False, 'error': err.to_json()}


def _protocol_error(message, raw):
    return EnricherException(E_PYTHON_PROTOCOL_INVALID_JSON, message,
                             {'raw': raw[:200] if isinstance(raw, str)
                              else repr(raw)[:200]})


def parse_request(raw):
    """
    `(stage, payload, options)` from a request envelope
    """
    try:
        request = json.loads(raw)
    except ValueError as err:
        raise _protocol_error('Request is not valid JSON: %s' % err, raw)
    if not isinstance(request, dict) or\
            not isinstance(request.get('stage'), str) or\
            'payload' not in request:
        raise _protocol_error('Request must be {stage, payload, options}',
                              raw)
    return request['stage'], request['payload'], request.get('options') or {}


def parse_response(raw):
    """
    The result carried by a response envelope

    Raises
    ------
    EnricherException
        `E_PYTHON_PROTOCOL_INVALID_JSON` if the response is not a valid
        envelope, or the worker's own error if it reports a failure
    """
    try:
        response = json.loads(raw)
    except (TypeError, ValueError) as err:
        raise _protocol_error('Response is not valid JSON: %s' % err, raw)
    if not isinstance(response, dict) or\
            not isinstance(response.get('ok'), bool):
        raise _protocol_error('Response must have a boolean "ok" field', raw)
    if response['ok']:
        if 'result' not in response:
            raise _protocol_error('Successful response without "result"',
                                  raw)
        return response['result']
    error = response.get('error')
    if not isinstance(error, dict) or\
            not isinstance(error.get('code'), str) or\
            not isinstance(error.get('message'), str):
        raise _protocol_error('Failed response without a {code, message} '
                              'error', raw)
    raise EnricherException(error['code'], error['message'],
                            error.get('details'))
