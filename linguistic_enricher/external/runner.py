# License: BSD3

"""
Run a stage in a separate Python process (see `worker`)
"""

import subprocess

from ..errors import (EnricherException,
                      E_PYTHON_NOT_FOUND,
                      E_PYTHON_SUBPROCESS_FAILED,
                      E_PYTHON_TIMEOUT)
from .protocol import parse_response

DEFAULT_EXECUTABLE = 'python3'
DEFAULT_TIMEOUT_MS = 30000
WORKER_MODULE = 'linguistic_enricher.external.worker'


def python_options(options):
    """
    `(executable, timeout in seconds)` from `options["python"]`
    """
    conf = (options or {}).get('python') or {}
    executable = conf.get('executable') or DEFAULT_EXECUTABLE
    timeout_ms = conf.get('timeout_ms') or DEFAULT_TIMEOUT_MS
    return executable, timeout_ms / 1000.0


def call_python(args, stdin=None, options=None):
    """
    Run the configured Python interpreter with some arguments,
    returning its standard output. The child is killed if it runs for
    longer than the timeout

    Raises
    ------
    EnricherException
        `E_PYTHON_NOT_FOUND`, `E_PYTHON_TIMEOUT` or
        `E_PYTHON_SUBPROCESS_FAILED` (non-zero exit)
    """
    executable, timeout = python_options(options)
    cmd = [executable] + list(args)
    try:
        proc = subprocess.run(cmd,
                              input=stdin,
                              stdout=subprocess.PIPE,
                              stderr=subprocess.PIPE,
                              universal_newlines=True,
                              timeout=timeout)
    except FileNotFoundError:
        raise EnricherException(E_PYTHON_NOT_FOUND,
                                'Python executable not found: %s' %
                                executable,
                                {'executable': executable})
    except subprocess.TimeoutExpired:
        raise EnricherException(E_PYTHON_TIMEOUT,
                                'Python process timed out after %gs' %
                                timeout,
                                {'executable': executable,
                                 'timeout_ms': int(timeout * 1000)})
    if proc.returncode != 0:
        raise EnricherException(E_PYTHON_SUBPROCESS_FAILED,
                                'Python process exited with status %d' %
                                proc.returncode,
                                {'executable': executable,
                                 'exit_code': proc.returncode,
                                 'stderr': proc.stderr.strip()[-2000:]})
    return proc.stdout


def run_python(request, options=None):
    """
    Send a serialized request (see `protocol.serialize_request`) to a
    fresh worker process and return the result it sends back
    """
    raw = call_python(['-m', WORKER_MODULE], stdin=request, options=options)
    return parse_response(raw)
