# License: BSD3

"""
Doctor checks: can the configured Python interpreter run our stages,
and are the optional services reachable?
"""

from ..errors import (EnricherException,
                      E_PYTHON_DEPENDENCY_MISSING,
                      E_PYTHON_MODEL_MISSING,
                      E_PYTHON_SUBPROCESS_FAILED,
                      E_SERVICE_UNAVAILABLE)
from .postag import PERCEPTRON_TAGGER_NAME
from .runner import call_python, python_options
from .wikipedia import SERVICE_NAME, WikipediaTitleIndex

DEPENDENCIES = ('nltk', 'jsonschema', 'requests')
"""
Modules the worker needs to import
"""

TAGGER_MODEL = 'averaged_perceptron_tagger_eng'
_MODEL_CHECK = "import nltk; nltk.data.find('taggers/%s')" % TAGGER_MODEL


def _succeeds(args, options):
    "True if the interpreter runs the arguments with a zero exit status"
    try:
        call_python(args, options=options)
    except EnricherException as err:
        if err.code == E_PYTHON_SUBPROCESS_FAILED:
            return False
        raise
    return True


def python_version(options=None):
    """
    Version string of the configured interpreter (eg. `Python 3.12.1`)
    """
    out = call_python(['--version'], options=options)
    return out.strip()


def check_dependencies(options=None):
    "dependency name to importability"
    return dict((name, _succeeds(['-c', 'import %s' % name], options))
                for name in DEPENDENCIES)


def check_model(options=None):
    """
    Whether the perceptron tagger model is installed, and whether this
    run needs it
    """
    return {'name': TAGGER_MODEL,
            'required': (options or {}).get('tagger') ==
            PERCEPTRON_TAGGER_NAME,
            'installed': _succeeds(['-c', _MODEL_CHECK], options)}


def check_services(options=None):
    "health of every configured service"
    client = WikipediaTitleIndex.from_options(options)
    if not client.enabled:
        return {}
    return {SERVICE_NAME: {'endpoint': client.endpoint,
                           'ok': client.health()}}


def run_runtime_checks(options=None):
    """
    Check the runtime environment

    Parameters
    ----------
    options : dict, optional
        Run options; `python.executable` selects the interpreter to
        check, `tagger` whether its tagger model is needed, `services`
        which services to contact and `strict` whether an unreachable
        service is a failure

    Returns
    -------
    report : dict
        `{ok, python: {executable, version}, dependencies, model,
        services}`

    Raises
    ------
    EnricherException
        On the first failed check (`E_PYTHON_NOT_FOUND`,
        `E_PYTHON_DEPENDENCY_MISSING`, `E_PYTHON_MODEL_MISSING`, and
        with `strict`, `E_SERVICE_UNAVAILABLE`)
    """
    options = options or {}
    executable, _ = python_options(options)
    report = {'ok': False,
              'python': {'executable': executable,
                         'version': python_version(options)}}

    report['dependencies'] = check_dependencies(options)
    missing = sorted(k for k, v in report['dependencies'].items() if not v)
    if missing:
        raise EnricherException(E_PYTHON_DEPENDENCY_MISSING,
                                'Missing Python dependencies: %s' %
                                ', '.join(missing),
                                {'missing': missing,
                                 'executable': executable})

    report['model'] = check_model(options)
    if report['model']['required'] and not report['model']['installed']:
        raise EnricherException(E_PYTHON_MODEL_MISSING,
                                'NLTK model %s is not installed '
                                '(try nltk.download(%r))' %
                                (TAGGER_MODEL, TAGGER_MODEL),
                                {'model': TAGGER_MODEL,
                                 'executable': executable})

    report['services'] = check_services(options)
    down = sorted(k for k, v in report['services'].items() if not v['ok'])
    if down and options.get('strict'):
        raise EnricherException(E_SERVICE_UNAVAILABLE,
                                'Unreachable services: %s' % ', '.join(down),
                                {'services': down})
    report['ok'] = True
    return report
