# License: BSD3

"""
Client for the (optional) Wikipedia title index service.

The service answers title prefix queries; we turn its answers into
evidence that a token or multiword candidate names something. It is
strictly best effort: when no endpoint is configured the client is
disabled, and when the service misbehaves we warn and carry on without
evidence.
"""

import warnings

import requests

SERVICE_NAME = 'wikipedia-title-index'
DEFAULT_TIMEOUT_MS = 2000
DEFAULT_LIMIT = 10

EVIDENCE_FIELDS = (
    'wiki_exact_match',
    'wiki_prefix_count',
    'wiki_parenthetical_variant_count',
    'wiki_hyphen_space_variant_match',
    'wiki_apostrophe_variant_match',
    'wiki_singular_plural_variant_match',
    'wiki_any_signal',
)

_APOSTROPHES = ("'", '’', '‘', 'ʼ')


class LexiconServiceWarning(UserWarning):
    """
    The title index could not be consulted (we proceed without it)
    """
    pass


def empty_evidence():
    "evidence for a surface the index knows nothing about"
    return {'wiki_exact_match': False,
            'wiki_prefix_count': 0,
            'wiki_parenthetical_variant_count': 0,
            'wiki_hyphen_space_variant_match': False,
            'wiki_apostrophe_variant_match': False,
            'wiki_singular_plural_variant_match': False,
            'wiki_any_signal': False}


def _title(row):
    "a result row is either a bare title or a `{t: title}` record"
    if isinstance(row, dict):
        row = row.get('t')
    if not isinstance(row, str):
        return None
    return row.replace('_', ' ').strip().lower()


def _strip_apostrophes(text):
    for apo in _APOSTROPHES:
        text = text.replace(apo, '')
    return text


def map_query_evidence(surface, rows):
    """
    Evidence for a surface given the rows the index returned for it

    Parameters
    ----------
    surface : str
        What we asked about
    rows : list
        Titles, either as strings or as `{t: title}` records

    Returns
    -------
    evidence : dict
        One entry for each of `EVIDENCE_FIELDS`
    """
    wanted = surface.strip().lower()
    titles = [t for t in (_title(r) for r in rows or []) if t]
    evidence = empty_evidence()
    if not wanted:
        return evidence
    hyphenated = set([wanted.replace('-', ' '), wanted.replace(' ', '-')])
    hyphenated.discard(wanted)
    plurals = set([wanted + 's', wanted[:-1] if wanted.endswith('s')
                   else wanted])
    plurals.discard(wanted)
    for title in titles:
        if title == wanted:
            evidence['wiki_exact_match'] = True
        if title.startswith(wanted):
            evidence['wiki_prefix_count'] += 1
        if title.startswith(wanted + ' (') and title.endswith(')'):
            evidence['wiki_parenthetical_variant_count'] += 1
        if title in hyphenated:
            evidence['wiki_hyphen_space_variant_match'] = True
        if title != wanted and\
                _strip_apostrophes(title) == _strip_apostrophes(wanted):
            evidence['wiki_apostrophe_variant_match'] = True
        if title in plurals:
            evidence['wiki_singular_plural_variant_match'] = True
    evidence['wiki_any_signal'] = any(
        evidence[k] for k in EVIDENCE_FIELDS if k != 'wiki_any_signal')
    return evidence


class WikipediaTitleIndex(object):
    """
    HTTP client for the title index.

    Responses are memoized per client instance (and so per pipeline
    run); the cache never changes what a lookup returns
    """
    def __init__(self, endpoint=None, timeout_ms=DEFAULT_TIMEOUT_MS,
                 limit=DEFAULT_LIMIT, session=None):
        self.endpoint = endpoint.rstrip('/') if endpoint else None
        self.timeout_ms = timeout_ms
        self.limit = limit
        self._session = session
        self._cache = {}

    @classmethod
    def from_options(cls, options):
        """
        Client configured from `options["services"]`
        """
        services = (options or {}).get('services') or {}
        conf = services.get(SERVICE_NAME) or {}
        return cls(endpoint=conf.get('endpoint'),
                   timeout_ms=conf.get('timeout_ms', DEFAULT_TIMEOUT_MS),
                   limit=conf.get('limit', DEFAULT_LIMIT))

    @property
    def enabled(self):
        "True if there is an endpoint to talk to"
        return bool(self.endpoint)

    @property
    def session(self):
        "lazily created HTTP session"
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def _timeout(self):
        return self.timeout_ms / 1000.0

    def health(self):
        """
        True if the service answers its health check
        """
        if not self.enabled:
            return False
        try:
            resp = self.session.get(self.endpoint + '/health',
                                    timeout=self._timeout())
            return resp.ok
        except requests.RequestException as err:
            warnings.warn('%s health check failed: %s' % (SERVICE_NAME, err),
                          LexiconServiceWarning)
            return False

    def query_title(self, surface, limit=None):
        """
        Rows matching a title prefix, or None if the service could not
        be consulted (disabled, unreachable, bad answer)
        """
        if not self.enabled:
            return None
        limit = limit or self.limit
        key = (surface, limit)
        if key in self._cache:
            return self._cache[key]
        try:
            resp = self.session.post(self.endpoint + '/v1/titles/query',
                                     json={'prefix': surface,
                                           'limit': limit},
                                     timeout=self._timeout())
            resp.raise_for_status()
            rows = resp.json().get('rows')
        except (requests.RequestException, ValueError, AttributeError) as err:
            warnings.warn('%s lookup for %r failed: %s' %
                          (SERVICE_NAME, surface, err),
                          LexiconServiceWarning)
            return None
        if not isinstance(rows, list):
            warnings.warn('%s returned no rows for %r' %
                          (SERVICE_NAME, surface),
                          LexiconServiceWarning)
            return None
        self._cache[key] = rows
        return rows

    def evidence(self, surface):
        """
        Evidence for a surface, or None if the service could not be
        consulted
        """
        rows = self.query_title(surface)
        if rows is None:
            return None
        return map_query_evidence(surface, rows)
