# -*- coding: ascii -*-
import logging
import os
from contextlib import contextmanager

from .errors import ScaffoldError

LOG = logging.getLogger(__name__)

GUARDED_ERRORS = (ScaffoldError, ValueError, RuntimeError)


def guard_enabled() -> bool:
    return os.environ.get('SCAFFOLDER_GUARD', '1') == '1'


@contextmanager
def decomposition_guard(stats: dict, name: str = ''):
    """Catch per-molecule decomposition failures and convert them to counters."""
    try:
        yield
    except GUARDED_ERRORS as e:
        if not guard_enabled():
            raise
        # record and move on to the next molecule
        LOG.warning(f"Skipping {name or 'molecule'}: {type(e).__name__}: {e}")
        failures = stats.setdefault('failures', {})
        failures[type(e).__name__] = failures.get(type(e).__name__, 0) + 1
        stats['failed'] = stats.get('failed', 0) + 1
        stats['last_error'] = str(e)
        stats['last_error_type'] = type(e).__name__
