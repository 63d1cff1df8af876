"""
pytest collection plumbing.

The test modules import the ``SyncTestCase`` / ``AsyncTestCase`` base classes
from ``common``; pytest would otherwise collect those base classes themselves
(running their placeholder ``runTest``) in every module that imports them.
"""

from . import common


def pytest_pycollect_makeitem(collector, name, obj):
    if obj in (common.SyncTestCase, common.AsyncTestCase):
        return []
    return None
