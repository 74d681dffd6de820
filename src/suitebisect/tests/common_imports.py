"""
Common helpers for the suitebisect tests.
"""

import importlib
import itertools
import os
import shutil
import sys
import tempfile
import unittest

from suitebisect.reporter import NullReporter
from suitebisect.runner import RunResults


HAS_FORK = hasattr(os, 'fork')

needs_fork = unittest.skipUnless(HAS_FORK, "needs os.fork()")


def load_tests_from(*test_classes):
    loader = unittest.defaultTestLoader
    suite = unittest.TestSuite()
    for test_class in test_classes:
        suite.addTests(loader.loadTestsFromTestCase(test_class))
    return suite


class FakeBisectRunner:
    """Execution port modelling a suite without running anything.

    `always_failures` fail whenever they run.  `dependent_failures` maps a
    failing id to the ids that must run in the same subset for it to fail.
    """

    def __init__(self, all_ids, always_failures, dependent_failures):
        self.all_example_ids = list(all_ids)
        self.always_failures = list(always_failures)
        self.dependent_failures = dict(dependent_failures)
        self.runs = []

    @property
    def run_count(self):
        return len(self.runs)

    def run(self, ids):
        ids = list(ids)
        self.runs.append(ids)
        failures = [i for i in ids if i in self.always_failures]
        for failing_id, depends_upon in self.dependent_failures.items():
            if failing_id in ids and all(d in ids for d in depends_upon):
                failures.append(failing_id)
        return RunResults(ids, failures)


class RunCountingReporter(NullReporter):
    def __init__(self):
        self.round_count = 0

    def bisect_individual_run_start(self, notification):
        self.round_count += 1


class RecordingReporter(NullReporter):
    """Remembers every published event and its notification."""

    def __init__(self):
        self.events = []

    def publish(self, event, notification=None):
        NullReporter.publish(self, event, notification)
        self.events.append((event, notification))

    def event_names(self):
        return [event for event, _ in self.events]


ORDER_DEPENDENT_MODULE = '''\
import unittest

STATE = []


class OrderTests(unittest.TestCase):

    def test_1_leaks(self):
        STATE.append(1)

    def test_2_plain(self):
        pass

    def test_3_needs_clean_state(self):
        self.assertEqual([], STATE)


def test_suite():
    return unittest.defaultTestLoader.loadTestsFromTestCase(OrderTests)
'''

PASSING_MODULE = '''\
import unittest


class PassingTests(unittest.TestCase):

    def test_ok(self):
        pass


def test_suite():
    return unittest.defaultTestLoader.loadTestsFromTestCase(PassingTests)
'''

_fixture_counter = itertools.count()


class TemporarySuiteMixin:
    """Writes throw-away test packages below a temporary base directory.

    Every package gets a fresh name so that earlier imports never hide
    the files of a later test.
    """

    def make_basedir(self):
        basedir = tempfile.mkdtemp(prefix='suitebisect-')
        self.addCleanup(shutil.rmtree, basedir, True)
        sys.path.insert(0, basedir)
        self.addCleanup(sys.path.remove, basedir)
        self.addCleanup(self._forget_modules, basedir)
        return basedir

    def make_package(self, basedir, files):
        name = 'sbfixture_%d_%d' % (os.getpid(), next(_fixture_counter))
        for relpath, content in files.items():
            path = os.path.join(basedir, name, *relpath.split('/'))
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'w') as f:
                f.write(content)
        importlib.invalidate_caches()
        return name

    def _forget_modules(self, basedir):
        for name, module in list(sys.modules.items()):
            filename = getattr(module, '__file__', None) or ''
            if filename.startswith(basedir):
                del sys.modules[name]
