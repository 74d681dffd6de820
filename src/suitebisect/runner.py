"""
Running subsets of a unittest suite.

ForkingRunner executes every requested subset in a forked child process,
so that state leaked by one run can never reach the next one.  The child
writes the ids of its failing tests to a pipe, one per line, followed by
an end marker, and exits with status 0; anything else is reported as a
RunnerError, distinct from ordinary test failures.
"""

import logging
import os
import re
import select
import signal
import time
import traceback
import unittest
from unittest.util import strclass

logger = logging.getLogger(__name__)

# last line written by a child that ran its whole subset
END_OF_RESULTS = '--- end of results ---'

# id of the placeholder unittest reports fixture errors on
_FIXTURE_ERROR = re.compile(
    r'^((?:setUp|tearDown)(?:Class|Module)) \((.+)\)$')


class RunnerError(Exception):
    """A subset could not be run to completion.
    """


class RunResults:
    """Outcome of a single run: which ids ran, in order, and which failed.
    """
    def __init__(self, all_example_ids, failed_example_ids):
        self.all_example_ids = list(all_example_ids)
        self.failed_example_ids = set(failed_example_ids)

    def __repr__(self):
        return '<%s: %d run, %d failed>' % (
            self.__class__.__name__, len(self.all_example_ids),
            len(self.failed_example_ids))


class BisectTestResult(unittest.TestResult):
    """Silent TestResult that only remembers the ids of failing tests.

    Errors raised by class and module fixtures (setUpClass, tearDownModule
    and friends) are reported by unittest on a placeholder instead of a
    test; they are charged to every test in `test_cases` that the fixture
    covers.
    """

    def __init__(self, test_cases=(), *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.test_cases = list(test_cases)
        self.failed_ids = []

    def _record(self, test_id):
        if test_id not in self.failed_ids:
            self.failed_ids.append(test_id)

    def _record_fixture_error(self, holder):
        match = _FIXTURE_ERROR.match(holder.id())
        if match is None:
            logger.warning("cannot attribute error in %s to any test", holder.id())
            return
        fixture, scope = match.groups()
        if fixture.endswith('Module'):
            covered = [test for test in self.test_cases
                       if type(test).__module__ == scope]
        else:
            covered = [test for test in self.test_cases
                       if strclass(type(test)) == scope]
        for test in covered:
            self._record(test.id())

    def addFailure(self, test, err):
        super().addFailure(test, err)
        self._record(test.id())

    def addError(self, test, err):
        super().addError(test, err)
        if isinstance(test, unittest.TestCase):
            self._record(test.id())
        else:
            self._record_fixture_error(test)

    def addUnexpectedSuccess(self, test):
        super().addUnexpectedSuccess(test)
        self._record(test.id())

    def addSubTest(self, test, subtest, err):
        super().addSubTest(test, subtest, err)
        if err is not None:
            self._record(test.id())


class ForkingRunner:
    """Execution port for a list of unittest test cases.

    The cases keep the order in which they were passed in; every run
    executes the requested ids in that order, whatever order they were
    requested in.
    """

    def __init__(self, test_cases, timeout=None):
        self.timeout = timeout
        self._cases = {}
        self.all_example_ids = []
        for test in test_cases:
            test_id = test.id()
            if test_id in self._cases:
                logger.warning("ignoring duplicate test id %s", test_id)
                continue
            self._cases[test_id] = test
            self.all_example_ids.append(test_id)

    def run(self, ids):
        requested = set(ids)
        unknown = requested.difference(self._cases)
        if unknown:
            raise RunnerError('unknown test ids: %s' % ', '.join(sorted(unknown)))
        ids_to_run = [test_id for test_id in self.all_example_ids
                      if test_id in requested]
        if not ids_to_run:
            return RunResults([], [])

        logger.debug('Running subset of %d tests [%s .. %s]',
                     len(ids_to_run), ids_to_run[0], ids_to_run[-1])
        read_fd, write_fd = os.pipe()
        pid = os.fork()
        if not pid:
            # child executes tests
            os.close(read_fd)
            self._run_in_child([self._cases[test_id] for test_id in ids_to_run],
                               write_fd)
        os.close(write_fd)
        try:
            output = self._read_output(read_fd, pid)
        finally:
            os.close(read_fd)

        lines = output.decode('utf-8').splitlines()
        if not lines or lines[-1] != END_OF_RESULTS:
            raise RunnerError('subset run exited without reporting its results')
        failed_ids = [line for line in lines[:-1] if line]
        return RunResults(ids_to_run, failed_ids)

    def _run_in_child(self, test_cases, write_fd):
        status = 2
        try:
            suite = unittest.TestSuite()
            suite.addTests(test_cases)
            result = BisectTestResult(test_cases)
            suite.run(result)
            lines = result.failed_ids + [END_OF_RESULTS]
            with os.fdopen(write_fd, 'wb') as output:
                output.write(''.join(
                    line + '\n' for line in lines).encode('utf-8'))
            status = 0
        except BaseException:
            traceback.print_exc()
        finally:
            os._exit(status)

    def _read_output(self, read_fd, pid):
        chunks = []
        deadline = None
        if self.timeout is not None:
            deadline = time.time() + self.timeout
        while True:
            if deadline is not None:
                remaining = deadline - time.time()
                ready = remaining > 0 and select.select([read_fd], [], [], remaining)[0]
                if not ready:
                    os.kill(pid, signal.SIGKILL)
                    os.waitpid(pid, 0)
                    raise RunnerError('subset run timed out after %ss' % self.timeout)
            chunk = os.read(read_fd, 65536)
            if not chunk:
                break
            chunks.append(chunk)

        _, status = os.waitpid(pid, 0)
        if os.WIFSIGNALED(status):
            raise RunnerError('subset run killed by signal %d' % os.WTERMSIG(status))
        if os.WEXITSTATUS(status):
            raise RunnerError('subset run exited with status %d' % os.WEXITSTATUS(status))
        return b''.join(chunks)
