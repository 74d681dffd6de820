"""
Minimisation of order-dependent test failures.

ExampleMinimizer re-runs subsets of a suite through an execution port
until it has found the smallest set of examples that still reproduces
every failure of the original full run.  The port is any object with a
``run(ids)`` method returning something with a ``failed_example_ids``
attribute (see suitebisect.runner).

Failures that already happen when the failing examples run on their own
need nothing else.  For each of the other ("dependent") failures the
non-failing examples are bisected: a half that can be dropped without
losing the failure is ignored, and when neither half can be dropped both
halves are searched in turn.

The search assumes that necessity is monotonic, i.e. that adding examples
to a set that reproduces a failure never makes the failure go away.
"""

import logging
import time

from suitebisect.command import ShellCommand
from suitebisect.reporter import NullReporter, Notification

logger = logging.getLogger(__name__)

NOT_ENOUGH_INFORMATION = "(Not yet enough information to provide any repro command)"


class BisectFailedError(Exception):
    """The bisection cannot produce a result.
    """


class ExampleMinimizer:
    """Finds a minimal set of examples reproducing the original failures.

    `runner` is the execution port.  The full list of example ids, in the
    order the suite runs them, is taken from `example_ids` or, if that is
    not given, from ``runner.all_example_ids``.
    """

    def __init__(self, runner, reporter=None, example_ids=None,
                 shell_command=None):
        self.runner = runner
        self.reporter = reporter if reporter is not None else NullReporter()
        if example_ids is None:
            example_ids = runner.all_example_ids
        self.all_example_ids = list(example_ids)
        self.shell_command = shell_command or ShellCommand()

        self._order = dict(
            (example_id, index)
            for index, example_id in enumerate(self.all_example_ids))
        self._started = False

        self.run_count = 0
        self.failed_example_ids = None
        self.needed_ids = set()
        self.unneeded_ids = set()
        self._suspect_ids = []

    # public API

    def find_minimal_repro(self):
        """Run the search and return the needed ids in suite order.
        """
        if self._started:
            raise BisectFailedError(
                "A minimizer can only search once, create a new one to retry.")
        self._started = True

        self._notify('bisect_starting',
                     runner=self.runner.__class__.__name__,
                     example_count=len(self.all_example_ids))
        start_time = time.time()
        self._prep()
        for target_id in self._check_dependencies():
            self._isolate(target_id)

        self._notify('bisect_complete',
                     duration=time.time() - start_time,
                     original_non_failing_count=len(self.non_failing_example_ids),
                     remaining_count=len(self.needed_ids),
                     run_count=self.run_count)
        return self.currently_needed_ids()

    def currently_needed_ids(self):
        """Returns the failing ids plus all ids confirmed as needed so far.
        """
        if self.failed_example_ids is None:
            return []
        return self._in_suite_order(
            self.needed_ids.union(self.failed_example_ids))

    def repro_command_for_currently_needed_ids(self):
        if self.failed_example_ids is None:
            return NOT_ENOUGH_INFORMATION
        return self.shell_command.repro_command_from(self.currently_needed_ids())

    minimal_reproduction_description = repro_command_for_currently_needed_ids

    @property
    def non_failing_example_ids(self):
        failed = set(self.failed_example_ids or ())
        return [example_id for example_id in self.all_example_ids
                if example_id not in failed]

    # search steps

    def _prep(self):
        self._notify('bisect_original_run_start',
                     example_count=len(self.all_example_ids))
        results, duration = self._timed_run(self.all_example_ids)

        failed = set(results.failed_example_ids)
        failed_example_ids = [example_id for example_id in self.all_example_ids
                              if example_id in failed]
        if not failed_example_ids:
            raise BisectFailedError(
                "\n\nNo failures found. Bisect only works in the presence of "
                "one or more failing examples.")
        self.failed_example_ids = failed_example_ids
        logger.debug("original run: %d of %d examples failed",
                     len(failed_example_ids), len(self.all_example_ids))

        self._notify('bisect_original_run_complete',
                     failed_example_ids=list(failed_example_ids),
                     non_failing_example_ids=self.non_failing_example_ids,
                     duration=duration)

    def _check_dependencies(self):
        """Runs the failing examples alone, returns the ones that passed.
        """
        self._notify('bisect_dependency_check_started')
        still_failing = self._run_subset([])
        dependent_ids = [example_id for example_id in self.failed_example_ids
                         if example_id not in still_failing]
        if dependent_ids:
            self._notify('bisect_dependency_check_passed',
                         dependent_ids=dependent_ids,
                         independent_ids=self._in_suite_order(still_failing))
        else:
            self._notify('bisect_dependency_check_failed',
                         independent_ids=list(self.failed_example_ids))
        return dependent_ids

    def _isolate(self, target_id):
        """Adds the examples that `target_id` depends on to the needed ids.
        """
        candidate_ids = [example_id for example_id in self.non_failing_example_ids
                         if example_id not in self.needed_ids]
        self.unneeded_ids = set()
        self._suspect_ids = candidate_ids
        if not candidate_ids:
            return

        # without any confirmed ids the dependency check ran exactly this probe
        if self.needed_ids and self._reproduces(target_id, candidate_ids):
            logger.debug("%s fails with the confirmed examples alone", target_id)
            self._suspect_ids = []
            return

        logger.debug("bisecting %d candidates for %s",
                     len(candidate_ids), target_id)
        self._bisect_over(target_id, candidate_ids)
        self._suspect_ids = []

    def _bisect_over(self, target_id, candidate_ids):
        # only called for candidates known to contain at least one culprit
        if len(candidate_ids) == 1:
            self.needed_ids.add(candidate_ids[0])
            return

        self._notify('bisect_round_started',
                     target_id=target_id,
                     candidate_range=(candidate_ids[0], candidate_ids[-1]),
                     candidates_count=len(candidate_ids))

        slice_size = (len(candidate_ids) + 1) // 2
        lhs, rhs = candidate_ids[:slice_size], candidate_ids[slice_size:]

        start_time = time.time()
        ids_to_ignore = None
        for ids in (rhs, lhs):
            if self._reproduces(target_id, ids):
                ids_to_ignore = ids
                break
        duration = time.time() - start_time

        if ids_to_ignore is None:
            self._notify('bisect_round_detected_multiple_culprits',
                         target_id=target_id, duration=duration)
            self._bisect_over(target_id, lhs)
            self._bisect_over(target_id, rhs)
            return

        ignored = set(ids_to_ignore)
        self.unneeded_ids.update(ignored)
        self._suspect_ids = [example_id for example_id in self._suspect_ids
                             if example_id not in ignored]
        self._notify('bisect_round_ignoring_ids',
                     target_id=target_id,
                     ids_to_ignore=list(ids_to_ignore),
                     remaining_ids=list(self._suspect_ids),
                     duration=duration)
        self._bisect_over(target_id, lhs if ids_to_ignore is rhs else rhs)

    # running subsets

    def _reproduces(self, target_id, ids_to_remove):
        removed = set(ids_to_remove)
        kept = [example_id for example_id in self._suspect_ids
                if example_id not in removed]
        return target_id in self._run_subset(kept)

    def _run_subset(self, candidate_ids):
        """Runs `candidate_ids` with the failing and confirmed examples.

        Returns the originally failing ids that failed again.  Any other
        failure did not happen on the original run and is ignored.
        """
        ids_to_run = self._in_suite_order(
            self.needed_ids.union(candidate_ids, self.failed_example_ids))
        self._notify('bisect_individual_run_start',
                     command=self.shell_command.repro_command_from(ids_to_run),
                     ids_to_run=ids_to_run)
        results, duration = self._timed_run(ids_to_run)
        failed = set(results.failed_example_ids).intersection(
            self.failed_example_ids)
        self._notify('bisect_individual_run_complete',
                     duration=duration,
                     failed_example_ids=self._in_suite_order(failed),
                     results=results)
        return failed

    def _timed_run(self, ids_to_run):
        start_time = time.time()
        results = self.runner.run(list(ids_to_run))
        duration = time.time() - start_time
        self.run_count += 1
        self._abort_if_ordering_inconsistent(results)
        return results, duration

    def _abort_if_ordering_inconsistent(self, results):
        ran_ids = getattr(results, 'all_example_ids', None)
        if ran_ids is None:
            return
        positions = [self._order[example_id] for example_id in ran_ids
                     if example_id in self._order]
        if positions != sorted(positions):
            raise BisectFailedError(
                "\n\nThe example ordering is inconsistent. Bisect relies upon "
                "the examples running in the same order on every run, make "
                "sure the suite is not shuffled.")

    def _in_suite_order(self, ids):
        order = self._order
        return sorted(
            (example_id for example_id in ids if example_id in order),
            key=order.__getitem__)

    def _notify(self, event, **fields):
        try:
            self.reporter.publish(event, Notification(**fields))
        except Exception:
            logger.exception("reporter %r failed to handle %s",
                             self.reporter, event)
