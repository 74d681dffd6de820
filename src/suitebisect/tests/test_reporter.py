"""
Tests for the bisect reporters and the shell command.
"""

import io
import unittest

from suitebisect.command import ShellCommand
from suitebisect.minimizer import ExampleMinimizer
from suitebisect.reporter import (
    EVENTS, BisectReporter, DebugReporter, Notification, NullReporter,
    ProgressReporter)

from .common_imports import FakeBisectRunner, load_tests_from


class ReporterDispatchTestCase(unittest.TestCase):

    def test_every_event_has_a_noop_handler(self):
        reporter = NullReporter()
        for event in EVENTS:
            reporter.publish(event, Notification())

    def test_unknown_event(self):
        self.assertRaises(ValueError, NullReporter().publish, 'bisect_exploded')

    def test_dispatches_to_overridden_handler(self):
        seen = []

        class StartReporter(BisectReporter):
            def bisect_individual_run_start(self, notification):
                seen.append(notification.command)

        reporter = StartReporter()
        reporter.publish('bisect_individual_run_start', Notification(command='x'))
        reporter.publish('bisect_complete', Notification(duration=1.0))
        self.assertEqual(['x'], seen)

    def test_missing_notification(self):
        seen = []

        class AbortReporter(BisectReporter):
            def bisect_aborted(self, notification):
                seen.append(notification)

        AbortReporter().publish('bisect_aborted')
        self.assertEqual([Notification()], seen)

    def test_notification_fields(self):
        notification = Notification(duration=0.5, ids_to_run=['a'])
        self.assertEqual(0.5, notification.duration)
        self.assertEqual(['a'], notification.ids_to_run)
        self.assertEqual("Notification(duration=0.5, ids_to_run=['a'])",
                         repr(notification))
        self.assertNotEqual(notification, Notification(duration=0.5))


class ProgressReporterTestCase(unittest.TestCase):
    reporter_class = ProgressReporter

    def bisect(self, runner):
        stream = io.StringIO()
        reporter = self.reporter_class(stream)
        minimizer = ExampleMinimizer(runner, reporter)
        minimizer.find_minimal_repro()
        reporter.publish('bisect_repro_command', Notification(
            repro=minimizer.repro_command_for_currently_needed_ids()))
        return stream.getvalue()

    def test_progress_output(self):
        output = self.bisect(FakeBisectRunner(
            ['ex_1', 'ex_2', 'ex_3', 'ex_4', 'ex_5', 'ex_6', 'ex_7', 'ex_8'],
            ['ex_2'], {'ex_5': ['ex_4']}))
        self.assertIn("Bisect started using FakeBisectRunner\n", output)
        self.assertIn("Starting bisect with 2 failing examples and "
                      "6 non-failing examples.\n", output)
        self.assertIn("order-dependent", output)
        self.assertIn("Round 1: bisecting over non-failing examples ex_1 .. ex_8",
                      output)
        self.assertIn("Round 2: bisecting over non-failing examples ex_1 .. ex_4",
                      output)
        self.assertIn("Reduced necessary non-failing examples from 6 to 1", output)
        self.assertTrue(output.endswith(
            "The minimal reproduction command is:\n"
            "  python -m unittest ex_2 ex_4 ex_5\n"))

    def test_independent_failure_output(self):
        output = self.bisect(FakeBisectRunner(['ex_1', 'ex_2'], ['ex_2'], {}))
        self.assertIn("Starting bisect with 1 failing example and "
                      "1 non-failing example.\n", output)
        self.assertIn("do not require any non-failures to run first\n", output)
        self.assertNotIn("Round", output)

    def test_aborted(self):
        stream = io.StringIO()
        self.reporter_class(stream).publish(
            'bisect_aborted', Notification(repro='python -m unittest a'))
        self.assertIn("Bisect aborted!", stream.getvalue())
        self.assertIn("  python -m unittest a\n", stream.getvalue())


class DebugReporterTestCase(ProgressReporterTestCase):
    reporter_class = DebugReporter

    def test_shows_every_run(self):
        output = self.bisect(FakeBisectRunner(
            ['ex_1', 'ex_2', 'ex_3'], [], {'ex_3': ['ex_1']}))
        self.assertIn(" - Running: python -m unittest ex_3\n", output)
        self.assertIn(" - Running: python -m unittest ex_1 ex_3\n", output)
        self.assertIn(" - ex_3 depend on other examples\n", output)
        self.assertIn(" - Examples we can safely ignore (1):\n    - ex_2\n", output)


class ShellCommandTestCase(unittest.TestCase):

    def test_plain_ids(self):
        self.assertEqual("python -m unittest a.b c.d",
                         ShellCommand().repro_command_from(['a.b', 'c.d']))

    def test_quotes_ids(self):
        self.assertEqual("run 'spec/a b.py[1:2]' ok",
                         ShellCommand('run').repro_command_from(['spec/a b.py[1:2]', 'ok']))

    def test_no_ids(self):
        self.assertEqual("run", ShellCommand('run').repro_command_from([]))


def test_suite():
    return load_tests_from(ReporterDispatchTestCase,
                           ProgressReporterTestCase,
                           DebugReporterTestCase,
                           ShellCommandTestCase)


test_suite.__test__ = False  # collected by test.py, not by pytest


if __name__ == '__main__':
    print('to test use test.py %s' % __file__)
