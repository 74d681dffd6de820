"""
Progress reporting for bisect runs.

The minimizer publishes a fixed set of events (see EVENTS).  A reporter is
any BisectReporter subclass; it overrides the handlers for the events it
cares about and inherits a no-op for everything else.
"""

import sys


EVENTS = (
    'bisect_starting',
    'bisect_original_run_start',
    'bisect_original_run_complete',
    'bisect_dependency_check_started',
    'bisect_dependency_check_passed',
    'bisect_dependency_check_failed',
    'bisect_round_started',
    'bisect_round_ignoring_ids',
    'bisect_round_detected_multiple_culprits',
    'bisect_individual_run_start',
    'bisect_individual_run_complete',
    'bisect_complete',
    'bisect_repro_command',
    'bisect_aborted',
)


class Notification:
    """Payload of a published event.  Fields are plain attributes.
    """
    def __init__(self, **fields):
        self.__dict__.update(fields)

    def __eq__(self, other):
        return (isinstance(other, Notification) and
                self.__dict__ == other.__dict__)

    def __repr__(self):
        fields = ', '.join('%s=%r' % item for item in sorted(self.__dict__.items()))
        return 'Notification(%s)' % fields


class BisectReporter:
    """Base class of all reporters.  Every handler is a no-op.
    """

    def publish(self, event, notification=None):
        if event not in EVENTS:
            raise ValueError('unknown bisect event: %r' % (event,))
        if notification is None:
            notification = Notification()
        getattr(self, event)(notification)

    def bisect_starting(self, notification):
        pass

    def bisect_original_run_start(self, notification):
        pass

    def bisect_original_run_complete(self, notification):
        pass

    def bisect_dependency_check_started(self, notification):
        pass

    def bisect_dependency_check_passed(self, notification):
        pass

    def bisect_dependency_check_failed(self, notification):
        pass

    def bisect_round_started(self, notification):
        pass

    def bisect_round_ignoring_ids(self, notification):
        pass

    def bisect_round_detected_multiple_culprits(self, notification):
        pass

    def bisect_individual_run_start(self, notification):
        pass

    def bisect_individual_run_complete(self, notification):
        pass

    def bisect_complete(self, notification):
        pass

    def bisect_repro_command(self, notification):
        pass

    def bisect_aborted(self, notification):
        pass


class NullReporter(BisectReporter):
    """Ignores everything."""


def _pluralize(count, word):
    return "%d %s%s" % (count, word, count != 1 and "s" or "")


class ProgressReporter(BisectReporter):
    """Terse human readable progress, one line per bisect step.
    """

    def __init__(self, stream=None):
        self.stream = stream if stream is not None else sys.stderr
        self.round_count = 0

    def write(self, text):
        self.stream.write(text)
        self.stream.flush()

    def writeln(self, line=''):
        self.write(line + '\n')

    def bisect_starting(self, notification):
        self.writeln("Bisect started using %s" % notification.runner)

    def bisect_original_run_start(self, notification):
        self.write("Running suite to find failures...")

    def bisect_original_run_complete(self, notification):
        self.writeln(" (%.3fs)" % notification.duration)
        self.writeln("Starting bisect with %s and %s." % (
            _pluralize(len(notification.failed_example_ids), "failing example"),
            _pluralize(len(notification.non_failing_example_ids),
                       "non-failing example")))

    def bisect_dependency_check_started(self, notification):
        self.write("Checking that failure(s) are order-dependent..")

    def bisect_dependency_check_passed(self, notification):
        self.writeln(" failure appears to be order-dependent")

    def bisect_dependency_check_failed(self, notification):
        self.writeln(" failure(s) do not require any non-failures to run first")

    def bisect_round_started(self, notification):
        self.round_count += 1
        first, last = notification.candidate_range
        self.write("Round %d: bisecting over non-failing examples %s .. %s"
                   % (self.round_count, first, last))

    def bisect_individual_run_start(self, notification):
        self.write(".")

    def bisect_round_ignoring_ids(self, notification):
        self.writeln(" ignoring %s (%.3fs)" % (
            _pluralize(len(notification.ids_to_ignore), "example"),
            notification.duration))

    def bisect_round_detected_multiple_culprits(self, notification):
        self.writeln(" multiple culprits detected - splitting candidates (%.3fs)"
                     % notification.duration)

    def bisect_complete(self, notification):
        self.writeln("Bisect complete! Reduced necessary non-failing examples "
                     "from %d to %d in %.3fs." % (
                         notification.original_non_failing_count,
                         notification.remaining_count,
                         notification.duration))

    def bisect_repro_command(self, notification):
        self.writeln()
        self.writeln("The minimal reproduction command is:")
        self.writeln("  %s" % notification.repro)

    def bisect_aborted(self, notification):
        self.writeln()
        self.writeln()
        self.writeln("Bisect aborted!")
        self.writeln()
        self.writeln("The examples confirmed as needed so far can be run with:")
        self.writeln("  %s" % notification.repro)


class DebugReporter(ProgressReporter):
    """Verbose variant that shows every subset as it is being run.
    """

    def bisect_original_run_complete(self, notification):
        ProgressReporter.bisect_original_run_complete(self, notification)
        self.writeln(" - Failing examples (%d):" % len(notification.failed_example_ids))
        for example_id in notification.failed_example_ids:
            self.writeln("    - %s" % example_id)
        self.writeln(" - Non-failing examples (%d):"
                     % len(notification.non_failing_example_ids))
        for example_id in notification.non_failing_example_ids:
            self.writeln("    - %s" % example_id)

    def bisect_dependency_check_started(self, notification):
        self.writeln("Checking that failure(s) are order-dependent...")

    def bisect_dependency_check_passed(self, notification):
        self.writeln(" - %s depend on other examples" % ", ".join(
            notification.dependent_ids))

    def bisect_round_started(self, notification):
        ProgressReporter.bisect_round_started(self, notification)
        self.writeln(" (%d candidates)" % notification.candidates_count)

    def bisect_individual_run_start(self, notification):
        self.writeln(" - Running: %s" % notification.command)

    def bisect_individual_run_complete(self, notification):
        self.writeln("    - %s failed (%.3fs)" % (
            _pluralize(len(notification.failed_example_ids), "example"),
            notification.duration))

    def bisect_round_ignoring_ids(self, notification):
        self.writeln(" - Examples we can safely ignore (%d):"
                     % len(notification.ids_to_ignore))
        for example_id in notification.ids_to_ignore:
            self.writeln("    - %s" % example_id)
        self.writeln(" - Remaining non-failing examples (%d):"
                     % len(notification.remaining_ids))
        for example_id in notification.remaining_ids:
            self.writeln("    - %s" % example_id)

    def bisect_round_detected_multiple_culprits(self, notification):
        self.writeln(" - Multiple culprits detected - splitting candidates")
