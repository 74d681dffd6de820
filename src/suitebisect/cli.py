"""
suitebisect - find the minimal set of tests reproducing a failure.

Syntax: suitebisect [options] [pathname-regexp [test-regexp]]

The whole suite is run once.  If some tests fail, subsets of it are run
again until the smallest set of tests still reproducing every failure is
found, and a command running exactly that set is printed.

Options:
  -h                 print this help message
  -v                 verbose (show every subset as it is run)
  -q                 quiet (only print the final command)
  --basedir=DIR      directory to search for 'tests' packages (default: src)
  --invocation=CMD   command prefix of the reproduction command
                     (default: "python -m unittest")
  --timeout=SECONDS  kill a subset run after this many seconds
  --list-tests       list all selected test cases and exit

SUITEBISECT_INVOCATION and SUITEBISECT_TIMEOUT set the defaults of
--invocation and --timeout.
"""

import getopt
import logging
import os
import sys

from suitebisect import loader
from suitebisect.command import ShellCommand
from suitebisect.config import Options
from suitebisect.minimizer import BisectFailedError, ExampleMinimizer
from suitebisect.reporter import (
    DebugReporter, Notification, NullReporter, ProgressReporter)
from suitebisect.runner import ForkingRunner, RunnerError


def stderr(text):
    sys.stderr.write(text)
    sys.stderr.write("\n")


def parse_args(argv):
    """Returns an Options instance, or an exit status if there is nothing
    left to do.
    """
    try:
        cfg = Options.from_environ()
    except ValueError as e:
        stderr('%s: %s' % (argv[0], e))
        return 1
    cfg.basedir = os.path.abspath('src')

    try:
        opts, args = getopt.gnu_getopt(
            argv[1:], 'hvq',
            ['basedir=', 'invocation=', 'timeout=', 'list-tests'])
    except getopt.GetoptError as e:
        stderr('%s: %s' % (argv[0], e))
        stderr('run %s -h for help' % argv[0])
        return 1
    for k, v in opts:
        if k == '-h':
            print(__doc__)
            return 0
        elif k == '-v':
            cfg.verbosity += 1
            cfg.quiet = False
        elif k == '-q':
            cfg.verbosity = 0
            cfg.quiet = True
        elif k == '--basedir':
            cfg.basedir = os.path.abspath(v)
        elif k == '--invocation':
            cfg.invocation = v
        elif k == '--timeout':
            try:
                cfg.timeout = float(v)
            except ValueError:
                stderr('%s: invalid timeout: %s' % (argv[0], v))
                stderr('run %s -h for help' % argv[0])
                return 1
        elif k == '--list-tests':
            cfg.list_tests = True
            cfg.run_bisect = False
    if args:
        cfg.pathname_regex = args[0]
    if len(args) > 1:
        cfg.test_regex = args[1]
    if len(args) > 2:
        stderr('%s: too many arguments: %s' % (argv[0], args[2]))
        stderr('run %s -h for help' % argv[0])
        return 1
    return cfg


def make_reporter(cfg, stream=None):
    if cfg.quiet:
        return NullReporter()
    elif cfg.verbosity:
        return DebugReporter(stream)
    return ProgressReporter(stream)


def bisect(cfg, test_cases, reporter, out=None):
    """Bisects the given test cases, returns the exit status."""
    if out is None:
        out = sys.stdout
    runner = ForkingRunner(test_cases, timeout=cfg.timeout)
    minimizer = ExampleMinimizer(
        runner, reporter, shell_command=ShellCommand(cfg.invocation))
    try:
        minimizer.find_minimal_repro()
    except BisectFailedError as e:
        stderr(str(e).strip())
        return 1
    except RunnerError as e:
        stderr('Bisect failed: %s' % e)
        reporter.publish('bisect_aborted', Notification(
            repro=minimizer.repro_command_for_currently_needed_ids()))
        return 1
    except KeyboardInterrupt:
        reporter.publish('bisect_aborted', Notification(
            repro=minimizer.repro_command_for_currently_needed_ids()))
        return 130

    repro = minimizer.repro_command_for_currently_needed_ids()
    reporter.publish('bisect_repro_command', Notification(repro=repro))
    if isinstance(reporter, NullReporter):
        out.write(repro + '\n')
    return 0


def main(argv=None):
    """Main program."""
    if argv is None:
        argv = sys.argv
    cfg = parse_args(argv)
    if not isinstance(cfg, Options):
        return cfg

    logging.basicConfig()
    logging.getLogger('suitebisect').setLevel(
        logging.DEBUG if cfg.verbosity > 1 else logging.WARNING)

    # Set up the python path
    if cfg.basedir not in sys.path:
        sys.path.insert(0, cfg.basedir)

    test_cases = loader.find_tests(cfg)
    if cfg.list_tests:
        print("\n".join([test.id() for test in test_cases]))
    if not cfg.run_bisect:
        return 0
    return bisect(cfg, test_cases, make_reporter(cfg))
