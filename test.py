#!/usr/bin/env python
"""
suitebisect test runner.

Syntax: test.py [options] [pathname-regexp [test-regexp]]

Test cases are located in the directory tree starting at the 'src'
directory next to this script, in subdirectories named 'tests', in Python
modules named 'test*.py' that provide a test_suite() function.  They are
then filtered according to pathname and test regexes.

A leading "!" in a regexp is stripped and negates the regexp.  Pathname
regexp is applied to the whole path (package/package/module.py). Test regexp
is applied to a full test id (package.package.module.class.test_method).

Options:
  -h            print this help message
  -v            verbose (print dots for each test run)
  -vv           very verbose (print test names)
  -q            quiet (do not print anything on success)
  --list-files  list all selected test files
  --list-tests  list all selected test cases
"""

import getopt
import logging
import os
import sys
import unittest


def stderr(text):
    sys.stderr.write(text)
    sys.stderr.write("\n")


def main(argv):
    """Main program."""
    basedir = os.path.abspath(os.path.join(os.path.dirname(argv[0]), 'src'))
    sys.path.insert(0, basedir)

    from suitebisect import loader
    from suitebisect.config import Options

    cfg = Options()
    cfg.basedir = basedir
    list_files = False
    run_tests = True

    try:
        opts, args = getopt.gnu_getopt(argv[1:], 'hvq',
                                       ['list-files', 'list-tests'])
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
        elif k == '--list-files':
            list_files = True
            run_tests = False
        elif k == '--list-tests':
            cfg.list_tests = True
            run_tests = False
    if args:
        cfg.pathname_regex = args[0]
    if len(args) > 1:
        cfg.test_regex = args[1]
    if len(args) > 2:
        stderr('%s: too many arguments: %s' % (argv[0], args[2]))
        stderr('run %s -h for help' % argv[0])
        return 1

    # Configure the logging module
    logging.basicConfig()
    logging.root.setLevel(logging.CRITICAL)

    test_files = loader.get_test_files(cfg)
    if list_files:
        baselen = len(cfg.basedir) + 1
        print("\n".join([fn[baselen:] for fn in test_files]))
    test_cases = loader.get_test_cases(test_files, cfg)
    if cfg.list_tests:
        print("\n".join([test.id() for test in test_cases]))
    if not run_tests:
        return 0

    suite = unittest.TestSuite()
    suite.addTests(test_cases)
    verbosity = 0 if cfg.quiet else cfg.verbosity + 1
    result = unittest.TextTestRunner(verbosity=verbosity).run(suite)
    return 0 if result.wasSuccessful() else 1


if __name__ == '__main__':
    exitcode = main(sys.argv)
    sys.exit(exitcode)
