"""
Finding the examples of a suite.

Test cases are located in the directory tree starting at ``cfg.basedir``,
in packages named 'tests', in Python modules named 'test*.py'.  Each such
module provides a ``test_suite()`` function returning a unittest suite.
The collected cases are filtered according to pathname and test regexes.

A leading "!" in a regexp is stripped and negates the regexp.  Pathname
regexp is applied to the whole path (package/package/module.py). Test regexp
is applied to a full test id (package.package.module.class.test_method).
"""

import importlib
import logging
import os
import re
import unittest

logger = logging.getLogger(__name__)


def compile_matcher(regex):
    """Returns a function that takes one argument and returns True or False.

    Regex is a regular expression.  Empty regex matches everything.  If the
    regex starts with "!", the meaning of it is reversed.
    """
    if not regex:
        return lambda x: True
    elif regex == '!':
        return lambda x: False
    elif regex.startswith('!'):
        rx = re.compile(regex[1:])
        return lambda x: rx.search(x) is None
    else:
        rx = re.compile(regex)
        return lambda x: rx.search(x) is not None


def get_test_files(cfg):
    """Returns a sorted list of test module filenames below cfg.basedir."""
    matcher = compile_matcher(cfg.pathname_regex)
    baselen = len(cfg.basedir) + 1
    results = []
    for dirpath, dirnames, filenames in os.walk(
            cfg.basedir, followlinks=cfg.follow_symlinks):
        dirnames.sort()
        if os.path.basename(dirpath) != 'tests':
            continue
        if '__init__.py' not in filenames:
            logger.warning("%s is not a package", dirpath)
            continue
        for filename in filenames:
            if filename.startswith('test') and filename.endswith('.py'):
                path = os.path.join(dirpath, filename)
                if matcher(path[baselen:]):
                    results.append(path)
    results.sort()
    return results


def module_name(filename, cfg):
    """Returns the dotted module name of a file below cfg.basedir."""
    filename = os.path.splitext(filename)[0]
    modname = filename[len(cfg.basedir):].replace(os.path.sep, '.')
    return modname.lstrip('.')


def import_module(filename, cfg):
    """Imports and returns a module."""
    return importlib.import_module(module_name(filename, cfg))


def filter_testsuite(suite, matcher):
    """Returns a flattened list of test cases that match the given matcher."""
    if not isinstance(suite, unittest.TestSuite):
        raise TypeError('not a TestSuite', suite)
    results = []
    for test in suite:
        if isinstance(test, unittest.TestCase):
            if matcher(test.id()):
                results.append(test)
        else:
            results.extend(filter_testsuite(test, matcher))
    return results


def get_test_cases(test_files, cfg):
    """Returns a list of test cases from a given list of test modules."""
    matcher = compile_matcher(cfg.test_regex)
    results = []
    for filename in test_files:
        module = import_module(filename, cfg)
        make_suite = getattr(module, 'test_suite', None)
        if make_suite is None:
            logger.warning("%s has no test_suite() function", filename)
            continue
        test_suite = make_suite()
        if test_suite is None:
            continue
        results.extend(filter_testsuite(test_suite, matcher))
    return results


def find_tests(cfg):
    """Returns the filtered test cases below cfg.basedir in run order."""
    return get_test_cases(get_test_files(cfg), cfg)
