import os
import sys

if sys.version_info[:2] < (3, 8):
    print("This suitebisect version requires Python 3.8 or later.")
    sys.exit(1)

from setuptools import setup

# make sure versioninfo is found in the project directory
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import versioninfo

suitebisect_version = versioninfo.version()
print("Building suitebisect version %s." % suitebisect_version)


extra_options = {}
extra_options['zip_safe'] = False
extra_options['python_requires'] = '>=3.8'
extra_options['extras_require'] = {
    'test': ['pytest'],
}

extra_options['package_dir'] = {
        '': 'src'
    }

extra_options['packages'] = [
        'suitebisect', 'suitebisect.tests'
    ]

extra_options['entry_points'] = {
    'console_scripts': [
        'suitebisect = suitebisect.cli:main',
    ],
}

setup(
    name = "suitebisect",
    version = suitebisect_version,
    author="suitebisect dev team",
    license="BSD",
    description=(
        "Find the minimal set of tests that reproduces an"
        " order-dependent test failure."
    ),
    long_description=(("""\
suitebisect runs a unittest suite, and if some of its tests fail, runs
subsets of it again until it has found the smallest set of tests that
still reproduces every failure.  This isolates failures that only happen
when other tests ran first, e.g. because of leaked global state.

Usage::

    python -m suitebisect [options] [pathname-regexp [test-regexp]]

The result is a command like ``python -m unittest pkg.tests.test_a.T.test_x
pkg.tests.test_b.T.test_y`` that reproduces the failure directly.

""") + versioninfo.changes()),
    classifiers=[
        versioninfo.dev_status(),
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Programming Language :: Python :: 3',
        'Operating System :: POSIX',
        'Topic :: Software Development :: Testing',
    ],

    **extra_options
)
