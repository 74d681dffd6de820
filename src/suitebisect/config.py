"""Configurable properties of a bisect run."""

import os


def env_option(name, default=None):
    value = os.environ.get('SUITEBISECT_' + name, '').strip()
    return value or default


class Options:
    """Configurable properties of the bisect runner."""

    # test location
    basedir = ''                # base directory for tests, must be absolute
    follow_symlinks = True      # should symlinks to subdirectories be
                                # followed? (may cause loops)

    # test filtering
    pathname_regex = ''         # regexp for filtering filenames
    test_regex = ''             # regexp for filtering test cases

    # actions to take
    list_tests = False          # --list-tests
    run_bisect = True           # bisect (disabled by --list-tests)

    # output verbosity
    verbosity = 0               # verbosity level (-v)
    quiet = False               # do not report progress (-q)

    # running subsets
    invocation = 'python -m unittest'   # prefix of the repro command
    timeout = None              # seconds a single subset may run

    @classmethod
    def from_environ(cls):
        """Return a new Options instance with SUITEBISECT_* overrides applied.
        """
        cfg = cls()
        cfg.invocation = env_option('INVOCATION', cfg.invocation)
        timeout = env_option('TIMEOUT')
        if timeout is not None:
            try:
                cfg.timeout = float(timeout)
            except ValueError:
                raise ValueError(
                    'invalid SUITEBISECT_TIMEOUT: %s' % timeout) from None
        return cfg
