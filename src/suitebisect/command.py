"""Rendering of reproduction commands."""

import shlex


class ShellCommand:
    """Builds the command line that runs a given list of example ids.

    The invocation token is used verbatim, the ids are quoted so that the
    result can be pasted into a POSIX shell::

        >>> ShellCommand('python -m unittest').repro_command_from(['a.T.test_x'])
        'python -m unittest a.T.test_x'
    """

    def __init__(self, invocation='python -m unittest'):
        self.invocation = invocation

    def repro_command_from(self, ids):
        parts = [self.invocation]
        parts.extend(shlex.quote(str(example_id)) for example_id in ids)
        return ' '.join(parts)

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__name__, self.invocation)
