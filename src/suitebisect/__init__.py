"""Minimal reproduction of order-dependent test failures."""

__version__ = "1.0.0"

from suitebisect.minimizer import BisectFailedError, ExampleMinimizer
from suitebisect.runner import ForkingRunner, RunResults, RunnerError
