"""
Problem data and instance reading for the capacitated p-median problem.
"""

from cpmpbp.problem.data import ProblemData
from cpmpbp.problem.reader import ReaderError, parse_instance, read_instance

__all__ = [
    "ProblemData",
    "ReaderError",
    "parse_instance",
    "read_instance",
]
