"""
Reader for CPMP instance files.

File format:
    line 1:            nlocations nclusters
    next nlocations:   one row of the distance matrix each
    next line:         nlocations demand values
    next line:         nlocations capacity values

All values are whitespace-separated integers. Extra tokens at the end of
a line are ignored; blank lines are skipped.
"""

import os
from typing import List, Tuple

from cpmpbp.problem.data import ProblemData


class ReaderError(ValueError):
    """Raised when an instance file is malformed or incomplete."""


def _leading_ints(tokens: List[str], count: int) -> List[int]:
    """Parse up to ``count`` leading integer tokens, stopping at the first non-integer."""
    values = []
    for tok in tokens[:count]:
        try:
            values.append(int(tok))
        except ValueError:
            break
    return values


def parse_instance(text: str, name: str = "cpmp") -> ProblemData:
    """
    Parse an instance from its text.

    Args:
        text: File contents
        name: Instance name

    Returns:
        The parsed ProblemData

    Raises:
        ReaderError: If the input is short or malformed
    """
    lines: List[Tuple[int, List[str]]] = [
        (lineno, raw.split())
        for lineno, raw in enumerate(text.splitlines(), start=1)
        if raw.strip()
    ]
    if not lines:
        raise ReaderError("empty instance")

    lineno, tokens = lines[0]
    header = _leading_ints(tokens, 2)
    if len(header) < 2:
        raise ReaderError(
            f"invalid input line {lineno}: only {len(header)} entries found, need 2"
        )
    n_locations, n_clusters = header
    if n_locations <= 0:
        raise ReaderError(f"invalid number of locations {n_locations} on line {lineno}")

    def read_row(pos: int, what: str) -> List[int]:
        if pos >= len(lines):
            raise ReaderError(f"unexpected end of input, expected {what}")
        row_lineno, row_tokens = lines[pos]
        row = _leading_ints(row_tokens, n_locations)
        if len(row) < n_locations:
            raise ReaderError(
                f"invalid input line {row_lineno}: too few {what} entries "
                f"({len(row)} of {n_locations})"
            )
        return row

    distances = []
    for k in range(n_locations):
        if 1 + k >= len(lines):
            raise ReaderError(
                f"distance matrix has only {k} rows ({n_locations} needed)"
            )
        distances.append(read_row(1 + k, "distance"))

    demands = read_row(1 + n_locations, "demand")
    capacities = read_row(2 + n_locations, "capacity")

    try:
        return ProblemData(distances, demands, capacities, n_clusters, name=name)
    except ValueError as e:
        raise ReaderError(str(e)) from e


def read_instance(path: str) -> ProblemData:
    """
    Read an instance file.

    Raises:
        OSError: If the file cannot be opened
        ReaderError: If the contents are malformed
    """
    with open(path, "r") as f:
        text = f.read()
    name = os.path.splitext(os.path.basename(path))[0]
    return parse_instance(text, name=name)
