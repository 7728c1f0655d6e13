"""
Identifier range parsing for multi-target commands.

Grammar: comma separated terms, each a single id ``N`` or an inclusive
range ``A-B``. For example ``"1-3,7,9-11"`` selects 1, 2, 3, 7, 9, 10, 11.
"""
import re
from typing import List, Set

from .errors import InvalidRangeError, ParseError
from .store import TaskStore

ALL_TARGET = "all"

NUMBER_PATTERN = re.compile(r'^[0-9]+$')

def _parse_number(text: str, term: str) -> int:
    text = text.strip()
    if not NUMBER_PATTERN.match(text):
        raise ParseError(f"Invalid task ID: '{term}'")
    return int(text)

def parse_ids(expr: str) -> List[int]:
    """
    Parse a target expression into unique ids in ascending order.

    Existence is not checked; unknown ids are left for the caller to report.
    """
    if expr is None or not expr.strip():
        raise ParseError("No task IDs provided")

    ids: Set[int] = set()
    for raw in expr.split(','):
        term = raw.strip()
        if not term:
            raise ParseError(f"Empty task ID in '{expr}'")

        if '-' in term:
            parts = term.split('-')
            if len(parts) != 2:
                raise ParseError(f"Invalid range format: '{term}'. Expected format: 'start-end'")
            start = _parse_number(parts[0], term)
            end = _parse_number(parts[1], term)
            if start > end:
                raise InvalidRangeError(start, end)
            ids.update(range(start, end + 1))
        else:
            ids.add(_parse_number(term, term))

    return sorted(ids)

def resolve_targets(store: TaskStore, expr: str) -> List[int]:
    """Resolve ``all`` to a snapshot of the store's ids, anything else via parse_ids."""
    if expr is not None and expr.strip().lower() == ALL_TARGET:
        return store.ids()
    return parse_ids(expr)
