"""
Lookup structures for tracking number verification

Two separate maps: an exact multimap over every record, and a prefix multimap
that only holds records of the courier whose labels carry an unreliable last
digit.
"""
import re
from typing import Dict, List, Sequence, Tuple

from config import PREFIX_MATCH_COURIER_MARKER
from models import ShipmentRecord

DIGITS = re.compile(r'^[0-9]+$')


def normalize_awb(value: str) -> str:
    return (value or '').strip().lower()


def numeric_prefix(value: str) -> str:
    """Value without its last character, or '' when that prefix is not all digits"""
    if len(value) <= 1:
        return ''
    prefix = value[:-1]
    return prefix if DIGITS.match(prefix) else ''


def is_prefix_courier(courier_partner: str) -> bool:
    return PREFIX_MATCH_COURIER_MARKER in (courier_partner or '').lower()


class MatchIndex:
    """Exact and courier-scoped prefix indices over a record list"""

    def __init__(self, records: Sequence[ShipmentRecord] = ()):
        self.exact: Dict[str, List[int]] = {}
        self.prefix: Dict[str, List[int]] = {}
        for position, record in enumerate(records):
            key = record.normalized_awb
            if not key:
                continue
            self.exact.setdefault(key, []).append(position)
            if is_prefix_courier(record.courier_partner):
                prefix = numeric_prefix(key)
                if prefix:
                    self.prefix.setdefault(prefix, []).append(position)

    def __len__(self) -> int:
        return len(self.exact)

    def match(self, value: str) -> Tuple[List[int], bool]:
        """
        Resolve an operator input to record positions.

        Returns:
            Tuple of (positions, matched_via_prefix)
        """
        key = normalize_awb(value)
        if not key:
            return [], False

        positions = self.exact.get(key)
        if positions:
            return list(positions), False

        prefix = numeric_prefix(key)
        if not prefix:
            return [], False

        # Last digit altered: compare the typed prefix with stored prefixes
        if prefix in self.prefix:
            return list(self.prefix[prefix]), True

        # Last digit omitted: the typed value is itself a stored prefix
        if DIGITS.match(key) and key in self.prefix:
            return list(self.prefix[key]), True

        return [], False
