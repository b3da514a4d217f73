"""
Checked Policy Properties

A policy proof lists the guarantees it checked as compact strings such as
"MaxLeverage(5)" or 'AllowedPairs(["BTC-USDT"])'. They are parsed once into
ParsedProperty values and every query matches on the full identifier, so
"MaxLeverage" never matches "MaxLeverageOverride(3)".
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from zcp.core.attestation import Attestation

logger = logging.getLogger(__name__)

MAX_LEVERAGE = "MaxLeverage"
MAX_ORDER_SIZE = "MaxOrderSize"
ALLOWED_PAIRS = "AllowedPairs"

_PROPERTY_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)(?:\((.*)\))?", re.DOTALL)
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class ParsedProperty:
    """A checked property split into identifier and raw argument text."""
    name: str
    args: Optional[str] = None

    def __str__(self) -> str:
        if self.args is None:
            return self.name
        return f"{self.name}({self.args})"


def parse_property(text: str) -> ParsedProperty:
    """
    Parse "Name" or "Name(args)".

    Strings outside that grammar are not rejected: the whole stripped text
    becomes the name, so the entry can only ever match itself.
    """
    text = str(text).strip()
    match = _PROPERTY_RE.fullmatch(text)
    if match is None:
        return ParsedProperty(name=text)
    return ParsedProperty(name=match.group(1), args=match.group(2))


def parse_properties(attestation: Attestation) -> List[ParsedProperty]:
    """All checked properties of the attestation's proof, in order."""
    proof = getattr(attestation, "policy_proof", None)
    if proof is None:
        return []
    return [parse_property(p) for p in proof.checked_properties]


def find_property(attestation: Attestation, name: str) -> Optional[ParsedProperty]:
    """First checked property whose identifier is exactly `name`."""
    for prop in parse_properties(attestation):
        if prop.name == name:
            return prop
    return None


def has_property(attestation: Attestation, name: str) -> bool:
    return find_property(attestation, name) is not None


def get_int_property(attestation: Attestation, name: str) -> Optional[int]:
    """
    Integer argument of a numeric property such as MaxOrderSize(10000).

    Returns None when the property is absent or its argument is not a
    plain base-10 integer.
    """
    prop = find_property(attestation, name)
    if prop is None or prop.args is None:
        return None
    raw = prop.args.strip()
    if not _INTEGER_RE.fullmatch(raw):
        logger.debug("Property %s has non-integer argument", name)
        return None
    try:
        return int(raw)
    except ValueError:
        logger.debug("Property %s has an oversized integer argument", name)
        return None


def get_max_leverage(attestation: Attestation) -> Optional[int]:
    return get_int_property(attestation, MAX_LEVERAGE)


def get_allowed_pairs(attestation: Attestation) -> Optional[Tuple[str, ...]]:
    """
    Trading pairs declared by AllowedPairs(["BTC-USDT", ...]).

    Returns None when the property is absent or the argument is not a JSON
    list of strings.
    """
    prop = find_property(attestation, ALLOWED_PAIRS)
    if prop is None or prop.args is None:
        return None
    try:
        pairs = json.loads(prop.args)
    except (ValueError, RecursionError):
        logger.debug("AllowedPairs argument is not valid JSON")
        return None
    if not isinstance(pairs, list) or not all(isinstance(p, str) for p in pairs):
        return None
    return tuple(pairs)
