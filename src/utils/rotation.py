"""Address rotation for receiving Lightning addresses.

Picks which of a merchant's addresses services the next payment. Selection is
weighted-random favoring the least recently used address: after sorting
candidates by last use (never used first), the candidate at rank ``i`` of
``N`` gets weight ``N - i``. Recently used addresses stay eligible, so none
starves, while the pick is less predictable than round-robin.

The selector is pure; callers record the returned index in the usage map.
"""

import logging
import random
from collections.abc import Mapping, Sequence
from typing import NamedTuple

from src.core.exceptions import NoAddressesAvailable

logger = logging.getLogger(__name__)


class SelectedAddress(NamedTuple):
    """Address chosen for a payment and its rotation slot."""

    address: str
    account_index: int


def select_rotation_address(
    addresses: Sequence[str],
    usage: Mapping[int, int],
    rotation_enabled: bool = True,
    rotation_count: int | None = None,
    rng: random.Random | None = None,
) -> SelectedAddress:
    """Select the receiving address for the next payment.

    Args:
        addresses: Ordered receiving addresses (index 0 is primary)
        usage: account_index -> last used epoch millis
        rotation_enabled: When False the primary address is always used
        rotation_count: Only the first ``rotation_count`` indices rotate (0/None = all)
        rng: Random source, defaults to the module-level generator

    Returns:
        SelectedAddress(address, account_index)

    Raises:
        NoAddressesAvailable: If ``addresses`` is empty
    """
    if not addresses:
        raise NoAddressesAvailable()

    primary = SelectedAddress(addresses[0], 0)
    if not rotation_enabled or len(addresses) < 2:
        return primary

    candidates = [
        SelectedAddress(address, index) for index, address in enumerate(addresses) if address
    ]
    if rotation_count:
        candidates = [c for c in candidates if c.account_index < rotation_count]

    if not candidates:
        logger.warning(
            f"No rotation candidates for rotation_count={rotation_count}, "
            "falling back to primary address"
        )
        return primary

    if len(candidates) == 1:
        return candidates[0]

    # Least recent first; stable sort keeps address order for ties
    ordered = sorted(candidates, key=lambda c: usage.get(c.account_index, 0))
    count = len(ordered)
    weights = [count - rank for rank in range(count)]
    total_weight = sum(weights)

    cursor = (rng or random).random() * total_weight
    for candidate, weight in zip(ordered, weights, strict=True):
        cursor -= weight
        if cursor <= 0:
            return candidate

    return ordered[0]


def parse_usage(raw: Mapping[str, int] | None) -> dict[int, int]:
    """Convert a stored usage map (JSON string keys) to int keys."""
    if not raw:
        return {}
    return {int(index): int(last_used) for index, last_used in raw.items()}
