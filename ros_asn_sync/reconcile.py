"""Work out which address-list entries to remove and which to add."""

from collections import Counter, namedtuple

Diff = namedtuple("Diff", ["to_remove", "to_add"])


def missing_from(items, other):
    """Every element of ``items`` that appears nowhere in ``other``.

    Order and duplicates of ``items`` are kept: two copies of a value that
    is absent from ``other`` both come back.
    """
    present = Counter(other)
    return [item for item in items if not present[item]]


def diff(current, desired):
    """Diff the device's tagged entries against the cached prefixes.

    ``to_remove`` follows ``current`` order, ``to_add`` follows ``desired``.
    """
    current = list(current)
    desired = list(desired)
    return Diff(
        to_remove=missing_from(current, desired),
        to_add=missing_from(desired, current),
    )
