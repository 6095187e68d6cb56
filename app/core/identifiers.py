"""Canonical id handling shared by orientation, pair keys and projections."""

from uuid import UUID


def canonical_id(value: object) -> str:
    """
    Return the single string form used for every id comparison.

    Integers, digit strings (with surrounding whitespace or leading zeros)
    and UUIDs all normalize to the same representation, so 12, "12" and
    " 012 " compare equal. None normalizes to "".
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        raise TypeError("Boolean is not a valid record id")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, UUID):
        return str(value)
    text = str(value).strip()
    if text.isdigit():
        return str(int(text))
    return text.lower()


def same_id(left: object, right: object) -> bool:
    """True when both ids are present and share a canonical form."""
    left_id = canonical_id(left)
    return bool(left_id) and left_id == canonical_id(right)


def pair_key(person_a_id: object, person_b_id: object) -> tuple[int, int]:
    """Ordered (low, high) key for the unordered person pair."""
    a = int(canonical_id(person_a_id))
    b = int(canonical_id(person_b_id))
    return (a, b) if a <= b else (b, a)
