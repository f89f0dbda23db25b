"""Product variant selections (color, size, material...).

A variant is stored as JSON text on cart and order lines. Two selections are
the same variant when their non-empty attributes match, regardless of key
order or blank values.
"""

import json

VARIANT_ATTRIBUTES = ("color", "size", "material")


def canonical_variant(variant: dict | None) -> tuple[tuple[str, str], ...]:
    """Sorted tuple of the non-empty (attribute, value) pairs."""
    if not variant:
        return ()
    return tuple(
        sorted((str(key), str(value).strip()) for key, value in variant.items() if value is not None and str(value).strip())
    )


def variant_to_json(variant: dict | None) -> str:
    return json.dumps(dict(canonical_variant(variant)))


def variant_from_json(value: str | None) -> dict:
    if not value:
        return {}
    if isinstance(value, dict):
        return dict(canonical_variant(value))
    try:
        data = json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return {}
    return data if isinstance(data, dict) else {}


def same_variant(left: dict | str | None, right: dict | str | None) -> bool:
    if isinstance(left, str) or left is None:
        left = variant_from_json(left)
    if isinstance(right, str) or right is None:
        right = variant_from_json(right)
    return canonical_variant(left) == canonical_variant(right)
