"""Name-to-canonical-key resolution for material names.

3D asset exports name their materials inconsistently ("Body Paint",
"body-paint", "Material.009", "material_9"). Names are first run through an
ordered pipeline of small transforms, then looked up against the catalog.
Each transform is a plain function so the pipeline can be tested step by step.
"""

import re
from collections.abc import Callable, Iterable, Mapping

NameTransform = Callable[[str], str]

_SEPARATORS = re.compile(r"[\s\-.]+")
_REPEATED_UNDERSCORES = re.compile(r"_{2,}")
_MATERIAL_NUMBER = re.compile(r"material[\s_.-]?(\d+)", re.IGNORECASE)


def strip_whitespace(value: str) -> str:
    return value.strip()


def lowercase(value: str) -> str:
    return value.lower()


def separators_to_underscores(value: str) -> str:
    return _SEPARATORS.sub("_", value)


def collapse_underscores(value: str) -> str:
    return _REPEATED_UNDERSCORES.sub("_", value)


def trim_underscores(value: str) -> str:
    return value.strip("_")


NORMALIZATION_PIPELINE: tuple[NameTransform, ...] = (
    strip_whitespace,
    lowercase,
    separators_to_underscores,
    collapse_underscores,
    trim_underscores,
)


def normalize_material_name(
    value: str, pipeline: Iterable[NameTransform] = NORMALIZATION_PIPELINE
) -> str:
    for transform in pipeline:
        value = transform(value)
    return value


def material_key_from_number(name: str) -> str | None:
    """Recover ``material_<n>`` from names such as ``Material.009``."""
    match = _MATERIAL_NUMBER.search(name.strip())
    if not match:
        return None
    number = int(match.group(1))
    if number <= 0:
        return None
    return f"material_{number}"


def build_name_index(names_by_key: Mapping[str, str]) -> dict[str, str]:
    """Lookup table from normalized display name to canonical key."""
    index: dict[str, str] = {}
    for key, name in names_by_key.items():
        index.setdefault(normalize_material_name(name), key)
    return index


def resolve_material_key(
    name: str, names_by_key: Mapping[str, str]
) -> str | None:
    """Map a free-text material name to a canonical catalog key.

    Tried in order: the exact key, the ``material<sep><n>`` pattern, then an
    equality match on the normalized display name. Returns ``None`` when
    nothing in ``names_by_key`` matches.
    """
    if name in names_by_key:
        return name

    numbered = material_key_from_number(name)
    if numbered is not None:
        return numbered if numbered in names_by_key else None

    return build_name_index(names_by_key).get(normalize_material_name(name))


def name_mentions(value: str, needles: Iterable[str]) -> bool:
    normalized = normalize_material_name(value)
    return any(needle in normalized for needle in needles)
