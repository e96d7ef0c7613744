"""Selection validation against the material catalog.

``validate_selections`` is pure: it never touches storage and never mutates
its input. It does not stop at the first bad key: every problem across every
material is collected into one ``SelectionValidationError``. Keys are checked
in sorted order so the issue list is deterministic.
"""

import re
from collections.abc import Mapping
from typing import Any

from app.design.catalog import (
    DEFAULT_CATALOG,
    CamelModel,
    Catalog,
    Finish,
    MaterialSelection,
    PatternId,
)
from app.design.errors import ErrorCode, ErrorIssue, SelectionValidationError

HEX_COLOR = re.compile(r"^#[0-9A-F]{6}$")


class RawSelection(CamelModel):
    """Selection exactly as a client sent it; nothing is trusted yet."""

    color_hex: str | None = None
    finish: str | None = None
    pattern_id: str | None = None


def normalize_color_hex(value: str | None) -> str | None:
    """Trim, uppercase and ``#``-prefix a color; ``None`` if it is not ``#RRGGBB``."""
    if value is None:
        return None
    color = value.strip().upper()
    if not color.startswith("#"):
        color = f"#{color}"
    return color if HEX_COLOR.match(color) else None


def _normalize_enum_token(value: str | None) -> str:
    return (value or "").strip().upper()


def _coerce_raw(value: Any) -> RawSelection:
    if isinstance(value, RawSelection):
        return value
    if isinstance(value, MaterialSelection):
        return RawSelection(
            color_hex=value.color_hex,
            finish=value.finish.value,
            pattern_id=value.pattern_id.value,
        )
    if not isinstance(value, Mapping):
        return RawSelection()
    # Non-string fields are treated as missing so each one gets its own issue
    fields: dict[str, str | None] = {}
    for name, field in RawSelection.model_fields.items():
        item = value.get(field.alias, value.get(name))
        fields[name] = item if isinstance(item, str) else None
    return RawSelection(**fields)


def validate_selections(
    raw_selections: Mapping[str, Any], catalog: Catalog = DEFAULT_CATALOG
) -> dict[str, MaterialSelection]:
    if not isinstance(raw_selections, Mapping) or not raw_selections:
        raise SelectionValidationError(
            [
                ErrorIssue(
                    code=ErrorCode.EMPTY_SELECTIONS,
                    message="selections must map at least one material key to a selection",
                )
            ]
        )

    known_keys = catalog.material_keys
    allowed_finishes = set(catalog.allowed_finishes)
    allowed_patterns = set(catalog.allowed_pattern_ids)

    issues: list[ErrorIssue] = []
    validated: dict[str, MaterialSelection] = {}

    for key in sorted(raw_selections):
        if key not in known_keys:
            issues.append(
                ErrorIssue(
                    code=ErrorCode.UNKNOWN_MATERIAL_KEY,
                    message=f"material key {key!r} is not allowed",
                    material_key=key,
                )
            )
            continue

        raw = _coerce_raw(raw_selections[key])

        key_issues: list[ErrorIssue] = []
        color = normalize_color_hex(raw.color_hex)
        if color is None:
            key_issues.append(
                ErrorIssue(
                    code=ErrorCode.INVALID_COLOR,
                    message=f"material {key!r} has invalid colorHex",
                    material_key=key,
                )
            )
        finish = _normalize_enum_token(raw.finish)
        if finish not in allowed_finishes:
            key_issues.append(
                ErrorIssue(
                    code=ErrorCode.INVALID_FINISH,
                    message=f"material {key!r} has invalid finish",
                    material_key=key,
                )
            )
        pattern_id = _normalize_enum_token(raw.pattern_id)
        if pattern_id not in allowed_patterns:
            key_issues.append(
                ErrorIssue(
                    code=ErrorCode.INVALID_PATTERN,
                    message=f"material {key!r} has invalid patternId",
                    material_key=key,
                )
            )

        if key_issues:
            issues.extend(key_issues)
            continue

        validated[key] = MaterialSelection(
            color_hex=color,
            finish=Finish(finish),
            pattern_id=PatternId(pattern_id),
        )

    if issues:
        raise SelectionValidationError(issues)
    return validated


def selections_to_record(selections: Mapping[str, MaterialSelection]) -> dict[str, dict[str, str]]:
    """JSON-ready mapping stored in the ``design.selections`` column."""
    return {key: selection.to_record() for key, selection in sorted(selections.items())}


def selections_from_record(record: Mapping[str, Any]) -> dict[str, MaterialSelection]:
    return {key: MaterialSelection.model_validate(value) for key, value in record.items()}
