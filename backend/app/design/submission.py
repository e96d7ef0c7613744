from collections.abc import Mapping

from app.design.catalog import DEFAULT_CATALOG, Catalog, MaterialRole, MaterialSelection, PatternId
from app.design.errors import ErrorCode, SubmissionError


def _find_role(
    selections: Mapping[str, MaterialSelection], catalog: Catalog, role: MaterialRole
) -> list[str]:
    return [key for key in sorted(selections) if catalog.plays_role(key, role)]


def check_submittable(
    selections: Mapping[str, MaterialSelection], catalog: Catalog = DEFAULT_CATALOG
) -> None:
    """Raise ``SubmissionError`` unless the selections may move to SUBMITTED.

    Rules are checked in order and the first failure is reported: a body paint
    selection must exist, a glass selection must exist, and every glass
    selection must use pattern ``NONE``.
    """
    if not _find_role(selections, catalog, MaterialRole.BODY_PAINT):
        raise SubmissionError(
            ErrorCode.MISSING_BODY_PAINT, "submission requires a Body Paint selection"
        )

    glass_keys = _find_role(selections, catalog, MaterialRole.GLASS)
    if not glass_keys:
        raise SubmissionError(ErrorCode.MISSING_GLASS, "submission requires a Glass selection")

    for key in glass_keys:
        pattern = selections[key].pattern_id
        token = pattern.value if isinstance(pattern, PatternId) else str(pattern)
        if token.strip().upper() != PatternId.NONE.value:
            raise SubmissionError(
                ErrorCode.GLASS_PATTERN_NOT_NONE,
                f"glass selection {key!r} must use patternId NONE before submission",
            )
