import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing_extensions import Self

from app.design.naming import name_mentions, resolve_material_key

MATERIAL_KEY_PATTERN = re.compile(r"^material_[1-9]\d*$")

BODY_PAINT_NEEDLES = ("body_paint", "bodypaint")
GLASS_NEEDLES = ("glass",)


class Finish(str, Enum):
    GLOSS = "GLOSS"
    MATTE = "MATTE"


class PatternId(str, Enum):
    NONE = "NONE"
    PATTERN_1 = "PATTERN_1"
    PATTERN_2 = "PATTERN_2"
    PATTERN_3 = "PATTERN_3"


class MaterialRole(str, Enum):
    BODY_PAINT = "BODY_PAINT"
    GLASS = "GLASS"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CatalogMaterial(CamelModel):
    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    detail: str = ""


class MaterialSelection(CamelModel):
    """A normalized, catalog-valid selection for one material."""

    model_config = ConfigDict(frozen=True)

    color_hex: str
    finish: Finish
    pattern_id: PatternId

    def to_record(self) -> dict[str, str]:
        return self.model_dump(mode="json", by_alias=True)


class Catalog(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    materials: tuple[CatalogMaterial, ...]
    allowed_finishes: tuple[str, ...] = tuple(f.value for f in Finish)
    allowed_pattern_ids: tuple[str, ...] = tuple(p.value for p in PatternId)
    body_paint_key: str | None = Field(default=None, exclude=True)
    glass_key: str | None = Field(default=None, exclude=True)

    @model_validator(mode="after")
    def _check_materials(self) -> Self:
        if not self.materials:
            raise ValueError("catalog must list at least one material")
        seen: set[str] = set()
        for material in self.materials:
            if not MATERIAL_KEY_PATTERN.match(material.key):
                raise ValueError(f"catalog key {material.key!r} is not material_<n>")
            if material.key in seen:
                raise ValueError(f"catalog key {material.key!r} is duplicated")
            seen.add(material.key)
        for role_key in (self.body_paint_key, self.glass_key):
            if role_key is not None and role_key not in seen:
                raise ValueError(f"designated key {role_key!r} is not in the catalog")
        return self

    @property
    def material_keys(self) -> frozenset[str]:
        return frozenset(m.key for m in self.materials)

    @property
    def names_by_key(self) -> dict[str, str]:
        return {m.key: m.name for m in self.materials}

    def get(self, key: str) -> CatalogMaterial | None:
        for material in self.materials:
            if material.key == key:
                return material
        return None

    def resolve_key(self, name: str) -> str | None:
        return resolve_material_key(name, self.names_by_key)

    def designated_key(self, role: MaterialRole) -> str | None:
        """The structural key for a role, falling back to the name heuristic."""
        if role is MaterialRole.BODY_PAINT:
            explicit, needles = self.body_paint_key, BODY_PAINT_NEEDLES
        else:
            explicit, needles = self.glass_key, GLASS_NEEDLES
        if explicit is not None:
            return explicit
        for material in self.materials:
            if name_mentions(material.name, needles):
                return material.key
        return None

    def plays_role(self, key: str, role: MaterialRole) -> bool:
        """True if ``key`` is the designated key for ``role`` OR its name looks like it.

        The structural key and the name heuristic are OR-combined; asset exports
        disagree on naming and either identification is enough.
        """
        if key == self.designated_key(role):
            return True
        needles = BODY_PAINT_NEEDLES if role is MaterialRole.BODY_PAINT else GLASS_NEEDLES
        if name_mentions(key, needles):
            return True
        material = self.get(key)
        return material is not None and name_mentions(material.name, needles)


DEFAULT_CATALOG = Catalog(
    id="tesla-cybertruck-low-poly",
    name="Tesla Cybertruck Low Poly",
    materials=(
        CatalogMaterial(
            key="material_1",
            name="Hooks, Hitch & Mud Guards",
            detail="Tow hitch cover, front hooks, and tire splash guards",
        ),
        CatalogMaterial(
            key="material_3",
            name="Glass Set",
            detail="Windshield, roof glass, and door glass",
        ),
        CatalogMaterial(
            key="material_5",
            name="Window & Door Frames",
            detail="Trim and surrounding frame pieces",
        ),
        CatalogMaterial(
            key="material_6",
            name="Cargo Bed",
            detail="Rear bed panel and inner bed walls",
        ),
        CatalogMaterial(
            key="material_7",
            name="Wheel Covers",
            detail="Wheel cover face and trims",
        ),
        CatalogMaterial(
            key="material_8",
            name="Tires",
            detail="Rubber tire material",
        ),
        CatalogMaterial(
            key="material_9",
            name="Body Paint",
            detail="Main Tesla body panels",
        ),
    ),
    body_paint_key="material_9",
    glass_key="material_3",
)


_FALLBACK_SELECTION = MaterialSelection(
    color_hex="#111317", finish=Finish.GLOSS, pattern_id=PatternId.NONE
)

_DEFAULT_SELECTIONS: dict[str, MaterialSelection] = {
    "material_1": MaterialSelection(color_hex="#8D1723", finish=Finish.MATTE, pattern_id=PatternId.NONE),
    "material_3": MaterialSelection(color_hex="#1A2330", finish=Finish.GLOSS, pattern_id=PatternId.NONE),
    "material_5": MaterialSelection(color_hex="#1C212A", finish=Finish.MATTE, pattern_id=PatternId.NONE),
    "material_6": MaterialSelection(color_hex="#242D38", finish=Finish.MATTE, pattern_id=PatternId.NONE),
    "material_7": MaterialSelection(color_hex="#3B4656", finish=Finish.GLOSS, pattern_id=PatternId.NONE),
    "material_8": MaterialSelection(color_hex="#141619", finish=Finish.MATTE, pattern_id=PatternId.NONE),
    "material_9": MaterialSelection(color_hex="#111317", finish=Finish.GLOSS, pattern_id=PatternId.NONE),
}


def default_selections(catalog: Catalog = DEFAULT_CATALOG) -> dict[str, MaterialSelection]:
    """Starting selections for a new design, one per catalog material."""
    return {
        material.key: _DEFAULT_SELECTIONS.get(material.key, _FALLBACK_SELECTION)
        for material in catalog.materials
    }
