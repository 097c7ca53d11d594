# sanger_viewer/model/variant.py

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .coordinates import RefPos, ScanIndex

HOM_ALT = "hom. ALT"
HET = "het."


def _frozen_annotations(
    annotations: Optional[Mapping[str, Mapping[str, Any]]],
) -> Mapping[str, Mapping[str, Any]]:
    return MappingProxyType(
        {source: MappingProxyType(dict(values)) for source, values in (annotations or {}).items()}
    )


@dataclass(frozen=True)
class VariantMarker:
    """
    One called variant, used only to annotate the viewer.

    Core fields are fixed. Anything an external annotator adds (VEP, HGVS
    alternatives, ...) lives in ``annotations`` keyed by its source and never
    shadows a core field.
    """
    ref_pos: RefPos
    ref: str
    alt: str
    genotype: str = ""
    signal_scan_pos: Optional[ScanIndex] = None
    variant_type: str = ""
    qual: float = 0.0
    filter: str = ""
    patient: str = ""
    annotations: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    polymorphism: Tuple["VariantMarker", ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "annotations", _frozen_annotations(self.annotations))

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    @property
    def is_snv(self) -> bool:
        return len(self.ref) == 1 and len(self.alt) == 1

    @property
    def is_deletion(self) -> bool:
        return len(self.ref) > len(self.alt)

    @property
    def is_insertion(self) -> bool:
        return len(self.alt) > len(self.ref)

    @property
    def genotype_short(self) -> str:
        if self.genotype == HOM_ALT:
            return "hom"
        if self.genotype == HET:
            return "het"
        return ""

    @property
    def deleted_bases(self) -> str:
        """
        Part of ref not shared as a prefix with alt.
        """
        prefix = 0
        while (
            prefix < len(self.ref)
            and prefix < len(self.alt)
            and self.ref[prefix] == self.alt[prefix]
        ):
            prefix += 1
        return self.ref[prefix:]

    @property
    def group_key(self) -> str:
        return f"{self.ref_pos.value}-{self.variant_type}-{self.ref}-{self.alt}"

    def annotation(self, source: str, key: str, default: Any = None) -> Any:
        return self.annotations.get(source, {}).get(key, default)


def group_variants(variants: Iterable[VariantMarker]) -> List[VariantMarker]:
    """
    Merges identical calls coming from several reads.

    Calls sharing position/type/ref/alt collapse into the best-quality one;
    the others are attached to it as ``polymorphism``. Already grouped input
    is flattened first so regrouping is stable.
    """
    flattened: List[VariantMarker] = []
    for variant in variants:
        flattened.append(replace(variant, polymorphism=()))
        flattened.extend(replace(p, polymorphism=()) for p in variant.polymorphism)

    groups: Dict[str, List[VariantMarker]] = {}
    for variant in flattened:
        groups.setdefault(variant.group_key, []).append(variant)

    result: List[VariantMarker] = []
    for group in groups.values():
        if len(group) == 1:
            result.append(group[0])
            continue
        group.sort(key=lambda v: v.qual or 0.0, reverse=True)
        best, others = group[0], group[1:]
        result.append(replace(best, polymorphism=tuple(others)))
    return result
