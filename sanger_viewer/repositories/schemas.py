"""
Validated shapes of the analysis backend's job documents.

Keys arrive in camelCase (``refPos``, ``sangerPos1``, ``peakLocations``) with a
few snake_case exceptions (``intro_trimmed``, ``reference_sequence``); both the
alias and the field name are accepted. Unknown keys are ignored so newer
backends keep loading.
"""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class JobReferenceSchema(_Schema):
    type: Literal["file", "ncbi"] = "file"
    value: str = ""


class JobReadSchema(_Schema):
    id: str
    file: str = ""
    trim_left: Optional[int] = Field(None, alias="trimLeft")
    trim_right: Optional[int] = Field(None, alias="trimRight")


class JobPatientSchema(_Schema):
    id: str
    name: str = ""
    reads: List[JobReadSchema] = Field(default_factory=list)


class VariantTableSchema(_Schema):
    columns: List[str] = Field(default_factory=list)
    rows: List[List[Any]] = Field(default_factory=list)


class ConsensusAlignItemSchema(_Schema):
    ref_pos: Optional[int] = Field(None, alias="refPos")
    sanger_pos1: List[int] = Field(default_factory=list, alias="sangerPos1")
    sanger_pos2: List[int] = Field(default_factory=list, alias="sangerPos2")
    alt1: List[str] = Field(default_factory=list)
    alt2: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)

    @field_validator("sanger_pos1", "sanger_pos2", "alt1", "alt2", "cons", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class AlignmentMetadataSchema(_Schema):
    ref_start: int = Field(0, alias="refStart")
    ref_forward: int = Field(1, alias="refForward")
    intro_trimmed: Optional[int] = None
    outro_trimmed: Optional[int] = None


class TraceSchema(_Schema):
    trace_a: List[float] = Field(default_factory=list, alias="traceA")
    trace_c: List[float] = Field(default_factory=list, alias="traceC")
    trace_g: List[float] = Field(default_factory=list, alias="traceG")
    trace_t: List[float] = Field(default_factory=list, alias="traceT")
    peak_locations: List[int] = Field(default_factory=list, alias="peakLocations")


class AnalysisResultSchema(_Schema):
    variants: VariantTableSchema = Field(default_factory=VariantTableSchema)
    consensus_align: Dict[str, ConsensusAlignItemSchema] = Field(default_factory=dict, alias="consensusAlign")
    alignment: AlignmentMetadataSchema = Field(default_factory=AlignmentMetadataSchema)
    trace: Optional[TraceSchema] = None
    read_seq_consensus: List[str] = Field(default_factory=list, alias="readSeqConsensus")
    read_seq_consensus_complementary: List[str] = Field(default_factory=list, alias="readSeqConsensusComplementary")
    read_seq_ref: List[str] = Field(default_factory=list, alias="readSeqRef")

    @field_validator("read_seq_consensus", "read_seq_consensus_complementary", "read_seq_ref", mode="before")
    @classmethod
    def split_sequence_string(cls, value: Any) -> Any:
        # Older backends send these as plain strings
        if value is None:
            return []
        if isinstance(value, str):
            return list(value)
        return value


class JobReadResultSchema(_Schema):
    patient_id: str = Field(alias="patientId")
    read_path: str = Field("", alias="readPath")
    read_id: Optional[str] = Field(None, alias="readId")
    alignment: Optional[AnalysisResultSchema] = None
    error: Optional[str] = None


class GeneFeatureSchema(_Schema):
    type: str
    start: int
    end: int
    strand: int = 1
    qualifiers: Dict[str, Any] = Field(default_factory=dict)


class AnalysisJobSchema(_Schema):
    id: str
    name: str = ""
    status: Optional[str] = None
    reference: JobReferenceSchema = Field(default_factory=JobReferenceSchema)
    reference_sequence: Optional[str] = None
    patients: List[JobPatientSchema] = Field(default_factory=list)
    results: List[JobReadResultSchema] = Field(default_factory=list)
    features: List[GeneFeatureSchema] = Field(default_factory=list)
    hgvs_alternatives: Dict[str, List[str]] = Field(default_factory=dict)
    vep_annotations: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    @field_validator("results", "features", "patients", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def patient(self, patient_id: str) -> Optional[JobPatientSchema]:
        for patient in self.patients:
            if patient.id == patient_id:
                return patient
        return None
