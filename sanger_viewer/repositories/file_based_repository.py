"""
File-backed job repository.

Reads finished analysis jobs from a directory of JSON documents (one job per
file). References given as a local FASTA file and reads without an inline
trace are resolved through Biopython ``SeqIO`` (``fasta`` and ``abi``
formats), relative to the job file's directory.
"""
from __future__ import annotations

import json
import logging
import struct
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from Bio import SeqIO
from pydantic import ValidationError

from sanger_viewer.model.alignment import AlignmentEntry, AlignmentIndex
from sanger_viewer.model.coordinates import RefPos, ScanIndex
from sanger_viewer.model.job_results import GeneFeature, JobResults, ReadError, ReadResult
from sanger_viewer.model.trace import Trace
from sanger_viewer.model.variant import VariantMarker

from .base_repository import AbstractJobRepository, JobSummary
from .schemas import (
    AnalysisJobSchema,
    AnalysisResultSchema,
    JobPatientSchema,
    JobReadResultSchema,
    JobReadSchema,
)

logger = logging.getLogger(__name__)

# Backend column renames
_COLUMN_ALIASES = {"pos": "position", "Paciente": "patient"}

_CORE_VARIANT_COLUMNS = {
    "position",
    "ref",
    "alt",
    "genotype",
    "signalpos",
    "type",
    "qual",
    "filter",
    "patient",
}


class FileJobRepository(AbstractJobRepository):
    """Repository that loads jobs from local JSON files."""

    def __init__(self, jobs_dir: Path):
        self.jobs_dir = Path(jobs_dir)
        if not self.jobs_dir.is_dir():
            raise FileNotFoundError(f"Jobs directory not found: {self.jobs_dir}")
        self._paths: Dict[str, Path] = {}

    # --------------------------------------------------------------
    # Lookup
    # --------------------------------------------------------------

    def _scan(self) -> Dict[str, Path]:
        paths: Dict[str, Path] = {}
        for path in sorted(self.jobs_dir.glob("*.json")):
            try:
                raw = _read_json(path)
            except ValueError as exc:
                logger.warning("Skipping %s: %s", path.name, exc)
                continue
            job_id = raw.get("id") if isinstance(raw, dict) else None
            if not job_id:
                logger.warning("Skipping %s: no job id", path.name)
                continue
            paths[str(job_id)] = path
        self._paths = paths
        return paths

    def list_jobs(self) -> Iterable[JobSummary]:
        summaries: List[JobSummary] = []
        for path in self._scan().values():
            raw = _read_json(path)
            summaries.append(JobSummary(str(raw["id"]), str(raw.get("name", "")), raw.get("status")))
        return summaries

    def get_job(self, job_id: str) -> JobResults:
        path = self._paths.get(job_id) or self._scan().get(job_id)
        if path is None:
            raise KeyError(f"Job '{job_id}' not found")
        return self.load_job(path)

    # --------------------------------------------------------------
    # Parsing
    # --------------------------------------------------------------

    def load_job(self, path: Path) -> JobResults:
        """
        Parses one job file. Failed reads end up in ``JobResults.errors``;
        the remaining reads still load.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Job file not found: {path}")

        try:
            schema = AnalysisJobSchema.model_validate(_read_json(path))
        except ValidationError as exc:
            raise ValueError(f"Invalid job document '{path}': {exc}") from exc

        logger.info("Loading job %s (%d results) from %s", schema.id, len(schema.results), path)
        base_dir = path.parent

        reference = self._load_reference(schema, base_dir)

        reads: List[ReadResult] = []
        errors: List[ReadError] = []
        for result in schema.results:
            if result.error:
                logger.warning("Result for patient %s has an error, skipping", result.patient_id)
                errors.append(ReadError(result.patient_id, result.read_path, result.error))
                continue
            if result.alignment is None:
                logger.warning("Result for %s carries no alignment, skipping", result.read_path)
                continue

            patient = schema.patient(result.patient_id)
            if patient is None:
                logger.warning("Unknown patient %s for %s, skipping", result.patient_id, result.read_path)
                continue

            try:
                read = self._build_read(schema, patient, result, result.alignment, base_dir)
            except (ValueError, OSError) as exc:
                logger.error("Could not load read %s: %s", result.read_path, exc)
                errors.append(ReadError(result.patient_id, result.read_path, str(exc)))
                continue
            reads.append(read)

        features = tuple(
            GeneFeature(f.type, f.start, f.end, f.strand, dict(f.qualifiers)) for f in schema.features
        )
        return JobResults(
            job_id=schema.id,
            name=schema.name,
            reference_sequence=reference,
            reads=tuple(reads),
            features=features,
            errors=tuple(errors),
        )

    def _load_reference(self, schema: AnalysisJobSchema, base_dir: Path) -> str:
        if schema.reference_sequence:
            return schema.reference_sequence.upper()

        if schema.reference.type != "file" or not schema.reference.value:
            logger.warning(
                "Job %s has no inline reference sequence (%s:%s)",
                schema.id,
                schema.reference.type,
                schema.reference.value,
            )
            return ""

        fasta_path = _resolve(base_dir, schema.reference.value)
        if not fasta_path.exists():
            raise FileNotFoundError(f"Reference FASTA not found: {fasta_path}")

        for record in SeqIO.parse(str(fasta_path), "fasta"):
            return str(record.seq).upper()
        raise ValueError(f"Reference FASTA '{fasta_path}' holds no record")

    def _build_read(
        self,
        job: AnalysisJobSchema,
        patient: JobPatientSchema,
        result: JobReadResultSchema,
        analysis: AnalysisResultSchema,
        base_dir: Path,
    ) -> ReadResult:
        job_read = _find_job_read(patient, result)

        trim_left = analysis.alignment.intro_trimmed
        if trim_left is None:
            trim_left = job_read.trim_left if job_read is not None and job_read.trim_left is not None else 0
        trim_right = analysis.alignment.outro_trimmed
        if trim_right is None:
            trim_right = job_read.trim_right if job_read is not None and job_read.trim_right is not None else 0

        trace: Optional[Trace]
        if analysis.trace is not None:
            trace = Trace(
                channel_a=analysis.trace.trace_a,
                channel_c=analysis.trace.trace_c,
                channel_g=analysis.trace.trace_g,
                channel_t=analysis.trace.trace_t,
                peak_locations=analysis.trace.peak_locations,
            )
        else:
            trace = self._load_abif_trace(_resolve(base_dir, result.read_path))

        read_id = result.read_path or result.read_id or f"{patient.id}-{len(patient.reads)}"
        variants = _map_variants(job, analysis, patient.name)

        return ReadResult(
            read_id=read_id,
            read_name=Path(result.read_path).name if result.read_path else read_id,
            alignment=_build_alignment(analysis),
            trace=trace,
            patient_name=patient.name,
            variants=tuple(variants),
            ref_start=analysis.alignment.ref_start,
            ref_forward=analysis.alignment.ref_forward == 1,
            trim_left=trim_left,
            trim_right=trim_right,
            consensus_sequence=tuple(analysis.read_seq_consensus),
            consensus_complement=tuple(analysis.read_seq_consensus_complementary),
            reference_slice=tuple(analysis.read_seq_ref),
        )

    def _load_abif_trace(self, path: Path) -> Optional[Trace]:
        """
        Raw channels of an AB1 file, reordered from the instrument's FWO_
        base order into A, C, G, T.
        """
        if not path.exists():
            logger.warning("No inline trace and chromatogram file missing: %s", path)
            return None

        record = SeqIO.read(str(path), "abi")
        raw = record.annotations.get("abif_raw", {})

        order = raw.get("FWO_", b"GATC")
        if isinstance(order, bytes):
            order = order.decode("ascii")
        channels = {
            base.upper(): _as_ints(raw.get(f"DATA{tag}", ()))
            for base, tag in zip(order, (9, 10, 11, 12))
        }
        peaks = _as_ints(raw.get("PLOC2", ()))[: len(record.seq)]

        return Trace(
            channel_a=channels.get("A", ()),
            channel_c=channels.get("C", ()),
            channel_g=channels.get("G", ()),
            channel_t=channels.get("T", ()),
            peak_locations=peaks,
        )


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def _read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        try:
            return json.load(handle)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in job file '{path}'") from exc


def _resolve(base_dir: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else base_dir / path


def _as_ints(value: Any) -> Tuple[int, ...]:
    """
    ABIF arrays come back as tuples of ints or as raw big-endian shorts.
    """
    if isinstance(value, (bytes, bytearray)):
        count = len(value) // 2
        return struct.unpack(f">{count}h", bytes(value[: count * 2]))
    return tuple(int(v) for v in value)


def _find_job_read(patient: JobPatientSchema, result: JobReadResultSchema) -> Optional[JobReadSchema]:
    for read in patient.reads:
        if read.id == result.read_id or read.file == result.read_path:
            return read
    return None


def _build_alignment(analysis: AnalysisResultSchema) -> AlignmentIndex:
    entries: List[AlignmentEntry] = []
    for key, item in analysis.consensus_align.items():
        ref_pos = item.ref_pos if item.ref_pos is not None else int(key)
        entries.append(
            AlignmentEntry(
                ref_pos=RefPos(ref_pos),
                consensus=tuple(item.cons),
                alt1=tuple(item.alt1),
                alt2=tuple(item.alt2),
                scan_idx1=tuple(item.sanger_pos1),
                scan_idx2=tuple(item.sanger_pos2),
            )
        )
    return AlignmentIndex(entries)


def _variant_rows(columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> List[Dict[str, Any]]:
    names = [_COLUMN_ALIASES.get(col, col) for col in columns]
    return [dict(zip(names, row)) for row in rows]


def _vep_for(job: AnalysisJobSchema, hgvs: Any) -> Optional[Dict[str, Any]]:
    """
    VEP record for a variant's principal HGVS name or any known alternative.
    """
    if not job.vep_annotations or not hgvs:
        return None
    names = [str(h) for h in hgvs] if isinstance(hgvs, list) else [str(hgvs)]
    candidates = [names[0], *job.hgvs_alternatives.get(names[0], []), *names[1:]]
    for name in candidates:
        if name in job.vep_annotations:
            return job.vep_annotations[name]
    return None


def _map_variants(job: AnalysisJobSchema, analysis: AnalysisResultSchema, patient_name: str) -> List[VariantMarker]:
    variants: List[VariantMarker] = []
    for row in _variant_rows(analysis.variants.columns, analysis.variants.rows):
        if row.get("position") is None:
            logger.warning("Variant row without position ignored: %s", row)
            continue

        signal_pos = row.get("signalpos")
        annotations: Dict[str, Dict[str, Any]] = {}
        extra = {k: v for k, v in row.items() if k not in _CORE_VARIANT_COLUMNS}
        if extra:
            annotations["backend"] = extra
        vep = _vep_for(job, row.get("hgvs"))
        if vep:
            annotations["vep"] = dict(vep)

        variants.append(
            VariantMarker(
                ref_pos=RefPos(int(row["position"])),
                ref=str(row.get("ref") or ""),
                alt=str(row.get("alt") or ""),
                genotype=str(row.get("genotype") or ""),
                signal_scan_pos=ScanIndex(int(signal_pos)) if signal_pos is not None else None,
                variant_type=str(row.get("type") or ""),
                qual=float(row.get("qual") or 0.0),
                filter=str(row.get("filter") or ""),
                patient=patient_name,
                annotations=annotations,
            )
        )
    return variants
