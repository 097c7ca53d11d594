"""Pytest configuration and shared fixtures for sanger_viewer tests."""

import os
from typing import Iterable, Optional, Sequence

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from sanger_viewer.model.alignment import AlignmentEntry, AlignmentIndex  # noqa: E402
from sanger_viewer.model.analysis_session import AnalysisSession  # noqa: E402
from sanger_viewer.model.coordinates import RefPos, ScanIndex  # noqa: E402
from sanger_viewer.model.job_results import GeneFeature, JobResults, ReadResult  # noqa: E402
from sanger_viewer.model.trace import Trace  # noqa: E402
from sanger_viewer.model.variant import HET, HOM_ALT, VariantMarker  # noqa: E402

REFERENCE = "ACGTACGTAC"


def entry(
    ref_pos: int,
    cons: Sequence[str],
    alt1: Sequence[str] = (),
    alt2: Sequence[str] = (),
    scan1: Sequence[int] = (),
    scan2: Sequence[int] = (),
) -> AlignmentEntry:
    """Shorthand for one alignment entry."""
    return AlignmentEntry(
        ref_pos=RefPos(ref_pos),
        consensus=tuple(cons),
        alt1=tuple(alt1),
        alt2=tuple(alt2),
        scan_idx1=tuple(scan1),
        scan_idx2=tuple(scan2),
    )


def make_trace(peaks: Sequence[int], scan_count: int) -> Trace:
    """
    Synthetic trace: every channel is flat except a spike at each peak; the
    spiking channel cycles A, C, G, T.
    """
    channels = [[1.0] * scan_count for _ in range(4)]
    for i, peak in enumerate(peaks):
        channels[i % 4][peak] = 100.0 + i
    return Trace(
        channel_a=channels[0],
        channel_c=channels[1],
        channel_g=channels[2],
        channel_t=channels[3],
        peak_locations=tuple(peaks),
    )


def make_read(
    read_id: str,
    entries: Iterable[AlignmentEntry],
    *,
    trace: Optional[Trace] = None,
    variants: Sequence[VariantMarker] = (),
    ref_start: int = 0,
    ref_forward: bool = True,
    consensus: str = "",
) -> ReadResult:
    return ReadResult(
        read_id=read_id,
        read_name=f"{read_id}.ab1",
        alignment=AlignmentIndex(entries),
        trace=trace,
        variants=tuple(variants),
        ref_start=ref_start,
        ref_forward=ref_forward,
        consensus_sequence=tuple(consensus),
        consensus_complement=tuple(consensus.translate(str.maketrans("ACGT", "TGCA"))),
    )


@pytest.fixture
def trace() -> Trace:
    """Six called bases, peaks every 10 scans starting at scan 5."""
    return make_trace([5, 15, 25, 35, 45, 55], 70)


@pytest.fixture
def snv() -> VariantMarker:
    return VariantMarker(
        ref_pos=RefPos(4),
        ref="T",
        alt="C",
        genotype=HET,
        signal_scan_pos=ScanIndex(35),
        variant_type="SNV",
        qual=50.0,
        patient="P1",
    )


@pytest.fixture
def read_one(trace, snv) -> ReadResult:
    """
    Covers refPos 1..5 with an insertion at refPos 3 (depth 2) and a
    heterozygous call at refPos 4.
    """
    return make_read(
        "r1",
        [
            entry(1, "A", scan1=[1]),
            entry(2, "C", scan1=[2]),
            entry(3, ["G", "T"], alt1=["G", "T"], alt2=["A", "-"], scan1=[3, 4]),
            entry(4, "T", alt1="T", alt2="C", scan1=[5], scan2=[5]),
            entry(5, "A", scan1=[6]),
        ],
        trace=trace,
        variants=[snv],
        consensus="ACGTTA",
    )


@pytest.fixture
def read_two() -> ReadResult:
    """Covers refPos 2..6, no trace, reverse orientation."""
    return make_read(
        "r2",
        [entry(p, REFERENCE[p - 1], scan1=[p - 1]) for p in range(2, 7)],
        ref_start=1,
        ref_forward=False,
    )


@pytest.fixture
def job(read_one, read_two) -> JobResults:
    return JobResults(
        job_id="job-1",
        name="Test job",
        reference_sequence=REFERENCE,
        reads=(read_one, read_two),
        features=(
            GeneFeature("exon", 1, 4),
            GeneFeature("CDS", 2, 3),
            GeneFeature("gene", 1, 10),
        ),
    )


@pytest.fixture
def session(job) -> AnalysisSession:
    s = AnalysisSession()
    s.load(job)
    return s


@pytest.fixture(scope="session")
def qapp():
    """One offscreen QApplication for every widget test."""
    from PyQt5.QtWidgets import QApplication

    app = QApplication.instance() or QApplication([])
    yield app


__all__ = ["entry", "make_read", "make_trace", "REFERENCE", "HET", "HOM_ALT"]
