# sanger_viewer/model/analysis_session.py

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from .alignment import REFERENCE_TRACK_ID, AlignmentIndex
from .coordinates import BaseIndex, RefPos, ViewportIndex, read_pos_to_base_index, ref_to_viewport
from .depth_map import CoverageMap, DepthMap
from .job_results import JobResults, ReadResult
from .observable import Observable
from .variant import VariantMarker, group_variants
from .viewport_state import ViewportState

logger = logging.getLogger(__name__)

VARIANT_WINDOW = 10


@dataclass(frozen=True)
class CenterRequest:
    """
    Ask one chromatogram to center on a base of its own read.
    """
    read_id: str
    base_index: BaseIndex


@dataclass(frozen=True)
class HighlightRequest:
    """
    Ask one chromatogram to mark a reference position with genotype colors.
    """
    read_id: str
    ref_pos: RefPos
    genotype: str = ""


class AnalysisSession:
    """
    Non-visual state of one open analysis.

    Responsibilities:
    - owning the shared ViewportState for the whole session
    - replacing all per-job data on load:
        * reference track + one AlignmentIndex per read
        * global DepthMap (reference included) and CoverageMap (reads only)
        * grouped variants
    - translating a selection in the alignment rows into per-read
      chromatogram requests (each chart resolves them in its own scan space)
    """

    def __init__(self, viewport: Optional[ViewportState] = None) -> None:
        self.viewport: ViewportState = viewport or ViewportState()

        self.job: Optional[JobResults] = None
        self.reference_index: AlignmentIndex = AlignmentIndex()
        self.depth_map: DepthMap = DepthMap({})
        self.coverage_map: CoverageMap = CoverageMap({})
        self.variants: List[VariantMarker] = []
        self.selected_variant: Optional[VariantMarker] = None

        self.job_loaded: Observable[JobResults] = Observable()
        self.variant_selected: Observable[Optional[VariantMarker]] = Observable()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, job: JobResults) -> None:
        """
        Replaces every track and derived map with the given job's data.
        """
        self.job = job
        self.reference_index = AlignmentIndex.for_reference(job.reference_sequence)

        read_indexes = [read.alignment for read in job.reads]
        self.depth_map = DepthMap.build([self.reference_index, *read_indexes])
        self.coverage_map = CoverageMap.build(read_indexes)

        self.variants = group_variants(v for read in job.reads for v in read.variants)
        self.selected_variant = None

        # No reference: unbounded until the next job brings one
        self.viewport.set_max_position(len(job.reference_sequence) if job.reference_sequence else math.inf)
        self.viewport.clear_highlight()
        for read in job.reads:
            self.viewport.set_position(read.ref_start)

        logger.info(
            "Loaded job %s: %d reads, %d variants, reference length %d",
            job.job_id,
            len(job.reads),
            len(self.variants),
            len(job.reference_sequence),
        )
        for error in job.errors:
            logger.error("Read %s (patient %s) failed: %s", error.read_path, error.patient_id, error.message)

        self.job_loaded.notify(job)

    # ------------------------------------------------------------------
    # Track access
    # ------------------------------------------------------------------

    @property
    def reads(self) -> List[ReadResult]:
        return list(self.job.reads) if self.job is not None else []

    def read(self, read_id: str) -> Optional[ReadResult]:
        return self.job.read(read_id) if self.job is not None else None

    def track(self, track_id: str) -> Optional[AlignmentIndex]:
        if track_id == REFERENCE_TRACK_ID:
            return self.reference_index
        read = self.read(track_id)
        return read.alignment if read is not None else None

    def tracks(self) -> Dict[str, AlignmentIndex]:
        """
        Reference first, then reads in job order.
        """
        tracks = {REFERENCE_TRACK_ID: self.reference_index}
        for read in self.reads:
            tracks[read.read_id] = read.alignment
        return tracks

    # ------------------------------------------------------------------
    # Cross-track synchronization
    # ------------------------------------------------------------------

    def select_nucleotide(
        self,
        track_id: str,
        ref_pos: RefPos,
        is_insertion: bool = False,
    ) -> List[CenterRequest]:
        """
        Highlights the clicked position and works out which charts to center.

        Reference clicks and plain bases center every read covering the
        position; an insertion only exists in its own read, so only that
        chart moves.
        """
        track = self.track(track_id)
        if track is None or track.get(ref_pos) is None:
            return []

        index = ref_to_viewport(ref_pos)
        self.viewport.set_highlight(index, index)

        if track_id == REFERENCE_TRACK_ID or not is_insertion:
            candidates = self.reads
        else:
            read = self.read(track_id)
            candidates = [read] if read is not None else []

        requests: List[CenterRequest] = []
        for read in candidates:
            if not read.covers(ref_pos):
                continue
            read_pos = read.alignment[ref_pos].first_read_pos()
            if read_pos is None or read_pos.value <= 0:
                continue
            requests.append(CenterRequest(read.read_id, read_pos_to_base_index(read_pos)))

        self._select_variant(self.variant_at(ref_pos))
        return requests

    def zoom_to_variant(self, variant: VariantMarker, window: int = VARIANT_WINDOW) -> List[HighlightRequest]:
        """
        Frames the variant with `window` positions on each side and asks every
        chart to mark it.
        """
        pos = variant.ref_pos.value
        self.viewport.set_range(max(0, pos - window), pos + window)

        index = ViewportIndex(pos - 1)
        self.viewport.set_highlight(index, index)
        self._select_variant(variant)

        return [
            HighlightRequest(read.read_id, variant.ref_pos, variant.genotype)
            for read in self.reads
        ]

    def variant_at(self, ref_pos: RefPos) -> Optional[VariantMarker]:
        for variant in self.variants:
            if variant.ref_pos == ref_pos:
                return variant
        return None

    def _select_variant(self, variant: Optional[VariantMarker]) -> None:
        if variant is self.selected_variant:
            return
        self.selected_variant = variant
        self.variant_selected.notify(variant)
