# sanger_viewer/model/job_results.py

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .alignment import AlignmentIndex
from .coordinates import RefPos
from .trace import Trace
from .variant import VariantMarker


@dataclass(frozen=True)
class GeneFeature:
    """
    Annotated region of the reference (gene, exon, CDS, ...), 1-based inclusive.
    """
    type: str
    start: int
    end: int
    strand: int = 1
    qualifiers: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class ReadResult:
    """
    Everything the backend produced for one read, already parsed.
    """
    read_id: str
    read_name: str
    alignment: AlignmentIndex
    trace: Optional[Trace] = None
    patient_name: str = ""
    variants: Tuple[VariantMarker, ...] = ()
    ref_start: int = 0
    ref_forward: bool = True
    trim_left: int = 0
    trim_right: int = 0
    consensus_sequence: Tuple[str, ...] = ()
    consensus_complement: Tuple[str, ...] = ()
    reference_slice: Tuple[str, ...] = ()

    @property
    def has_trace(self) -> bool:
        return self.trace is not None and not self.trace.is_empty

    def covers(self, ref_pos: RefPos) -> bool:
        return ref_pos in self.alignment


@dataclass(frozen=True)
class ReadError:
    patient_id: str
    read_path: str
    message: str


@dataclass(frozen=True)
class JobResults:
    """
    One loaded analysis job. A new load replaces the whole object.
    """
    job_id: str
    name: str
    reference_sequence: str = ""
    reads: Tuple[ReadResult, ...] = ()
    features: Tuple[GeneFeature, ...] = ()
    errors: Tuple[ReadError, ...] = ()

    def read(self, read_id: str) -> Optional[ReadResult]:
        for read in self.reads:
            if read.read_id == read_id:
                return read
        return None

    @property
    def read_ids(self) -> List[str]:
        return [read.read_id for read in self.reads]
