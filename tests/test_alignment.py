"""Tests for AlignmentIndex, DepthMap and CoverageMap."""

from conftest import entry

from sanger_viewer.model.alignment import GAP_CHAR, Allele, AlignmentIndex
from sanger_viewer.model.coordinates import ReadPos, RefPos
from sanger_viewer.model.depth_map import CoverageMap, DepthMap


class TestAlignmentIndex:
    """Read-only refPos -> entry map."""

    def test_lookup_and_absent_positions(self):
        index = AlignmentIndex([entry(3, "A"), entry(1, "C")])
        assert index.get(RefPos(3)).consensus == ("A",)
        assert index.get(RefPos(2)) is None
        assert RefPos(1) in index
        assert RefPos(2) not in index
        assert len(index) == 2

    def test_iteration_is_sorted(self):
        index = AlignmentIndex([entry(5, "A"), entry(2, "C"), entry(9, "G")])
        assert [p.value for p in index] == [2, 5, 9]
        assert [e.ref_pos.value for e in index.entries_sorted()] == [2, 5, 9]

    def test_entries_in_range_accepts_reversed_bounds(self):
        index = AlignmentIndex([entry(p, "A") for p in range(1, 11)])
        forward = [e.ref_pos.value for e in index.entries_in_range(RefPos(3), RefPos(6))]
        backward = [e.ref_pos.value for e in index.entries_in_range(RefPos(6), RefPos(3))]
        assert forward == backward == [3, 4, 5, 6]

    def test_entry_depth_and_chars(self):
        e = entry(4, ["A", "-"], alt1=["A", "T", "G"])
        assert e.depth == 3
        assert e.char_at(Allele.CONSENSUS, 1) == GAP_CHAR
        assert e.char_at(Allele.CONSENSUS, 2) == GAP_CHAR
        assert e.char_at(Allele.ALT1, 2) == "G"

    def test_empty_entry_has_depth_one(self):
        assert entry(1, []).depth == 1

    def test_first_read_pos_falls_back_to_antisense(self):
        assert entry(1, "A", scan1=[7]).first_read_pos() == ReadPos(7)
        assert entry(1, "A", scan2=[9]).first_read_pos() == ReadPos(9)
        assert entry(1, "A").first_read_pos() is None

    def test_multiple_alleles(self):
        assert not AlignmentIndex([entry(1, "A")]).has_multiple_alleles
        assert AlignmentIndex([entry(1, "A", alt1="G")]).has_multiple_alleles

    def test_reference_track(self):
        index = AlignmentIndex.for_reference("acgt")
        assert len(index) == 4
        assert index.get(RefPos(1)).consensus == ("A",)
        assert index.get(RefPos(4)).scan_idx1 == (4,)
        assert index.last_position == RefPos(4)

    def test_consensus_string(self):
        index = AlignmentIndex([entry(1, "A"), entry(3, ["G", "T"])])
        assert index.consensus_string(4) == "A-G-"


class TestDepthMap:
    """Global depth across tracks."""

    def test_depth_is_max_over_tracks(self):
        track_a = AlignmentIndex([entry(10, ["A", "C"])])
        track_b = AlignmentIndex([entry(10, ["A"]), entry(11, "G")])
        depth = DepthMap.build([track_a, track_b])
        assert depth.get(RefPos(10)) == 2
        assert depth.get(RefPos(11)) == 1

    def test_default_is_one(self):
        assert DepthMap.build([]).get(RefPos(42)) == 1
        assert DepthMap({}).max_depth == 1

    def test_every_track_sees_same_depth(self):
        tracks = [
            AlignmentIndex([entry(1, "A"), entry(2, ["C", "G", "T"])]),
            AlignmentIndex([entry(2, ["C", "-"], alt1=["C", "A"])]),
            AlignmentIndex([entry(3, "T")]),
        ]
        depth = DepthMap.build(tracks)
        for track in tracks:
            for e in track.entries_sorted():
                assert depth.get(e.ref_pos) >= e.depth
        assert depth.get(RefPos(2)) == 3
        assert depth.max_depth == 3


class TestCoverageMap:
    def test_counts_reads_per_position(self):
        coverage = CoverageMap.build([
            AlignmentIndex([entry(1, "A"), entry(2, "C")]),
            AlignmentIndex([entry(2, "C"), entry(3, "G")]),
        ])
        assert coverage.get(RefPos(1)) == 1
        assert coverage.get(RefPos(2)) == 2
        assert coverage.get(RefPos(9)) == 0
        assert coverage.max_coverage == 2
