"""Tests for the JSON job repository and the repository factory."""

import json
import logging
from pathlib import Path

import pytest

from sanger_viewer.model.coordinates import RefPos, ScanIndex
from sanger_viewer.repositories.file_based_repository import FileJobRepository, _as_ints
from sanger_viewer.repositories.repository_factory import RepositoryFactory
from sanger_viewer.settings.config import AppConfig, DataSourceSettings


def _job_document(**overrides):
    document = {
        "id": "job-42",
        "name": "BRCA exon 11",
        "status": "done",
        "reference": {"type": "file", "value": ""},
        "reference_sequence": "acgtacgtac",
        "features": [{"type": "exon", "start": 1, "end": 8}],
        "patients": [
            {
                "id": "p1",
                "name": "Patient One",
                "reads": [{"id": "read-a", "file": "reads/a.ab1", "trimLeft": 4, "trimRight": 6}],
            }
        ],
        "results": [
            {
                "patientId": "p1",
                "readPath": "reads/a.ab1",
                "readId": "read-a",
                "alignment": {
                    "variants": {
                        "columns": ["pos", "ref", "alt", "genotype", "signalpos", "type", "qual", "Paciente", "hgvs", "depth"],
                        "rows": [[3, "G", "T", "het.", 25, "SNV", 42.5, "p1", "NM_1:c.3G>T", 17]],
                    },
                    "consensusAlign": {
                        "1": {"refPos": 1, "sangerPos1": [1], "sangerPos2": None, "alt1": None, "alt2": None, "cons": ["A"]},
                        "2": {"refPos": 2, "sangerPos1": [2], "cons": ["C"]},
                        "3": {"sangerPos1": [3, 4], "alt1": ["T", "A"], "alt2": ["G", "-"], "cons": ["K", "A"]},
                    },
                    "alignment": {"refStart": 0, "refForward": 0, "intro_trimmed": 2},
                    "trace": {
                        "traceA": [0, 10, 0, 0, 0],
                        "traceC": [0, 0, 20, 0, 0],
                        "traceG": [0, 0, 0, 30, 0],
                        "traceT": [0, 0, 0, 0, 40],
                        "peakLocations": [1, 2, 3, 4],
                    },
                    "readSeqConsensus": "ACKA",
                    "readSeqConsensusComplementary": "TGMT",
                    "readSeqRef": "ACGT",
                },
            },
            {"patientId": "p1", "readPath": "reads/b.ab1", "error": "alignment failed"},
        ],
        "hgvs_alternatives": {"NM_1:c.3G>T": ["NC_1:g.3G>T"]},
        "vep_annotations": {"NC_1:g.3G>T": {"impact": "MODERATE"}},
    }
    document.update(overrides)
    return document


def _write(directory: Path, name: str, document) -> Path:
    path = directory / name
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


@pytest.fixture
def jobs_dir(tmp_path) -> Path:
    _write(tmp_path, "job-42.json", _job_document())
    return tmp_path


class TestLoadJob:
    """Parsing one job document."""

    def test_reference_and_features(self, jobs_dir):
        job = FileJobRepository(jobs_dir).load_job(jobs_dir / "job-42.json")
        assert job.job_id == "job-42"
        assert job.reference_sequence == "ACGTACGTAC"
        assert [(f.type, f.start, f.end) for f in job.features] == [("exon", 1, 8)]

    def test_read_fields(self, jobs_dir):
        job = FileJobRepository(jobs_dir).load_job(jobs_dir / "job-42.json")
        assert job.read_ids == ["reads/a.ab1"]
        read = job.reads[0]
        assert read.read_name == "a.ab1"
        assert read.patient_name == "Patient One"
        assert not read.ref_forward
        # intro_trimmed wins over the job's trimLeft; trimRight is the fallback
        assert (read.trim_left, read.trim_right) == (2, 6)
        assert read.trace.peak_locations == (1, 2, 3, 4)
        assert "".join(read.consensus_sequence) == "ACKA"

    def test_alignment_entries(self, jobs_dir):
        read = FileJobRepository(jobs_dir).load_job(jobs_dir / "job-42.json").reads[0]
        first = read.alignment.get(RefPos(1))
        assert first.scan_idx2 == ()
        assert first.alt1 == ()
        # Missing refPos falls back to the map key
        third = read.alignment.get(RefPos(3))
        assert third.consensus == ("K", "A")
        assert third.depth == 2

    def test_variants_keep_extra_columns_apart(self, jobs_dir):
        read = FileJobRepository(jobs_dir).load_job(jobs_dir / "job-42.json").reads[0]
        variant = read.variants[0]
        assert variant.ref_pos == RefPos(3)
        assert variant.signal_scan_pos == ScanIndex(25)
        assert variant.qual == 42.5
        assert variant.patient == "Patient One"
        assert variant.annotation("backend", "depth") == 17
        assert variant.annotation("vep", "impact") == "MODERATE"

    def test_failed_results_are_collected(self, jobs_dir, caplog):
        with caplog.at_level(logging.WARNING):
            job = FileJobRepository(jobs_dir).load_job(jobs_dir / "job-42.json")
        assert [(e.read_path, e.message) for e in job.errors] == [("reads/b.ab1", "alignment failed")]
        assert "has an error" in caplog.text

    def test_reference_from_fasta(self, tmp_path):
        (tmp_path / "ref.fasta").write_text(">ref\nttgca\n", encoding="utf-8")
        path = _write(
            tmp_path,
            "job.json",
            _job_document(reference={"type": "file", "value": "ref.fasta"}, reference_sequence=None),
        )
        assert FileJobRepository(tmp_path).load_job(path).reference_sequence == "TTGCA"

    def test_missing_fasta(self, tmp_path):
        path = _write(
            tmp_path,
            "job.json",
            _job_document(reference={"type": "file", "value": "nope.fasta"}, reference_sequence=None),
        )
        with pytest.raises(FileNotFoundError):
            FileJobRepository(tmp_path).load_job(path)

    def test_missing_chromatogram_file(self, tmp_path, caplog):
        document = _job_document()
        del document["results"][0]["alignment"]["trace"]
        path = _write(tmp_path, "job.json", document)
        with caplog.at_level(logging.WARNING):
            read = FileJobRepository(tmp_path).load_job(path).reads[0]
        assert read.trace is None
        assert not read.has_trace
        assert "chromatogram file missing" in caplog.text

    def test_unreadable_chromatogram_only_drops_its_read(self, tmp_path, caplog):
        document = _job_document()
        bad = json.loads(json.dumps(document["results"][0]))
        bad["readPath"] = "reads/bad.ab1"
        bad["readId"] = "read-bad"
        del bad["alignment"]["trace"]
        document["results"].append(bad)
        (tmp_path / "reads").mkdir()
        (tmp_path / "reads" / "bad.ab1").write_bytes(b"not an abif file at all")
        path = _write(tmp_path, "job.json", document)

        with caplog.at_level(logging.ERROR):
            job = FileJobRepository(tmp_path).load_job(path)
        assert job.read_ids == ["reads/a.ab1"]
        assert [e.read_path for e in job.errors] == ["reads/b.ab1", "reads/bad.ab1"]
        assert "Could not load read reads/bad.ab1" in caplog.text

    def test_unknown_patient_is_skipped(self, tmp_path):
        document = _job_document()
        document["results"][0]["patientId"] = "ghost"
        path = _write(tmp_path, "job.json", document)
        assert FileJobRepository(tmp_path).load_job(path).reads == ()


class TestErrors:
    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FileJobRepository(tmp_path / "missing")

    def test_missing_file(self, jobs_dir):
        with pytest.raises(FileNotFoundError):
            FileJobRepository(jobs_dir).load_job(jobs_dir / "other.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError):
            FileJobRepository(tmp_path).load_job(path)

    def test_invalid_document(self, tmp_path):
        path = _write(tmp_path, "bad.json", {"name": "no id"})
        with pytest.raises(ValueError):
            FileJobRepository(tmp_path).load_job(path)

    def test_unknown_job_id(self, jobs_dir):
        with pytest.raises(KeyError):
            FileJobRepository(jobs_dir).get_job("nope")


class TestLookup:
    def test_list_jobs_skips_bad_files(self, jobs_dir):
        (jobs_dir / "broken.json").write_text("[", encoding="utf-8")
        _write(jobs_dir, "anonymous.json", {"name": "no id"})
        summaries = list(FileJobRepository(jobs_dir).list_jobs())
        assert [(s.id, s.name, s.status) for s in summaries] == [("job-42", "BRCA exon 11", "done")]

    def test_get_job_by_id(self, jobs_dir):
        assert FileJobRepository(jobs_dir).get_job("job-42").name == "BRCA exon 11"


class TestAbifHelpers:
    def test_big_endian_shorts(self):
        assert _as_ints(b"\x00\x01\x01\x00") == (1, 256)
        assert _as_ints([3, 4]) == (3, 4)


class TestRepositoryFactory:
    """Bundled defaults outrank init kwargs, so the source is set afterwards."""

    def _config(self, tmp_path, **source) -> AppConfig:
        config = AppConfig(user_config_path=tmp_path / "absent.json")
        config.data_source = DataSourceSettings(**source)
        return config

    def test_file_repository(self, jobs_dir, tmp_path):
        config = self._config(tmp_path, type="file", config={"jobs_dir": str(jobs_dir)})
        repository = RepositoryFactory(config).create_repository()
        assert isinstance(repository, FileJobRepository)

    def test_unsupported_source(self, tmp_path):
        config = self._config(tmp_path, type="api")
        with pytest.raises(ValueError):
            RepositoryFactory(config).create_repository()
