"""Tests for the reference database and snapshot publishing."""

import threading

import pytest

from fixtures.genome_generator import CLINVAR_RECORDS, make_reference_dir, write_bundle


def _clinical(rsid="rs123", condition="X", significance="pathogenic", **kwargs):
    from genome_core.database import ClinicalRecord, ClinicalSignificance

    return ClinicalRecord(
        rsid=rsid,
        condition=condition,
        significance=ClinicalSignificance(significance),
        **kwargs,
    )


class TestLookups:
    """Keyed lookups on a loaded database."""

    def test_lookup_clinical(self, loaded_database):
        records = loaded_database.lookup_clinical("rs429358")
        assert [r.condition for r in records] == [
            "Alzheimer disease",
            "Hyperlipoproteinemia type III",
        ]

    def test_lookup_is_case_insensitive(self, loaded_database):
        assert loaded_database.lookup_pharmaco("RS4244285")

    def test_lookup_miss_is_empty(self, loaded_database):
        assert loaded_database.lookup_traits("rs1") == ()
        assert loaded_database.lookup_traits("") == ()

    def test_unloaded_table_raises(self):
        from genome_core.database import ReferenceDatabase
        from genome_core.exceptions import DatabaseNotLoadedError

        database = ReferenceDatabase()
        with pytest.raises(DatabaseNotLoadedError) as exc_info:
            database.lookup_clinical("rs1")
        assert exc_info.value.tables == ("clinvar",)

    def test_empty_loaded_table_is_not_an_error(self):
        from genome_core.database import ReferenceDatabase

        database = ReferenceDatabase()
        database.load_records(clinical=[], pharmaco=[], traits=[])
        assert database.lookup_clinical("rs1") == ()

    def test_position_index(self):
        from genome_core.database import ReferenceDatabase

        database = ReferenceDatabase()
        snapshot = database.load_records(
            clinical=[_clinical(rsid="rs9", chromosome="19", position=500)]
        )
        table = snapshot.table("clinvar")
        assert [r.rsid for r in table.lookup_position("chr19", 500)] == ["rs9"]
        assert table.lookup_position("19", 501) == ()
        assert table.lookup_position("chrUn", 500) == ()


class TestStatus:
    """Per-table status reporting."""

    def test_status_before_load(self):
        from genome_core.database import ReferenceDatabase

        status = ReferenceDatabase().status()
        assert set(status) == {"clinvar", "pharmgkb", "gwas"}
        assert not any(s.loaded for s in status.values())
        assert all(s.record_count == 0 for s in status.values())

    def test_status_after_load(self, loaded_database):
        status = loaded_database.status()
        assert status["clinvar"].loaded
        assert status["clinvar"].record_count == 4
        assert status["clinvar"].version == "clinvar-2024-06"
        assert status["clinvar"].last_updated.isoformat().startswith("2024-06-01")
        assert status["pharmgkb"].record_count == 2
        assert status["gwas"].record_count == 2

    def test_partial_directory(self, tmp_path):
        from genome_core.database import ReferenceDatabase

        write_bundle(tmp_path / "clinvar.json", CLINVAR_RECORDS)
        database = ReferenceDatabase()
        database.load(tmp_path)

        status = database.status()
        assert status["clinvar"].loaded
        assert not status["pharmgkb"].loaded
        assert not status["gwas"].loaded

    def test_load_records_versions(self):
        from genome_core.database import ReferenceDatabase

        database = ReferenceDatabase()
        database.load_records(clinical=[_clinical()], versions={"clinvar": "test-1"})
        status = database.status()
        assert status["clinvar"].version == "test-1"
        assert status["clinvar"].last_updated is not None


class TestAtomicPublishing:
    """Snapshot swap semantics."""

    def test_failed_load_keeps_previous_snapshot(self, loaded_database, tmp_path):
        from genome_core.exceptions import DatabaseLoadError

        before = loaded_database.snapshot()

        broken = tmp_path / "broken"
        broken.mkdir()
        write_bundle(broken / "clinvar.json", CLINVAR_RECORDS)
        (broken / "gwas.json").write_text('{"records": [{"rsid": "rs1", "trait": "T"}]}')

        with pytest.raises(DatabaseLoadError):
            loaded_database.load(broken)

        assert loaded_database.snapshot() is before
        assert loaded_database.status()["pharmgkb"].loaded

    def test_held_snapshot_unaffected_by_reload(self, loaded_database):
        held = loaded_database.snapshot()
        loaded_database.load_records(clinical=[_clinical(rsid="rs429358", condition="Replaced")])

        assert [r.condition for r in held.lookup_clinical("rs429358")][0] == "Alzheimer disease"
        assert [r.condition for r in loaded_database.lookup_clinical("rs429358")] == ["Replaced"]
        assert held.is_loaded("gwas")
        assert not loaded_database.snapshot().is_loaded("gwas")

    def test_snapshot_tables_read_only(self, loaded_database):
        snapshot = loaded_database.snapshot()
        with pytest.raises(TypeError):
            snapshot.tables["clinvar"] = None

    def test_concurrent_reads_see_whole_snapshots(self, tmp_path):
        """Readers observe either the old or the new table, never a mix."""
        from genome_core.database import ReferenceDatabase

        old = [_clinical(rsid=f"rs{i}", condition="old") for i in range(200)]
        new = [_clinical(rsid=f"rs{i}", condition="new") for i in range(200)]

        database = ReferenceDatabase()
        database.load_records(clinical=old)

        torn = []
        stop = threading.Event()

        def reader():
            while not stop.is_set():
                snapshot = database.snapshot()
                conditions = {snapshot.lookup_clinical(f"rs{i}")[0].condition for i in range(200)}
                if len(conditions) != 1:
                    torn.append(conditions)

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for i in range(20):
            database.load_records(clinical=new if i % 2 == 0 else old)
        stop.set()
        for t in threads:
            t.join()

        assert torn == []

    def test_reload_from_directory(self, tmp_path):
        from genome_core.database import ReferenceDatabase

        directory = tmp_path / "a"
        directory.mkdir()
        first = make_reference_dir(directory)
        database = ReferenceDatabase()
        snapshot_a = database.load(first)
        snapshot_b = database.load(first)

        assert snapshot_a is not snapshot_b
        assert database.snapshot() is snapshot_b
        assert (
            snapshot_a.status()["clinvar"].record_count
            == snapshot_b.status()["clinvar"].record_count
        )
