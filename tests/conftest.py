"""Pytest configuration and fixtures for genome-core tests."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from fixtures.genome_generator import (  # noqa: E402
    CLINVAR_RECORDS,
    GWAS_RECORDS,
    PHARMGKB_RECORDS,
    FlatFileGenerator,
    SyntheticCall,
    SyntheticVariant,
    VCFGenerator,
    make_reference_dir,
)


@pytest.fixture
def vcf_generator():
    return VCFGenerator


@pytest.fixture
def flat_file_generator():
    return FlatFileGenerator


@pytest.fixture
def synthetic_variant_factory():
    """Factory for creating SyntheticVariant instances."""

    def _factory(**kwargs):
        defaults = {
            "chrom": "chr1",
            "pos": 100,
            "ref": "A",
            "alt": ["G"],
            "rs_id": "rs100",
            "genotypes": {"SAMPLE1": "0/1"},
        }
        defaults.update(kwargs)
        return SyntheticVariant(**defaults)

    return _factory


@pytest.fixture
def reference_dir(tmp_path) -> Path:
    """Directory holding gzipped clinvar, pharmgkb and gwas bundles."""
    directory = tmp_path / "reference"
    directory.mkdir()
    return make_reference_dir(directory)


@pytest.fixture
def loaded_database(reference_dir):
    from genome_core.database import ReferenceDatabase

    database = ReferenceDatabase()
    database.load(reference_dir)
    return database


@pytest.fixture
def twentythree_file(tmp_path) -> Path:
    """A 23andMe v5 file with one pathogenic, one drug, one trait hit and one no-call."""
    calls = [
        SyntheticCall("rs429358", "19", 44908684, "CT"),
        SyntheticCall("rs4244285", "10", 94781859, "AG"),
        SyntheticCall("rs12913832", "15", 28120472, "GG"),
        SyntheticCall("rs9999999", "1", 1000, "AA"),
        SyntheticCall("i7000001", "2", 2000, "CC"),
        SyntheticCall("rs1801133", "1", 11796321, "--"),
    ]
    return FlatFileGenerator.generate_file(calls, path=tmp_path / "genome_23andme.txt")


@pytest.fixture
def reference_records():
    return {
        "clinvar": CLINVAR_RECORDS,
        "pharmgkb": PHARMGKB_RECORDS,
        "gwas": GWAS_RECORDS,
    }
