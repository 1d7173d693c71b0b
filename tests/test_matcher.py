"""Tests for variant/reference matching."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st


def _variant(rsid="rs123", chromosome="1", position=100, genotype="AG"):
    from genome_core.models import Variant

    return Variant(rsid=rsid, chromosome=chromosome, position=position, genotype=genotype)


def _snapshot(clinical=(), pharmaco=(), traits=()):
    from genome_core.database import ReferenceDatabase

    return ReferenceDatabase().load_records(
        clinical=list(clinical), pharmaco=list(pharmaco), traits=list(traits)
    )


def _clinical(rsid="rs123", condition="X", significance="pathogenic", **kwargs):
    from genome_core.database import ClinicalRecord, ClinicalSignificance

    return ClinicalRecord(
        rsid=rsid, condition=condition, significance=ClinicalSignificance(significance), **kwargs
    )


def _drug(rsid="rs123", drug="warfarin", recommendation=""):
    from genome_core.database import PharmacoRecord

    return PharmacoRecord(
        rsid=rsid, gene="VKORC1", drug=drug, response="Sensitive", recommendation=recommendation
    )


def _trait(rsid="rs123", trait="Height"):
    from genome_core.database import TraitRecord

    return TraitRecord(rsid=rsid, trait=trait, category="physical", effect="Taller", confidence=0.7)


class TestMatch:
    """Basic joins against each table."""

    def test_clinical_hit(self):
        from genome_core.matcher import Matcher
        from genome_core.models import ClinicalFinding

        matcher = Matcher(_snapshot(clinical=[_clinical()]))
        (finding,) = list(matcher.match([_variant()]))

        assert isinstance(finding, ClinicalFinding)
        assert finding.rsid == "rs123"
        assert finding.genotype == "AG"
        assert finding.condition == "X"
        assert finding.significance == "pathogenic"
        assert (finding.chromosome, finding.position) == ("1", 100)

    def test_every_record_yields_a_finding(self):
        from genome_core.matcher import Matcher
        from genome_core.models import FindingKind

        snapshot = _snapshot(
            clinical=[_clinical(condition="A"), _clinical(condition="B")],
            pharmaco=[_drug()],
            traits=[_trait()],
        )
        matcher = Matcher(snapshot)
        findings = list(matcher.match([_variant()]))

        assert [f.kind for f in findings] == [
            FindingKind.CLINICAL,
            FindingKind.CLINICAL,
            FindingKind.DRUG,
            FindingKind.TRAIT,
        ]
        assert matcher.counts.clinical_count == 2
        assert matcher.counts.drug_count == 1
        assert matcher.counts.trait_count == 1
        assert matcher.counts.analyzed_variants == 1

    def test_reference_coordinates_preferred(self):
        from genome_core.matcher import Matcher

        snapshot = _snapshot(clinical=[_clinical(chromosome="19", position=44908684)])
        (finding,) = list(Matcher(snapshot).match([_variant(chromosome="19", position=45411941)]))
        assert finding.position == 44908684

    def test_duplicate_variants_not_deduplicated(self):
        from genome_core.matcher import Matcher

        matcher = Matcher(_snapshot(clinical=[_clinical()]))
        findings = list(matcher.match([_variant(), _variant(genotype="GG")]))
        assert [f.genotype for f in findings] == ["AG", "GG"]

    def test_input_order_preserved(self):
        from genome_core.matcher import Matcher

        snapshot = _snapshot(traits=[_trait("rs1", "T1"), _trait("rs2", "T2"), _trait("rs3", "T3")])
        findings = list(
            Matcher(snapshot).match([_variant("rs3"), _variant("rs1"), _variant("rs2")])
        )
        assert [f.trait_name for f in findings] == ["T3", "T1", "T2"]


class TestImpactScoring:
    """Impact scores and variant categories on findings."""

    @pytest.mark.parametrize(
        "significance,stars,expected",
        [
            ("pathogenic", 4, 5.0),
            ("pathogenic", 0, 4.0),
            ("likely_pathogenic", 2, 3.5),
            ("uncertain_significance", 1, 1.25),
            ("conflicting", 0, 0.5),
            ("benign", 3, 0.75),
            ("not_provided", 0, 0.0),
        ],
    )
    def test_clinical_impact(self, significance, stars, expected):
        from genome_core.matcher import clinical_impact

        record = _clinical(significance=significance, review_stars=stars)
        assert clinical_impact(record) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "level,expected",
        [("1A", 2.0), ("1b", 1.5), ("2A", 1.0), ("2B", 0.75), ("3", 0.5), ("4", 0.25), (None, 0.0)],
    )
    def test_drug_impact(self, level, expected):
        from genome_core.database import PharmacoRecord
        from genome_core.matcher import drug_impact

        record = PharmacoRecord(
            rsid="rs1", gene="CYP2C19", drug="clopidogrel", response="", evidence_level=level
        )
        assert drug_impact(record) == expected

    def test_homozygous_pathogenic(self):
        from genome_core.matcher import Matcher

        matcher = Matcher(_snapshot(clinical=[_clinical(review_stars=4)]))
        (finding,) = list(matcher.match([_variant(genotype="GG")]))
        assert finding.variant_category == "pathogenic"
        assert finding.impact_score == pytest.approx(5.0)

    def test_heterozygous_pathogenic_is_carrier(self):
        from genome_core.matcher import Matcher

        matcher = Matcher(_snapshot(clinical=[_clinical(significance="likely_pathogenic")]))
        (finding,) = list(matcher.match([_variant(genotype="AG")]))
        assert finding.variant_category == "carrier"

    def test_protective_benign(self):
        from genome_core.matcher import Matcher

        record = _clinical(significance="benign", condition="Protective against malaria")
        matcher = Matcher(_snapshot(clinical=[record]))
        (finding,) = list(matcher.match([_variant()]))
        assert finding.variant_category == "protective"

    def test_uncertain_is_neutral(self):
        from genome_core.matcher import Matcher

        matcher = Matcher(_snapshot(clinical=[_clinical(significance="uncertain_significance")]))
        (finding,) = list(matcher.match([_variant()]))
        assert finding.variant_category == "neutral"

    def test_drug_category(self):
        from genome_core.matcher import Matcher

        matcher = Matcher(_snapshot(pharmaco=[_drug()]))
        (finding,) = list(matcher.match([_variant()]))
        assert finding.variant_category == "drug"
        assert finding.impact_score == 0.0

    def test_trait_keeps_risk_allele(self):
        from genome_core.database import TraitRecord
        from genome_core.matcher import Matcher

        record = TraitRecord(
            rsid="rs123",
            trait="Height",
            category="physical",
            effect="",
            confidence=1.0,
            risk_allele="G",
        )
        matcher = Matcher(_snapshot(traits=[record]))
        (finding,) = list(matcher.match([_variant()]))
        assert finding.risk_allele == "G"


class TestCounts:
    """Variant accounting."""

    def test_categories(self):
        from genome_core.matcher import Matcher

        matcher = Matcher(_snapshot(clinical=[_clinical()]))
        list(
            matcher.match(
                [
                    _variant(),
                    _variant(rsid="rs999"),
                    _variant(rsid=None),
                    _variant(rsid="rs123", genotype="--"),
                ]
            )
        )
        counts = matcher.counts
        assert counts.total_variants == 4
        assert counts.analyzed_variants == 1
        assert counts.unmatched_variants == 2
        assert counts.unnamed_variants == 1
        assert counts.no_call_variants == 1

    def test_no_call_not_matched_by_default(self):
        from genome_core.matcher import Matcher

        matcher = Matcher(_snapshot(clinical=[_clinical()]))
        assert list(matcher.match([_variant(genotype="--")])) == []

    def test_no_call_matched_when_enabled(self):
        from genome_core.config import AnalysisConfig
        from genome_core.matcher import Matcher

        matcher = Matcher(_snapshot(clinical=[_clinical()]), AnalysisConfig(match_no_calls=True))
        (finding,) = list(matcher.match([_variant(genotype="--")]))
        assert finding.genotype == "--"

    def test_counts_reset_between_runs(self):
        from genome_core.matcher import Matcher

        matcher = Matcher(_snapshot(clinical=[_clinical()]))
        list(matcher.match([_variant()]))
        list(matcher.match([_variant(), _variant()]))
        assert matcher.counts.total_variants == 2


class TestPositionalFallback:
    """Coordinate matching for rsid-less variants."""

    def test_off_by_default(self):
        from genome_core.matcher import Matcher

        snapshot = _snapshot(clinical=[_clinical(chromosome="1", position=100)])
        matcher = Matcher(snapshot)
        assert list(matcher.match([_variant(rsid=None)])) == []
        assert matcher.counts.unnamed_variants == 1

    def test_enabled(self):
        from genome_core.config import AnalysisConfig
        from genome_core.matcher import Matcher

        snapshot = _snapshot(clinical=[_clinical(chromosome="1", position=100)])
        matcher = Matcher(snapshot, AnalysisConfig(positional_fallback=True))
        (finding,) = list(matcher.match([_variant(rsid=None)]))

        assert finding.rsid == "rs123"
        assert matcher.counts.analyzed_variants == 1
        assert matcher.counts.unnamed_variants == 0


class TestRequiredTables:
    """DatabaseNotLoadedError handling."""

    def test_missing_table_raises_before_consuming(self):
        from genome_core.database import ReferenceDatabase
        from genome_core.exceptions import DatabaseNotLoadedError
        from genome_core.matcher import Matcher

        snapshot = ReferenceDatabase().load_records(clinical=[_clinical()])
        consumed = []

        def variants():
            consumed.append(True)
            yield _variant()

        with pytest.raises(DatabaseNotLoadedError) as exc_info:
            Matcher(snapshot).match(variants())

        assert exc_info.value.tables == ("gwas", "pharmgkb")
        assert consumed == []

    def test_relaxed_required_tables(self):
        from genome_core.config import AnalysisConfig
        from genome_core.database import ReferenceDatabase
        from genome_core.matcher import Matcher

        snapshot = ReferenceDatabase().load_records(clinical=[_clinical()])
        matcher = Matcher(snapshot, AnalysisConfig(required_tables=("clinvar",)))
        assert len(list(matcher.match([_variant()]))) == 1


_rsids = st.integers(min_value=1, max_value=30).map(lambda n: f"rs{n}")
_variants = st.lists(
    st.builds(
        _variant,
        rsid=st.one_of(st.none(), _rsids),
        genotype=st.sampled_from(["AA", "AG", "GG", "--"]),
    ),
    max_size=40,
)
_clinical_records = st.lists(
    st.builds(_clinical, rsid=_rsids, condition=st.sampled_from(["A", "B", "C"])), max_size=20
)
_trait_records = st.lists(st.builds(_trait, rsid=_rsids), max_size=20)


class TestMatcherProperties:
    """Property-based tests using hypothesis."""

    @given(variants=_variants, clinical=_clinical_records, traits=_trait_records)
    @settings(max_examples=100)
    def test_join_completeness(self, variants, clinical, traits):
        """Each called, named variant yields exactly one finding per matching record."""
        from genome_core.matcher import Matcher

        matcher = Matcher(_snapshot(clinical=clinical, traits=traits))
        findings = list(matcher.match(variants))

        expected = sum(
            sum(1 for r in clinical if r.rsid == v.rsid) + sum(1 for r in traits if r.rsid == v.rsid)
            for v in variants
            if v.rsid is not None and not v.is_no_call
        )
        assert len(findings) == expected

    @given(variants=_variants, clinical=_clinical_records)
    @settings(max_examples=100)
    def test_count_identity(self, variants, clinical):
        from genome_core.matcher import Matcher

        matcher = Matcher(_snapshot(clinical=clinical))
        findings = list(matcher.match(variants))
        counts = matcher.counts

        assert counts.total_variants == len(variants)
        assert counts.total_variants == (
            counts.analyzed_variants + counts.unnamed_variants + counts.unmatched_variants
        )
        assert counts.clinical_count + counts.drug_count + counts.trait_count == len(findings)
        assert counts.no_call_variants == sum(1 for v in variants if v.is_no_call)
