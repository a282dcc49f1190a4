"""
Unit tests for templates, virtual mutation views and normal parameters.
"""

import math

import pytest

from arrowml.core.mutation import Mutation, enumerate_mutations
from arrowml.core.template import MutatedTemplate, Template


SEQUENCE = "ACGTTGCAAGTC"


class TestTemplate:
    """Test template population."""

    def test_population(self, model):
        tpl = Template("acgttgcaagtc", model)

        assert tpl.sequence == SEQUENCE
        assert len(tpl) == len(SEQUENCE)
        assert "".join(p.base for p in tpl) == SEQUENCE
        assert list(tpl.positions) == model.populate(SEQUENCE)

    def test_probabilities_sum_to_one(self, model):
        tpl = Template(SEQUENCE, model)
        for p in tpl:
            assert p.match + p.branch + p.stick + p.deletion == pytest.approx(1.0)

    def test_last_position_terminal(self, model):
        last = Template(SEQUENCE, model)[-1]
        assert (last.match, last.branch, last.stick, last.deletion) == (1.0, 0.0, 0.0, 0.0)

    def test_empty(self, model):
        with pytest.raises(ValueError):
            Template("", model)

    def test_invalid_base(self, model):
        with pytest.raises(ValueError, match="invalid character in template"):
            Template("ACNGT", model)


class TestMutatedTemplate:
    """Test the copy-on-test mutation view."""

    def test_matches_repopulated_sequence(self, model):
        """Every single-base edit gives the positions of the edited sequence."""
        tpl = Template(SEQUENCE, model)
        for m in enumerate_mutations(SEQUENCE):
            view = tpl.mutate(m)
            expected = model.populate(m.apply_to(SEQUENCE))

            assert isinstance(view, MutatedTemplate)
            assert len(view) == len(expected), str(m)
            assert list(view) == expected, str(m)
            assert view.sequence == m.apply_to(SEQUENCE)

    @pytest.mark.parametrize("mutation", [
        Mutation.insertion(5, "GGA"),
        Mutation.deletion(3, 4),
        Mutation.substitution(0, "TTT"),
        Mutation.deletion(9, 3),
        Mutation.insertion(12, "CA"),
    ])
    def test_multi_base_edits(self, model, mutation):
        tpl = Template(SEQUENCE, model)
        assert list(tpl.mutate(mutation)) == model.populate(mutation.apply_to(SEQUENCE))

    def test_template_unchanged(self, model):
        tpl = Template(SEQUENCE, model)
        before = tpl.positions
        for m in enumerate_mutations(SEQUENCE):
            tpl.mutate(m)
        assert tpl.positions == before
        assert tpl.sequence == SEQUENCE

    def test_indexing(self, model):
        tpl = Template(SEQUENCE, model)
        view = tpl.mutate(Mutation.insertion(4, "A"))

        assert view[-1] == view[len(view) - 1]
        assert view[2:4] == [view[2], view[3]]
        with pytest.raises(IndexError):
            view[len(view)]

    def test_out_of_range(self, model):
        tpl = Template("ACGT", model)
        with pytest.raises(ValueError):
            tpl.mutate(Mutation.substitution(4, "A"))
        with pytest.raises(ValueError):
            tpl.mutate(Mutation.insertion(5, "A"))

    def test_cannot_empty_template(self, model):
        tpl = Template("AC", model)
        with pytest.raises(ValueError, match="empty"):
            tpl.mutate(Mutation.deletion(0, 2))


class TestCommittedMutations:
    """Test permanent edits."""

    def test_apply_mutation(self, model):
        tpl = Template(SEQUENCE, model)
        m = Mutation.deletion(4)
        tpl.apply_mutation(m)

        assert tpl.sequence == m.apply_to(SEQUENCE)
        assert list(tpl.positions) == model.populate(tpl.sequence)

    def test_batch_uses_original_coordinates(self, model):
        tpl = Template("AAAACCCCGGGG", model)
        tpl.apply_mutations([
            Mutation.substitution(0, "T"),
            Mutation.insertion(4, "TT"),
            Mutation.deletion(8, 2),
        ])
        assert tpl.sequence == "TAAATTCCCCGG"

    def test_batch_rejects_overlap(self, model):
        tpl = Template(SEQUENCE, model)
        with pytest.raises(ValueError, match="Overlapping"):
            tpl.apply_mutations([Mutation.deletion(2, 3), Mutation.substitution(3, "A")])
        assert tpl.sequence == SEQUENCE

    def test_batch_out_of_range(self, model):
        tpl = Template("ACGT", model)
        with pytest.raises(ValueError):
            tpl.apply_mutations([Mutation.substitution(0, "T"), Mutation.deletion(4)])
        assert tpl.sequence == "ACGT"


class TestNormalParameters:
    """Test the model-predicted log-likelihood distribution."""

    def test_single_base(self, model):
        from arrowml.models.base import MomentType, MoveType

        tpl = Template("G", model)
        mean, var = tpl.normal_parameters()

        e1 = model.expected_ll_for_emission(MoveType.MATCH, 2, 2, MomentType.FIRST)
        e2 = model.expected_ll_for_emission(MoveType.MATCH, 2, 2, MomentType.SECOND)
        assert mean == pytest.approx(e1)
        assert var == pytest.approx(e2 - e1 * e1)

    def test_grows_with_length(self, model):
        tpl = Template(SEQUENCE, model)
        mean_short, var_short = tpl.normal_parameters(0, 4)
        mean_full, var_full = tpl.normal_parameters()

        assert mean_full < mean_short < 0
        assert var_full > var_short > 0
        assert math.isfinite(mean_full) and math.isfinite(var_full)

    def test_invalid_window(self, model):
        tpl = Template(SEQUENCE, model)
        with pytest.raises(ValueError):
            tpl.normal_parameters(5, 5)
        with pytest.raises(ValueError):
            tpl.normal_parameters(0, 40)
