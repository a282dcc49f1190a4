"""
Unit tests for template edits.
"""

import pytest

from arrowml.core.mutation import Mutation, MutationType, enumerate_mutations


class TestMutationFactories:
    """Test construction and validation."""

    def test_insertion(self):
        m = Mutation.insertion(3, "ga")
        assert m.type == MutationType.INSERTION
        assert (m.start, m.end, m.bases) == (3, 3, "GA")
        assert m.length_diff == 2

    def test_deletion(self):
        m = Mutation.deletion(2, length=3)
        assert m.type == MutationType.DELETION
        assert (m.start, m.end, m.bases) == (2, 5, "")
        assert m.length_diff == -3

    def test_substitution(self):
        m = Mutation.substitution(4, "T")
        assert m.type == MutationType.SUBSTITUTION
        assert (m.start, m.end) == (4, 5)
        assert m.length_diff == 0

    def test_type_from_string(self):
        m = Mutation(1, 1, "A", "insertion")
        assert m.type is MutationType.INSERTION

    @pytest.mark.parametrize("args", [
        (-1, 0, "A", MutationType.SUBSTITUTION),
        (3, 2, "", MutationType.DELETION),
        (2, 3, "A", MutationType.INSERTION),
        (2, 2, "", MutationType.INSERTION),
        (2, 2, "", MutationType.DELETION),
        (2, 3, "C", MutationType.DELETION),
        (2, 4, "C", MutationType.SUBSTITUTION),
        (2, 3, "N", MutationType.SUBSTITUTION),
    ])
    def test_invalid(self, args):
        with pytest.raises(ValueError):
            Mutation(*args)

    def test_frozen(self):
        m = Mutation.substitution(0, "A")
        with pytest.raises(AttributeError):
            m.start = 1


class TestMutationOperations:
    """Test applying, shifting and comparing edits."""

    @pytest.mark.parametrize("mutation,expected", [
        (Mutation.insertion(0, "T"), "TACGT"),
        (Mutation.insertion(4, "T"), "ACGTT"),
        (Mutation.insertion(2, "TT"), "ACTTGT"),
        (Mutation.deletion(0), "CGT"),
        (Mutation.deletion(1, 2), "AT"),
        (Mutation.substitution(3, "A"), "ACGA"),
        (Mutation.substitution(1, "GG"), "AGGT"),
    ])
    def test_apply_to(self, mutation, expected):
        assert mutation.apply_to("ACGT") == expected

    def test_apply_out_of_range(self):
        with pytest.raises(ValueError):
            Mutation.deletion(4).apply_to("ACGT")

    def test_shifted(self):
        m = Mutation.substitution(5, "C").shifted(-3)
        assert m == Mutation.substitution(2, "C")
        assert m.type == MutationType.SUBSTITUTION

    def test_ordering(self):
        ms = [Mutation.deletion(5), Mutation.insertion(2, "A"), Mutation.substitution(2, "C")]
        assert [m.start for m in sorted(ms)] == [2, 2, 5]
        assert sorted(ms)[0].type == MutationType.INSERTION

    def test_overlaps(self):
        sub = Mutation.substitution(2, "A")
        assert sub.overlaps(Mutation.deletion(2))
        assert sub.overlaps(Mutation.insertion(2, "C"))
        assert not sub.overlaps(Mutation.insertion(3, "C"))
        assert not sub.overlaps(Mutation.substitution(3, "C"))
        assert Mutation.deletion(1, 3).overlaps(Mutation.insertion(2, "T"))

    def test_str(self):
        assert str(Mutation.insertion(1, "A")) == "ins(1, A)"
        assert str(Mutation.deletion(1, 2)) == "del(1, 3)"
        assert str(Mutation.substitution(4, "G")) == "sub(4, G)"


class TestEnumerateMutations:
    """Test exhaustive single-base edit generation."""

    def test_count(self):
        # 5 insertion slots; every slot after the first skips the base before it
        mutations = enumerate_mutations("ACGT")
        subs = [m for m in mutations if m.type == MutationType.SUBSTITUTION]
        dels = [m for m in mutations if m.type == MutationType.DELETION]
        ins = [m for m in mutations if m.type == MutationType.INSERTION]

        assert len(subs) == 12
        assert len(dels) == 4
        assert len(ins) == 4 + 4 * 3

    def test_every_edit_changes_sequence(self):
        seq = "AACGTT"
        for m in enumerate_mutations(seq):
            assert m.apply_to(seq) != seq

    def test_insertions_are_distinct(self):
        seq = "AACGTT"
        results = [m.apply_to(seq) for m in enumerate_mutations(seq)
                   if m.type == MutationType.INSERTION]
        assert len(results) == len(set(results))

    def test_window(self):
        mutations = enumerate_mutations("ACGTACGT", start=2, end=4)
        assert min(m.start for m in mutations) == 2
        assert max(m.end for m in mutations) == 4
        assert all(m.start <= 4 for m in mutations)
