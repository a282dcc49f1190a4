"""
Unit tests for chemistry models and the model registry.
"""

import math

import numpy as np
import pytest

from arrowml.io.reads import MappedRead
from arrowml.models import (
    ModelConfig,
    MomentType,
    MoveType,
    P1C1v2Model,
    SNR,
    available_models,
    get_model,
    register_model,
)
from arrowml.models import p1c1v2, registry


class TestRegistry:
    """Test model lookup by name."""

    def test_available(self):
        assert "S/P1-C1.2" in available_models()

    def test_lookup_case_insensitive(self, snr):
        model = get_model("s/p1-c1.2", snr)
        assert isinstance(model, P1C1v2Model)
        assert model.name == "S/P1-C1.2"

    def test_lookup_with_sequence_snr(self):
        model = get_model("S/P1-C1.2", [10, 7, 5, 11])
        assert model.snr == SNR(10.0, 7.0, 5.0, 11.0)

    def test_unknown_model(self, snr):
        with pytest.raises(ValueError, match="Unknown model 'XYZ'. Valid models: S/P1-C1.2"):
            get_model("XYZ", snr)

    def test_bad_snr(self):
        with pytest.raises(ValueError):
            get_model("S/P1-C1.2", [1.0, 2.0])

    def test_register_new_model(self, monkeypatch):
        monkeypatch.setattr(registry, "_MODELS", dict(registry._MODELS))

        @register_model
        class OtherModel(P1C1v2Model):
            @classmethod
            def names(cls):
                return {"Other/Chem"}

        assert "Other/Chem" in available_models()
        assert isinstance(get_model("other/chem", [8, 8, 8, 8]), OtherModel)

    def test_conflicting_registration(self, monkeypatch):
        monkeypatch.setattr(registry, "_MODELS", dict(registry._MODELS))

        class Impostor(ModelConfig):
            @classmethod
            def names(cls):
                return {"S/P1-C1.2"}

        with pytest.raises(ValueError, match="already registered"):
            register_model(Impostor)


class TestP1C1v2Model:
    """Test the S/P1-C1.2 tables."""

    def test_transition_parameters_normalised(self, model):
        for prev in range(4):
            for curr in range(4):
                params = model.transition_parameters(prev, curr)
                assert len(params) == 4
                assert all(p > 0 for p in params)
                assert sum(params) == pytest.approx(1.0)

    def test_snr_clipped(self):
        high = P1C1v2Model(SNR(100.0, 100.0, 100.0, 100.0))
        upper = P1C1v2Model(SNR(*p1c1v2.SNR_RANGES[:, 1]))
        for ctx in range(16):
            prev, curr = ctx >> 2, ctx & 3
            assert high.transition_parameters(prev, curr) == pytest.approx(
                upper.transition_parameters(prev, curr)
            )

    def test_populate_contexts(self, model):
        positions = model.populate("ACGT")
        assert [p.idx for p in positions] == [0, 1, 2, 3]
        assert positions[1].match == model.transition_parameters(1, 2)[0]
        assert positions[-1].match == 1.0
        assert model.populate("") == []

    def test_emission_tables(self, model):
        for move in (MoveType.MATCH, MoveType.BRANCH, MoveType.STICK):
            table = model.emission_table(move, 1, 3)
            assert table.shape == (p1c1v2.N_OUTCOMES,)
            assert np.all(table > 0)
        assert model.emission_pr(MoveType.MATCH, 9, 1, 1) == pytest.approx(
            p1c1v2.MATCH_PMF[5, 9] * model.counter_weight
        )

    def test_deletion_does_not_emit(self, model):
        with pytest.raises(ValueError):
            model.emission_table(MoveType.DELETION, 0, 0)
        with pytest.raises(ValueError):
            model.emission_pr(MoveType.DELETION, 0, 0, 0)

    def test_undo_counter_weights(self, model):
        assert model.undo_counter_weights(10) == pytest.approx(-10 * math.log(20.0))
        assert model.undo_counter_weights(0) == 0.0

    def test_expected_ll_moments(self, model):
        pmf = p1c1v2.MATCH_PMF[6]
        e1 = model.expected_ll_for_emission(MoveType.MATCH, 1, 2, MomentType.FIRST)
        e2 = model.expected_ll_for_emission(MoveType.MATCH, 1, 2, MomentType.SECOND)

        assert e1 == pytest.approx(float(np.sum(pmf * np.log(pmf))))
        assert e2 == pytest.approx(float(np.sum(pmf * np.log(pmf) ** 2)))
        assert e2 > e1 * e1


class TestReadEncoding:
    """Test base/pulse-width encoding."""

    def test_codes(self, model):
        read = MappedRead("r", "ACGTA", [1, 2, 3, 9, 1], (8, 8, 8, 8))
        codes = model.encode_read(read)

        assert codes.dtype == np.uint8
        assert codes.tolist() == [0, 5, 10, 11, 0]

    def test_invalid_pulse_width(self, model):
        read = MappedRead("r", "AC", [1, 0], (8, 8, 8, 8))
        with pytest.raises(ValueError, match="invalid pulse width"):
            model.encode_read(read)

    def test_encoding_overflow(self, model, monkeypatch):
        monkeypatch.setattr(p1c1v2, "N_OUTCOMES", 8)
        read = MappedRead("r", "AC", [3, 3], (8, 8, 8, 8))
        with pytest.raises(RuntimeError, match="read encoding error"):
            model.encode_read(read)
