import math

import pytest
import torch

from neuraltree.logexp import log_exp_sum, log_exp_sum_all


def _naive(v1, v2):
    return torch.log(torch.exp(v1) + torch.exp(v2))


class TestLogExpSum:

    def test_symmetric(self):
        v1 = torch.randn(6) * 5
        v2 = torch.randn(6) * 5
        assert torch.equal(log_exp_sum(v1, v2), log_exp_sum(v2, v1))

    def test_same_vector_adds_log_two(self):
        v = torch.randn(5, dtype=torch.float64) * 3
        out = log_exp_sum(v, v)
        assert torch.allclose(out, v + math.log(2.0), atol=1e-12)

    @pytest.mark.parametrize("scale", [0.1, 1.0, 5.0, 20.0])
    def test_matches_naive_formula_for_small_magnitudes(self, scale):
        v1 = (torch.rand(10, dtype=torch.float64) * 2 - 1) * scale
        v2 = (torch.rand(10, dtype=torch.float64) * 2 - 1) * scale
        assert torch.allclose(log_exp_sum(v1, v2), _naive(v1, v2), atol=1e-9)

    @pytest.mark.parametrize("magnitude", [1e2, 1e3, 1e4])
    def test_large_magnitudes_stay_finite(self, magnitude):
        # naive exp() overflows here
        v1 = magnitude + torch.randn(8)
        v2 = magnitude + torch.randn(8)
        assert torch.isinf(_naive(v1, v2)).any()

        out = log_exp_sum(v1, v2)
        assert torch.isfinite(out).all()
        expected = torch.maximum(v1, v2) + torch.log1p(torch.exp(-(v1 - v2).abs()))
        assert torch.allclose(out, expected, rtol=1e-6)

    def test_wide_spread_within_vector_underflows(self):
        # Known limitation: one shift is shared by the whole vector, so an
        # entry far below the largest magnitude underflows to -inf even though
        # the naive formula is still representable.
        v = torch.tensor([500.0, -500.0], dtype=torch.float64)
        out = log_exp_sum(v, v)
        assert out[0].item() == pytest.approx(500.0 + math.log(2.0))
        assert out[1].item() == float("-inf")
        assert torch.isfinite(_naive(v, v)).all()

    def test_shape_mismatch_rejected(self):
        with pytest.raises(ValueError):
            log_exp_sum(torch.zeros(3), torch.zeros(4))

    def test_rows_of_a_batch_are_independent(self):
        a = torch.randn(3, 5) * 4
        b = torch.randn(3, 5) * 4
        batched = log_exp_sum(a, b)
        for i in range(3):
            assert torch.allclose(batched[i], log_exp_sum(a[i], b[i]))

    def test_gradients_match_finite_differences(self):
        v1 = torch.randn(4, dtype=torch.float64, requires_grad=True)
        v2 = torch.randn(4, dtype=torch.float64, requires_grad=True)
        assert torch.autograd.gradcheck(log_exp_sum, (v1, v2))


class TestLogExpSumAll:

    def test_fold_matches_logsumexp(self):
        vecs = [torch.randn(5, dtype=torch.float64) for _ in range(4)]
        expected = torch.logsumexp(torch.stack(vecs), dim=0)
        assert torch.allclose(log_exp_sum_all(vecs), expected, atol=1e-12)

    def test_single_vector_is_returned_unchanged(self):
        v = torch.randn(3)
        assert log_exp_sum_all([v]) is v

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            log_exp_sum_all([])
