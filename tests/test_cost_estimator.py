import pytest

from services.openai.cost_estimator import CostEstimator


def test_estimate_prices_input_and_output_separately():
    estimator = CostEstimator()
    assert estimator.estimate(2_000, 1_000, "gpt-5") == pytest.approx(0.0025 + 0.01)
    assert estimator.estimate(0, 0, "GPT-5") == 0


def test_blended_estimate_splits_total_evenly():
    estimator = CostEstimator({"tiny": {"input": 1.0, "output": 3.0}})
    assert estimator.estimate_blended(2_000, "tiny") == pytest.approx(1.0 + 3.0)


def test_rejects_unknown_model_and_negative_counts():
    estimator = CostEstimator()
    with pytest.raises(ValueError):
        estimator.estimate(1, 1, "unknown-model")
    with pytest.raises(ValueError):
        estimator.estimate(-1, 0, "gpt-5")
