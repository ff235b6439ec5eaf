"""Dollar estimates for the monthly token spend shown on the status page."""

from __future__ import annotations

from typing import Dict, Optional

# USD per 1,000 tokens; update when provider pricing changes
DEFAULT_PRICING: Dict[str, Dict[str, float]] = {
    "gpt-5": {"input": 0.00125, "output": 0.01},
    "gpt-5-mini": {"input": 0.00025, "output": 0.002},
    "gpt-4.1": {"input": 0.002, "output": 0.008},
}


class CostEstimator:
    """Price token counts against a per-model rate table."""

    def __init__(self, pricing: Optional[Dict[str, Dict[str, float]]] = None) -> None:
        self.pricing = pricing or dict(DEFAULT_PRICING)

    def _rates(self, model: str) -> Dict[str, float]:
        try:
            return self.pricing[model.lower()]
        except KeyError:
            raise ValueError(f"No pricing for model {model!r}; known: {', '.join(sorted(self.pricing))}") from None

    def estimate(self, input_tokens: int, output_tokens: int, model: str) -> float:
        """Cost in USD of one input/output split. Raises ValueError for negative counts or unknown models."""
        if input_tokens < 0 or output_tokens < 0:
            raise ValueError("Token counts cannot be negative.")
        rates = self._rates(model)
        cost = input_tokens / 1000 * rates["input"] + output_tokens / 1000 * rates["output"]
        return round(cost, 8)

    def estimate_blended(self, total_tokens: int, model: str) -> float:
        # only the combined monthly count is tracked, so assume an even split
        input_tokens = total_tokens // 2
        return self.estimate(input_tokens, total_tokens - input_tokens, model)
