"""Helpers to pull text and token usage out of Responses API results."""

from __future__ import annotations

from typing import Any, Dict


def _field(obj: Any, name: str, default: Any = None) -> Any:
	if isinstance(obj, dict):
		return obj.get(name, default)
	return getattr(obj, name, default)


def extract_text(response: Any) -> str:
	"""Return the concatenated output_text parts of the first message item."""
	for item in _field(response, "output", None) or []:
		if _field(item, "type") != "message":
			continue
		parts = [
			_field(content, "text", "") or ""
			for content in _field(item, "content", None) or []
			if _field(content, "type") == "output_text"
		]
		if parts:
			return "".join(parts)
	return _field(response, "output_text", "") or ""


def extract_usage(response: Any) -> Dict[str, int]:
	"""Return input/output token counts, zero when the provider omits usage."""
	usage = _field(response, "usage", None)
	input_tokens = _field(usage, "input_tokens", 0) if usage is not None else 0
	output_tokens = _field(usage, "output_tokens", 0) if usage is not None else 0
	return {
		"input_tokens": int(input_tokens or 0),
		"output_tokens": int(output_tokens or 0),
	}
