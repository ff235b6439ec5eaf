"""Operational status for the dashboard."""

from __future__ import annotations

import asyncio
import shutil
import time
from pathlib import Path
from typing import Any, Dict

from fastapi import Request

from services.openai.cost_estimator import CostEstimator
from services.rate_limiter import RateLimiter
from services.session_manager import SessionManager


def static_output_status(public_dir: Path) -> str:
    """'running' when the public folder has content, 'stopped' when empty, else 'error'."""
    try:
        has_files = any(public_dir.iterdir())
    except OSError:
        return "error"
    return "running" if has_files else "stopped"


def disk_usage(path: Path) -> Dict[str, int]:
    # fall back to the closest existing parent so a fresh install still reports
    target = path
    while not target.exists() and target != target.parent:
        target = target.parent
    usage = shutil.disk_usage(target)
    return {"total": usage.total, "used": usage.used, "available": usage.free}


async def get_status(request: Request) -> Dict[str, Any]:
    state = request.app.state
    limiter: RateLimiter = state.rate_limiter
    manager: SessionManager = state.session_manager
    estimator: CostEstimator = state.cost_estimator
    public_dir: Path = state.settings.public_dir

    tokens = limiter.get_monthly_token_usage()
    try:
        cost = estimator.estimate_blended(tokens, state.settings.openai_model)
    except ValueError:
        # unknown model name: report usage without a price
        cost = None

    return {
        "success": True,
        "status": {
            "staticServer": {
                "status": await asyncio.to_thread(static_output_status, public_dir),
                "uptime": int(time.monotonic() - state.started_at),
            },
            "apiUsage": {
                "requestsThisMinute": limiter.get_current_request_rate(),
                "queueLength": limiter.get_queue_length(),
                "tokensThisMonth": tokens,
                "monthlyTokenThreshold": limiter.monthly_token_threshold,
                "estimatedCost": cost,
            },
            "activeSessions": [
                {
                    "pageId": session.page_id,
                    "sessionId": session.session_id,
                    "startedAt": session.started_at.isoformat(),
                    "messages": len(session.conversation_history),
                }
                for session in manager.get_all_sessions()
            ],
            "diskUsage": await asyncio.to_thread(disk_usage, public_dir),
        },
    }
