from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PageIntent:
    primary_goal: Optional[str] = None
    target_audience: Optional[str] = None
    calls_to_action: List[str] = field(default_factory=list)

    @classmethod
    def from_config(cls, intent: Optional[Dict[str, Any]]) -> "PageIntent":
        intent = intent or {}
        return cls(
            primary_goal=intent.get("primaryGoal"),
            target_audience=intent.get("targetAudience"),
            calls_to_action=list(intent.get("callsToAction") or []),
        )


@dataclass
class PageContext:
    """Business and page facts used to ground the drafting assistant.

    Attributes:
        business_name: Display name of the business.
        industry: Industry or category.
        business_description: Free-text description from onboarding.
        page_title: Title of the page being drafted.
        intent: Goal, audience and calls to action captured for the page.
    """

    business_name: str
    industry: str
    business_description: str
    page_title: str
    intent: PageIntent = field(default_factory=PageIntent)


@dataclass
class AIReply:
    """Assistant text plus the tokens the call consumed (input + output)."""

    content: str
    tokens_used: int
