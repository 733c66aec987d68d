"""Insight models produced by the insight extractor."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class Insights(BaseModel):
    """Structured insights pulled from a session transcript.

    Recomputed from the full history on every document request. Set-like
    categories (goals, metrics, timeline) are de-duplicated lists kept in
    first-seen order so rendering is stable.
    """

    model_config = ConfigDict(frozen=True)

    goals: List[str] = Field(default_factory=list)
    challenged_assumptions: List[str] = Field(default_factory=list)
    key_decisions: List[str] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)
    risk_factors: List[str] = Field(default_factory=list)
    metrics: List[str] = Field(default_factory=list)
    timeline: List[str] = Field(default_factory=list)
