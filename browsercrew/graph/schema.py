"""Structured output schemas for the coordinator's model calls."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class ReflectionModel(BaseModel):
    cause_analysis: str = Field(description="Root cause of the error, based on the error details and the page.")
    alternative_approaches: List[str] = Field(
        default_factory=list,
        max_length=3,
        description="Up to three different approaches, each phrased as a concrete tool call.",
    )


class QAVerdictModel(BaseModel):
    is_success: bool = Field(description="True only if the success criteria are clearly met.")
    reasoning: str = Field(description="One or two sentences explaining the verdict.")
