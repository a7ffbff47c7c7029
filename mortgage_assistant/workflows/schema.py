"""Pydantic models for the chat workflow definition.

A workflow is a set of stages. ``input`` stages collect one numeric
loan field and move to ``next_stage`` when the answer is in bounds;
``choice`` stages route free text by intent through ``transitions``.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class StageDef(BaseModel):
    """One stage in the mortgage conversation."""

    id: str
    step_type: str = "input"               # "input" or "choice"
    prompt_key: str = ""                   # Reply key used when entering this stage

    # Input stages
    field: Optional[str] = None            # ConversationState field to fill
    parse: str = "float"                   # "float" or "int"
    min_value: Optional[float] = None
    min_inclusive: bool = True
    max_value: Optional[float] = None
    max_inclusive: bool = True
    max_field: Optional[str] = None        # exclusive upper bound read from state
    invalid_key: str = ""
    help_key: str = ""
    next_stage: str = ""
    handler: Optional[str] = None          # "calculate" computes the breakdown

    # Choice stages
    transitions: dict[str, str] = {}       # intent -> "stage" or "stage:reply_key"
    reset_intents: list[str] = []          # intents that clear collected fields


class WorkflowDef(BaseModel):
    """A complete conversation workflow."""

    id: str
    initial_state: str = ""
    opening_key: str = ""
    fallback_key: str = "fallback"
    states: dict[str, StageDef] = {}
