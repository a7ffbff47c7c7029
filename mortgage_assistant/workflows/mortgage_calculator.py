"""Mortgage calculator chat workflow.

Loads the stage table from ``mortgage_calculator.jsonl``; every
``Stage`` must have a definition.
"""

from __future__ import annotations

from pathlib import Path

from mortgage_assistant.models.conversation import Stage
from mortgage_assistant.workflows.loader import load_workflow_jsonl
from mortgage_assistant.workflows.schema import WorkflowDef

_JSONL_PATH = Path(__file__).resolve().parent / "mortgage_calculator.jsonl"


def _check_stages(wf: WorkflowDef) -> None:
    missing = [stage.value for stage in Stage if stage.value not in wf.states]
    if missing:
        raise ValueError(f"Workflow {wf.id} is missing stages: {', '.join(missing)}")


WORKFLOW_DEF: WorkflowDef = load_workflow_jsonl(_JSONL_PATH)
_check_stages(WORKFLOW_DEF)
