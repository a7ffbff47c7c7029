"""Load JSONL workflow definitions into WorkflowDef objects."""

from __future__ import annotations

import json
from pathlib import Path

from mortgage_assistant.workflows.schema import StageDef, WorkflowDef


def load_workflow_jsonl(path: str | Path) -> WorkflowDef:
    """Load a single workflow from a JSONL file.

    The JSONL file contains exactly one JSON object (the workflow).
    Stages are nested inside the top-level ``states`` dict.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8").strip()

    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        return parse_workflow(json.loads(line))

    raise ValueError(f"No workflow found in {path}")


def parse_workflow(data: dict) -> WorkflowDef:
    """Parse a raw dict into a WorkflowDef and check its stage references."""
    raw_states = data.get("states", {})
    states: dict[str, StageDef] = {}
    for state_id, state_data in raw_states.items():
        if isinstance(state_data, dict):
            state_data.setdefault("id", state_id)
            states[state_id] = StageDef(**state_data)
        else:
            states[state_id] = state_data

    data["states"] = states
    workflow = WorkflowDef(**data)
    _check_references(workflow)
    return workflow


def _check_references(workflow: WorkflowDef) -> None:
    """Every stage a workflow points at must exist."""
    if workflow.initial_state not in workflow.states:
        raise ValueError(
            f"Workflow {workflow.id}: initial state {workflow.initial_state!r} is not defined"
        )

    for stage in workflow.states.values():
        targets = [stage.next_stage] if stage.next_stage else []
        targets += [t.split(":", 1)[0] for t in stage.transitions.values()]
        for target in targets:
            if target not in workflow.states:
                raise ValueError(
                    f"Workflow {workflow.id}: stage {stage.id!r} points at unknown stage {target!r}"
                )
        if stage.step_type == "input" and not stage.field:
            raise ValueError(f"Workflow {workflow.id}: input stage {stage.id!r} has no field")
