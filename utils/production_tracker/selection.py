# utils/production_tracker/selection.py
"""
Entry-form selection state for Production Tracker.

The project / task / agent selection and the base target derived from it
live in one immutable TrackerSelection. Every change goes through
reduce_selection(), so the target always matches the current project,
task and agent:

    field changed | next state
    --------------+------------------------------------------------------
    project_id    | keep task only if it is in the new project; new target
    task_id       | set task; new target
    agent_id      | set agent; new target from that agent's tenure
    reset         | empty selection
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from .formatters import normalize_id
from .metrics import agent_tenure, compute_base_target, find_agent, find_task

logger = logging.getLogger(__name__)

FIELD_PROJECT = 'project_id'
FIELD_TASK = 'task_id'
FIELD_AGENT = 'agent_id'
FIELD_RESET = 'reset'


@dataclass(frozen=True)
class TrackerSelection:
    project_id: Optional[str] = None
    task_id: Optional[str] = None
    agent_id: Optional[str] = None
    base_target: Optional[float] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.project_id and self.task_id and self.base_target is not None)


def _recompute(
    selection: TrackerSelection,
    projects: List[Dict],
    agents: Optional[List[Dict]],
    default_tenure: Any
) -> TrackerSelection:
    task = find_task(projects, selection.project_id, selection.task_id)
    if task is None:
        # A task that no longer belongs to the project is cleared with its target
        return replace(selection, task_id=None, base_target=None)

    tenure = default_tenure
    if selection.agent_id:
        tenure = agent_tenure(find_agent(agents, selection.agent_id))

    return replace(selection, base_target=compute_base_target(task, tenure))


def reduce_selection(
    selection: TrackerSelection,
    field: str,
    value: Any,
    projects: List[Dict],
    agents: Optional[List[Dict]] = None,
    default_tenure: Any = None
) -> TrackerSelection:
    """
    Apply one field change and return the next selection.

    Args:
        selection: Current selection
        field: 'project_id', 'task_id', 'agent_id' or 'reset'
        value: New value for the field (ignored for 'reset')
        projects: "projects with tasks" dropdown data
        agents: Agent dropdown data (user_id, user_tenure)
        default_tenure: Tenure used when no agent is selected, i.e. an
            agent logging their own production

    Returns:
        New TrackerSelection; the input is never modified
    """
    if field == FIELD_RESET:
        return TrackerSelection()

    new_value = normalize_id(value) or None

    if field == FIELD_PROJECT:
        next_selection = replace(selection, project_id=new_value)
    elif field == FIELD_TASK:
        next_selection = replace(selection, task_id=new_value)
    elif field == FIELD_AGENT:
        next_selection = replace(selection, agent_id=new_value)
    else:
        logger.warning(f"Unknown selection field: {field!r}")
        return selection

    return _recompute(next_selection, projects, agents, default_tenure)


def reconcile_filter_selection(filters, tasks: List[Dict]):
    """
    Clear the filter bar's task when it is not among `tasks`.

    Args:
        filters: TrackerFilterValues
        tasks: Task options currently offered for the selected project
    """
    task_id = normalize_id(filters.task_id)
    if not task_id:
        return filters

    offered = {normalize_id(t.get('task_id')) for t in tasks or []}
    if task_id in offered:
        return filters

    logger.debug(f"Clearing task filter {task_id}: not in project {filters.project_id}")
    return filters.with_changes(task_id=None)
