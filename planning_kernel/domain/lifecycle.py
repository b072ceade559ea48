"""
Lifecycle workflows for directory entities and downtime records.

``DIRECTORY_WORKFLOW`` governs Location, Division and Line soft delete.
``DOWNTIME_WORKFLOW`` governs the downtime approval path.  Services call
``require_transition`` before writing a state change.
"""

from planning_kernel.domain.values import DowntimeStatus, LifecycleState
from planning_kernel.domain.workflow import Guard, Transition, Workflow
from planning_kernel.exceptions import LifecycleTransitionError

DIRECTORY_WORKFLOW = Workflow(
    name="directory_entity",
    description="Soft-delete lifecycle of locations, divisions and lines",
    initial_state=LifecycleState.ACTIVE.value,
    states=(LifecycleState.ACTIVE.value, LifecycleState.INACTIVE.value),
    transitions=(
        Transition(
            from_state=LifecycleState.ACTIVE.value,
            to_state=LifecycleState.INACTIVE.value,
            action="deactivate",
        ),
        Transition(
            from_state=LifecycleState.INACTIVE.value,
            to_state=LifecycleState.ACTIVE.value,
            action="reactivate",
        ),
    ),
)

DOWNTIME_WORKFLOW = Workflow(
    name="line_downtime",
    description="Approval lifecycle of a scheduled downtime window",
    initial_state=DowntimeStatus.PENDING.value,
    states=(
        DowntimeStatus.PENDING.value,
        DowntimeStatus.APPROVED.value,
        DowntimeStatus.CANCELLED.value,
    ),
    transitions=(
        Transition(
            from_state=DowntimeStatus.PENDING.value,
            to_state=DowntimeStatus.APPROVED.value,
            action="approve",
            guard=Guard(
                name="approver_present",
                description="approved_by must name the approving user",
            ),
        ),
        Transition(
            from_state=DowntimeStatus.PENDING.value,
            to_state=DowntimeStatus.CANCELLED.value,
            action="cancel",
        ),
    ),
    terminal_states=(DowntimeStatus.APPROVED.value, DowntimeStatus.CANCELLED.value),
)


def require_transition(
    workflow: Workflow,
    entity_type: str,
    entity_id: object,
    state: str,
    action: str,
) -> Transition:
    """Return the transition for ``action`` or raise LifecycleTransitionError."""
    transition = workflow.find_transition(state, action)
    if transition is None:
        raise LifecycleTransitionError(
            entity_type=entity_type,
            entity_id=str(entity_id),
            state=state,
            action=action,
        )
    return transition
