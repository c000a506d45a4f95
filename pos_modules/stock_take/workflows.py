"""
Stock-Take Workflow.

State machine for a counting session: open while counts are entered, then
closed for good by finalize or cancel.
"""

from pos_kernel.domain.workflow import Guard, Transition, Workflow
from pos_kernel.exceptions import SessionClosedError
from pos_kernel.logging_config import get_logger

logger = get_logger("modules.stock_take.workflows")


IN_PROGRESS = "in_progress"
COMPLETED = "completed"
CANCELLED = "cancelled"

RECORD_COUNT = "record_count"
FINALIZE = "finalize"
CANCEL = "cancel"


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

HAS_VARIANCE = Guard(
    name="has_variance",
    description="At least one counted line differs from its snapshot",
)

USER_CONFIRMED = Guard(
    name="user_confirmed",
    description="User explicitly confirmed discarding the counts",
)

logger.info(
    "stock_take_workflow_guards_defined",
    extra={
        "guards": [
            HAS_VARIANCE.name,
            USER_CONFIRMED.name,
        ],
    },
)


# -----------------------------------------------------------------------------
# Stock Take Workflow
# -----------------------------------------------------------------------------

STOCK_TAKE_WORKFLOW = Workflow(
    name="stock_take",
    description="Physical stock count and reconciliation",
    initial_state=IN_PROGRESS,
    states=(
        IN_PROGRESS,
        COMPLETED,
        CANCELLED,
    ),
    transitions=(
        Transition(IN_PROGRESS, IN_PROGRESS, action=RECORD_COUNT),
        Transition(IN_PROGRESS, COMPLETED, action=FINALIZE, guard=HAS_VARIANCE, mutates_inventory=True),
        Transition(IN_PROGRESS, CANCELLED, action=CANCEL, guard=USER_CONFIRMED),
    ),
    terminal_states=(COMPLETED, CANCELLED),
)

logger.info(
    "stock_take_workflow_registered",
    extra={
        "workflow_name": STOCK_TAKE_WORKFLOW.name,
        "state_count": len(STOCK_TAKE_WORKFLOW.states),
        "transition_count": len(STOCK_TAKE_WORKFLOW.transitions),
        "initial_state": STOCK_TAKE_WORKFLOW.initial_state,
    },
)


def require_transition(stock_take_id: str, status: str, action: str) -> Transition:
    """
    Look up the transition for ``action`` out of ``status``.

    Raises:
        SessionClosedError: ``status`` has no such transition (terminal).
    """
    transition = STOCK_TAKE_WORKFLOW.find_transition(status, action)
    if transition is None:
        logger.warning("stock_take_transition_rejected", extra={
            "stock_take_id": stock_take_id,
            "status": status,
            "action": action,
        })
        raise SessionClosedError(stock_take_id, status, action)
    return transition
