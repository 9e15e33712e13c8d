"""Deterministic substitutes for LLM output when the provider is unavailable."""

from ..models import WorkflowStep

FALLBACK_MARKER = "[FALLBACK]"

SUMMARY_INSIGHTS = (
    "technology adoption is accelerating across the collected sources",
    "distributed agent architectures recur as a common pattern",
    "data quality remains the main operational concern",
)

STRATEGIC_RECOMMENDATION = (
    "Break the objective into measurable milestones and assign each one to the "
    "agent best suited to it. Review progress against the collected data before "
    "committing further resources."
)

FALLBACK_WORKFLOW = (
    WorkflowStep(
        step_id="collect",
        agent_type="data_collector",
        action="collect_data",
        inputs=["task_description"],
        outputs=["raw_data"],
    ),
    WorkflowStep(
        step_id="process",
        agent_type="data_processor",
        action="process_data",
        inputs=["raw_data"],
        outputs=["processed_data"],
    ),
    WorkflowStep(
        step_id="summarize",
        agent_type="summarizer",
        action="summarize_data",
        inputs=["processed_data"],
        outputs=["summary"],
    ),
    WorkflowStep(
        step_id="validate",
        agent_type="validator",
        action="validate_results",
        inputs=["summary"],
        outputs=["validated_report"],
    ),
)


def is_fallback(content: object) -> bool:
    """True when content was produced by fallback synthesis."""
    return isinstance(content, str) and content.startswith(FALLBACK_MARKER)


def fallback_summary(item_count: int) -> str:
    insights = "; ".join(SUMMARY_INSIGHTS)
    return (
        f"{FALLBACK_MARKER} Summary of {item_count} data items. "
        f"Key insights: {insights}."
    )


def fallback_workflow() -> list[WorkflowStep]:
    """The generic collect -> process -> summarize -> validate pipeline."""
    return list(FALLBACK_WORKFLOW)


def fallback_reasoning(prompt: str) -> str:
    return (
        f'{FALLBACK_MARKER} Analysis of the request "{prompt}". '
        f"Strategic recommendation: {STRATEGIC_RECOMMENDATION}"
    )
