"""Logging utilities for browsercrew."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from browsercrew.utils.redaction import redact

ROOT_LOGGER_NAME = "browsercrew"


def setup_logging(level: int = logging.INFO, log_dir: str = "logs") -> logging.Logger:
    """Setup logging configuration for browsercrew.

    Detailed records go to a timestamped file under ``log_dir``; only warnings
    and errors reach the console.

    Args:
        level: Level of the file handler (default: INFO)
        log_dir: Directory for log files

    Returns:
        Configured logger instance
    """
    logs_path = Path(log_dir)
    logs_path.mkdir(parents=True, exist_ok=True)
    log_file = logs_path / f"browsercrew_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)  # Set to DEBUG to capture all child logs
    logger.propagate = False

    # Clear existing handlers
    logger.handlers = []

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    logger.info("=" * 80)
    logger.info("browsercrew session started")
    logger.info(f"Log file: {log_file}")
    logger.info("=" * 80)

    return logger


def _preview(value: Any, limit: int = 500) -> str:
    text = value if isinstance(value, str) else str(value)
    if len(text) > limit:
        return text[:limit] + "... (truncated)"
    return text


def log_tool_call(logger: logging.Logger, tool_name: str, args: Dict[str, Any]) -> None:
    """Log tool invocation. Credential-like arguments are masked."""
    logger.info(f"Tool call: {tool_name}")
    logger.debug(f"  Arguments: {json.dumps(redact(args), ensure_ascii=False, default=str)}")


def log_tool_result(logger: logging.Logger, tool_name: str, result: Any, success: bool = True) -> None:
    """Log tool execution result.

    Args:
        logger: Logger instance
        tool_name: Name of the tool
        result: Tool execution result or error message
        success: Whether the tool executed successfully
    """
    status = "✓ Success" if success else "✗ Failed"
    logger.info(f"Tool result: {tool_name} - {status}")
    logger.debug(f"  Result: {_preview(result)}")


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """Log error with context and traceback."""
    logger.error(f"Error occurred: {type(error).__name__}: {error}")
    if context:
        logger.error(f"  Context: {context}")
    logger.exception("Full traceback:", exc_info=error)


def log_prompt(logger: logging.Logger, phase: str, prompt: str, max_length: Optional[int] = None) -> None:
    """Log a prompt at DEBUG level, truncated to ``max_length``."""
    if max_length is not None:
        prompt = _preview(prompt, max_length)
    logger.debug(f"Prompt for {phase}:\n{prompt}")


def log_routing_decision(logger: logging.Logger, from_node: str, decision: str, reason: str = "") -> None:
    """Log routing decision.

    Args:
        logger: Logger instance
        from_node: Source node making the decision
        decision: Routing destination
        reason: Reason for the routing decision
    """
    logger.info(f"Routing decision from {from_node}: → {decision}")
    if reason:
        logger.info(f"  → Reason: {reason}")


def log_plan_created(logger: logging.Logger, reasoning: str, milestones: Iterable[Any]) -> None:
    """Log plan creation details."""
    items = list(milestones)
    logger.info(f"\n{'='*80}")
    logger.info("Plan created:")
    logger.info(f"  Reasoning: {reasoning or 'N/A'}")
    logger.info(f"  Total milestones: {len(items)}")
    for i, milestone in enumerate(items, 1):
        logger.info(f"  {i}. {milestone.description}")
        logger.info(f"     - Completion criteria: {milestone.completion_criteria}")
        if getattr(milestone, "terminal", False):
            logger.info(f"     - Terminal: {milestone.justification}")
    logger.info(f"{'='*80}\n")


def log_node_entry(logger: logging.Logger, node_name: str, state: Dict[str, Any]) -> None:
    """Log coordinator node entry with the loop counters."""
    logger.info(f"\n{'#'*80}")
    logger.info(f"# ENTERING NODE: {node_name}")
    logger.info(f"{'#'*80}")
    logger.info(f"  - loops: {state.get('loops')}/{state.get('max_loops')}")
    logger.info(f"  - reflections: {state.get('reflections')}")
    logger.info(f"  - qa_fails: {state.get('qa_fails')}")
    logger.info(f"  - messages: {len(state.get('messages', []))}")


def log_node_exit(logger: logging.Logger, node_name: str, updates: Dict[str, Any]) -> None:
    """Log coordinator node exit with state updates.

    Args:
        logger: Logger instance
        node_name: Name of the node being exited
        updates: State updates returned by the node
    """
    logger.info(f"# EXITING NODE: {node_name}")
    for key, value in updates.items():
        if key == "messages":
            logger.info(f"  - messages: +{len(value)} new messages")
        elif key in {"records", "pending_calls"}:
            logger.info(f"  - {key}: {len(value)}")
        else:
            logger.info(f"  - {key}: {value}")
