"""Prompt composition: a Context snapshot rendered as one system prompt.

compose() is a pure function. Identical contexts produce byte-identical
prompts; sections appear in a fixed order separated by a blank line, and
empty task, knowledge-base and history sections are left out entirely.
"""

from __future__ import annotations

from symposium.core.context import Context
from symposium.llm.prompts import CHAT_CLOSING_DIRECTIVE, CHAT_PREAMBLE

SECTION_SEPARATOR = "\n\n"

PROJECT_HEADING = "## Current Project Context"
TASKS_HEADING = "## Task Sequence"
KNOWLEDGE_HEADING = "## Relevant Knowledge Base Content"
HISTORY_HEADING = "## Previous Conversation"
CURRENT_MESSAGE_HEADING = "## Current User Message"

CARD_SEPARATOR = "---"


def compose(context: Context) -> str:
    """Render the system prompt for a chat completion."""
    sections = [CHAT_PREAMBLE, _project_section(context)]

    if context.tasks:
        sections.append(_task_section(context))
    if context.cards:
        sections.append(_knowledge_section(context))
    if context.messages:
        sections.append(_history_section(context))

    sections.append(_current_message_section(context))
    return SECTION_SEPARATOR.join(sections)


def role_label(role: str) -> str:
    """'user' -> 'User', 'assistant' -> 'Assistant'."""
    return role.capitalize()


def _project_section(context: Context) -> str:
    lines = [PROJECT_HEADING, "", f"**Project:** {context.project.title}"]
    if context.project.description:
        lines.append(f"**Description:** {context.project.description}")
    lines.append("")
    lines.append(f"**Current Objective:** {context.objective.title}")
    if context.objective.description:
        lines.append(f"**Objective Description:** {context.objective.description}")
    return "\n".join(lines)


def _task_section(context: Context) -> str:
    lines = [
        TASKS_HEADING,
        "",
        "The following tasks are associated with this objective:",
        "",
    ]
    for task in context.tasks:
        status = "COMPLETED" if task.completed else "PENDING"
        lines.append(f"{task.position}. {task.title} — {status}")
        if task.description:
            lines.append(f"   {task.description}")
    return "\n".join(lines)


def _knowledge_section(context: Context) -> str:
    blocks = [
        f"{KNOWLEDGE_HEADING}\n\nThe following content cards are available for context:"
    ]
    for card in context.cards:
        blocks.append(f"### {card.title}\n\n{card.content}\n\n{CARD_SEPARATOR}")
    return SECTION_SEPARATOR.join(blocks)


def _history_section(context: Context) -> str:
    lines = [
        HISTORY_HEADING,
        "",
        "Here is the conversation history for this objective:",
        "",
    ]
    for msg in context.messages:
        lines.append(f"**{role_label(msg.role)}:** {msg.content}")
    return "\n".join(lines)


def _current_message_section(context: Context) -> str:
    return (
        f"{CURRENT_MESSAGE_HEADING}\n\n"
        f"**User:** {context.user_message}\n\n"
        f"{CARD_SEPARATOR}\n\n"
        f"{CHAT_CLOSING_DIRECTIVE}"
    )
