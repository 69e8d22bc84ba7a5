"""Centralized constants and enums for Symposium core modules."""

from __future__ import annotations


# ============================================================
# Messages
# ============================================================

class MessageRole:
    USER = "user"
    ASSISTANT = "assistant"


VALID_MESSAGE_ROLES = [MessageRole.USER, MessageRole.ASSISTANT]

# Content of the assistant message stored when a completion fails.
COMPLETION_FAILURE_TEMPLATE = "Sorry, I encountered an error generating a response: {reason}"


# ============================================================
# Sequencing
# ============================================================

class SequenceKind:
    """Sibling groups that carry a dense 1..N sequence_order."""
    TASK = "task"
    OBJECTIVE = "objective"


VALID_SEQUENCE_KINDS = [SequenceKind.TASK, SequenceKind.OBJECTIVE]


# ============================================================
# Input limits
# ============================================================

MAX_MESSAGE_SIZE = 100_000
MAX_TITLE_LENGTH = 255
MAX_ACTIVE_TAGS = 100
MAX_PROJECT_DESCRIPTION = 20_000
