"""Prompt assembly from caller role, recent history and session data."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from inventory_assistant.memory.models import ConversationMessage

BASE_INSTRUCTION = (
    "You are the assistant for a medical supply inventory system. Answer questions about "
    "stock levels, deducting and adding stock, low-stock alerts, usage history, health "
    "endpoints and authentication. Be concise and practical. When inventory data is "
    "provided below, treat it as the current state of the system."
)

ADMIN_ROLES = frozenset({"admin", "administrator"})
VIEW_ONLY_ROLES = frozenset({"viewer", "viewonly", "readonly", "auditor"})
MODIFY_ROLES = frozenset({"staff", "manager", "editor", "nurse", "pharmacist"})

ADMIN_TEXT = (
    "The user is an administrator with full access: they may manage users, adjust stock "
    "and run bulk operations."
)
VIEW_ONLY_TEXT = (
    "The user has view-only access: explain how to look information up and do not suggest "
    "changes they are not permitted to make."
)
MODIFY_TEXT = "The user can modify inventory: include the concrete steps to add or deduct stock."

HISTORY_ENTRIES = 2
HISTORY_PREVIEW_CHARS = 100


@dataclass(slots=True)
class PromptContext:
    roles: Sequence[str] = field(default_factory=tuple)
    history: Sequence[ConversationMessage] = field(default_factory=tuple)
    session_data: Mapping[str, Any] = field(default_factory=dict)


def role_instruction(roles: Sequence[str]) -> str | None:
    normalized = {str(role).strip().lower().replace("-", "").replace("_", "") for role in roles or ()}
    if normalized & ADMIN_ROLES:
        return ADMIN_TEXT
    if normalized & VIEW_ONLY_ROLES:
        return VIEW_ONLY_TEXT
    if normalized & MODIFY_ROLES:
        return MODIFY_TEXT
    return None


def _preview(content: str) -> str:
    if len(content) > HISTORY_PREVIEW_CHARS:
        return content[:HISTORY_PREVIEW_CHARS] + "..."
    return content


def build_context(base_instruction: str, context: PromptContext | None = None) -> str:
    """Return ``base_instruction`` augmented with whatever context is available."""

    if context is None:
        return base_instruction

    sections = [base_instruction]

    role_text = role_instruction(context.roles)
    if role_text:
        sections.append(role_text)

    recent = list(context.history or ())[-HISTORY_ENTRIES:]
    if recent:
        lines = [f"- {message.role}: {_preview(message.content)}" for message in recent]
        sections.append("Recent conversation:\n" + "\n".join(lines))

    data = context.session_data or {}
    session_lines = []
    if data.get("last_search"):
        session_lines.append(f"The user previously searched for: {data['last_search']}")
    if data.get("current_item"):
        session_lines.append(f"The user is currently viewing: {data['current_item']}")
    if session_lines:
        sections.append("\n".join(session_lines))

    return "\n\n".join(sections)
