"""
Prompt context formatting for Roundtable.

Turns the host's character sheet, recent messages and the optional world/arc
collaborators into the single user prompt sent to the plot generator. Every
function here is pure.
"""

from typing import Dict, List, Optional, Sequence

from ..models import ArcStatus, Character, ChatMessage, GenerationOptions, WorldEntry
from ..prompts.plot import (
    ARC_MOMENTUM_EARLY,
    ARC_MOMENTUM_LATE,
    ARC_MOMENTUM_MIDDLE,
    DEFAULT_CHARACTER_NAME,
    DEFAULT_DIRECTION,
    DEFAULT_TEMPLATE_GUIDANCE,
    DRAMATIC_MOMENTUM,
    INTENSITY_DESCRIPTIONS,
    NO_HISTORY_PLACEHOLDER,
    NOT_SPECIFIED,
    PLOT_USER_PROMPT_TEMPLATE,
    STYLE_DESCRIPTIONS,
    STYLE_MOMENTUM,
    TEMPLATE_DISPLAY_NAMES,
    TEMPLATE_EXECUTION_FOCUS,
    TEMPLATE_GUIDANCE,
    TEMPLATE_MOMENTUM,
)

DEFAULT_MESSAGE_LIMIT = 5

# Categories listed by name; the rest are summarized by count
_NAMED_WORLD_CATEGORIES = [
    ("location", "Notable locations"),
    ("organization", "Organizations/groups"),
    ("item", "Important items"),
]
_COUNTED_WORLD_CATEGORIES = [
    ("lore", "World lore", "entries available"),
    ("rule", "World rules", "rules established"),
]


def _or_placeholder(value: Optional[str]) -> str:
    if value is None or not str(value).strip():
        return NOT_SPECIFIED
    return str(value).strip()


def format_transcript(messages: Sequence[ChatMessage], limit: int = DEFAULT_MESSAGE_LIMIT) -> str:
    """Render the last `limit` messages as "speaker: text" lines."""
    if not messages:
        return NO_HISTORY_PLACEHOLDER

    lines = []
    for message in list(messages)[-limit:]:
        speaker = "You" if message.is_operator else (message.speaker or DEFAULT_CHARACTER_NAME)
        lines.append(f"{speaker}: {message.text}")
    return "\n".join(lines)


def format_world_context(entries: Optional[Sequence[WorldEntry]]) -> Optional[str]:
    """Summarize world entries by category; None when there is nothing to say."""
    if not entries:
        return None

    grouped: Dict[str, List[WorldEntry]] = {}
    for entry in entries:
        grouped.setdefault(entry.category.lower(), []).append(entry)

    lines = []
    for category, label in _NAMED_WORLD_CATEGORIES:
        if grouped.get(category):
            lines.append(f"{label}: {', '.join(e.name for e in grouped[category])}")
    for category, label, suffix in _COUNTED_WORLD_CATEGORIES:
        if grouped.get(category):
            lines.append(f"{label}: {len(grouped[category])} {suffix}")

    return "\n".join(lines) if lines else None


def format_arc_context(arc: Optional[ArcStatus]) -> Optional[str]:
    if arc is None or not arc.has_active_arc:
        return None

    lines = []
    if arc.arc_name:
        lines.append(f"Current arc: {arc.arc_name}")
    if arc.progress > 0:
        lines.append(f"Progress: {arc.progress}% complete")
    if arc.current_phase:
        lines.append(f"Current phase: {arc.current_phase}")
    if arc.current_phase_description:
        lines.append(f"Phase focus: {arc.current_phase_description}")
    if arc.arc_guidance:
        lines.append(f"Arc direction: {arc.arc_guidance}")
    if arc.available_choices > 1:
        lines.append(f"Story choices available: {arc.available_choices} options to explore")

    return "\n".join(lines) if lines else None


def format_template_guidance(template: Optional[str], guidance: Optional[str]) -> Optional[str]:
    """Template guidance only applies when both a template and guidance text are given."""
    if not template or not guidance:
        return None

    name = TEMPLATE_DISPLAY_NAMES.get(template, f"Template: {template}")
    specific = TEMPLATE_GUIDANCE.get(template, DEFAULT_TEMPLATE_GUIDANCE)
    return (
        f"{name}\n\n"
        f"Core Narrative Direction: {guidance}\n\n"
        f"{specific}\n\n"
        f"{TEMPLATE_EXECUTION_FOCUS}"
    )


def _same_character(a: Character, b: Character) -> bool:
    if a.id and b.id:
        return a.id == b.id
    return a.name == b.name


def format_group_context(
    character: Character,
    active_characters: Optional[Sequence[Character]],
) -> Optional[str]:
    """Name the other group members and their roles; None outside group chats."""
    if not active_characters or len(active_characters) < 2:
        return None

    others = [c for c in active_characters if not _same_character(c, character)]
    if not others:
        return None

    text = f"Group includes {len(others)} other characters: {', '.join(c.name for c in others)}"
    roles = [c.group_role for c in others if c.group_role]
    if roles:
        text += f"\nGroup roles: {', '.join(roles)}"
    return text


def format_momentum(options: GenerationOptions, arc: Optional[ArcStatus] = None) -> Optional[str]:
    guidance = []

    if options.style == "dramatic" and options.intensity == "dramatic":
        guidance.append(DRAMATIC_MOMENTUM)
    elif options.style in STYLE_MOMENTUM:
        guidance.append(STYLE_MOMENTUM[options.style])

    if arc is not None and arc.has_active_arc:
        if arc.progress < 30:
            guidance.append(ARC_MOMENTUM_EARLY)
        elif arc.progress < 70:
            guidance.append(ARC_MOMENTUM_MIDDLE)
        else:
            guidance.append(ARC_MOMENTUM_LATE)

    if options.template and options.guidance and options.template in TEMPLATE_MOMENTUM:
        guidance.append(TEMPLATE_MOMENTUM[options.template])

    if not guidance:
        return None
    return "- " + "\n- ".join(guidance)


def build_plot_prompt(
    character: Character,
    messages: Sequence[ChatMessage],
    options: Optional[GenerationOptions] = None,
    world_context: Optional[Sequence[WorldEntry]] = None,
    arc_status: Optional[ArcStatus] = None,
    active_characters: Optional[Sequence[Character]] = None,
) -> str:
    """
    Build the user prompt for one plot generation.

    Missing character fields render as "Not specified" so the template keeps a
    stable shape. Optional sections are appended only when they have content.
    """
    options = options or GenerationOptions()
    limit = options.message_limit or DEFAULT_MESSAGE_LIMIT

    prompt = PLOT_USER_PROMPT_TEMPLATE.format(
        name=(character.name or "").strip() or DEFAULT_CHARACTER_NAME,
        personality=_or_placeholder(character.personality),
        description=_or_placeholder(character.description),
        scenario=_or_placeholder(character.scenario),
        recent_chat=format_transcript(messages, limit),
        direction=(options.direction or "").strip() or DEFAULT_DIRECTION,
        style=STYLE_DESCRIPTIONS.get(options.style, STYLE_DESCRIPTIONS["natural"]),
        intensity=INTENSITY_DESCRIPTIONS.get(options.intensity, INTENSITY_DESCRIPTIONS["moderate"]),
    )

    sections = [
        ("CURRENT STORY ARC", format_arc_context(arc_status)),
        ("TEMPLATE GUIDANCE", format_template_guidance(options.template, options.guidance)),
        ("WORLD CONTEXT", format_world_context(world_context)),
        ("GROUP DYNAMICS", format_group_context(character, active_characters)),
        ("STORY MOMENTUM", format_momentum(options, arc_status)),
    ]
    for title, body in sections:
        if body:
            prompt += f"\n\n{title}:\n{body}"

    return prompt
