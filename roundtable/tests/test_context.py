"""
Unit tests for prompt context formatting.

Tests cover:
- Transcript rendering and message limits
- Placeholder text for missing fields and empty history
- Optional arc, template, world, group and momentum sections
- Full prompt assembly
"""

from roundtable.core.context import (
    build_plot_prompt,
    format_arc_context,
    format_group_context,
    format_momentum,
    format_template_guidance,
    format_transcript,
    format_world_context,
)
from roundtable.models import ArcStatus, Character, ChatMessage, GenerationOptions, WorldEntry
from roundtable.prompts import DEFAULT_CHARACTER_NAME, DEFAULT_DIRECTION, NO_HISTORY_PLACEHOLDER, NOT_SPECIFIED


class TestFormatTranscript:
    """Tests for format_transcript."""

    def test_empty_messages_use_placeholder(self):
        assert format_transcript([]) == NO_HISTORY_PLACEHOLDER

    def test_operator_messages_are_you(self):
        messages = [
            ChatMessage(speaker="Alex", text="Hello", is_operator=True),
            ChatMessage(speaker="Mira", text="Hi there"),
        ]
        assert format_transcript(messages) == "You: Hello\nMira: Hi there"

    def test_missing_speaker_defaults_to_character(self):
        assert format_transcript([ChatMessage(text="...")]) == "Character: ..."

    def test_only_last_messages_are_kept(self):
        messages = [ChatMessage(speaker="Mira", text=f"line {i}") for i in range(10)]
        transcript = format_transcript(messages, limit=3)

        assert transcript.splitlines() == ["Mira: line 7", "Mira: line 8", "Mira: line 9"]


class TestOptionalSections:
    """Tests for the optional prompt sections."""

    def test_world_context_groups_by_category(self):
        entries = [
            WorldEntry(name="Harbor", category="location"),
            WorldEntry(name="Old Tower", category="Location"),
            WorldEntry(name="Keepers", category="organization"),
            WorldEntry(name="Tides", category="lore"),
            WorldEntry(name="Curfew", category="rule"),
            WorldEntry(name="Curse", category="rule"),
        ]
        text = format_world_context(entries)

        assert "Notable locations: Harbor, Old Tower" in text
        assert "Organizations/groups: Keepers" in text
        assert "World lore: 1 entries available" in text
        assert "World rules: 2 rules established" in text

    def test_world_context_empty_is_none(self):
        assert format_world_context([]) is None
        assert format_world_context(None) is None
        assert format_world_context([WorldEntry(name="x", category="misc")]) is None

    def test_arc_context_requires_active_arc(self):
        assert format_arc_context(None) is None
        assert format_arc_context(ArcStatus()) is None

    def test_arc_context_lines(self):
        arc = ArcStatus(
            has_active_arc=True,
            arc_name="Mystery Arc",
            progress=40,
            current_phase="investigation",
            current_phase_description="Follow the clues",
            available_choices=2,
        )
        text = format_arc_context(arc)

        assert "Current arc: Mystery Arc" in text
        assert "Progress: 40% complete" in text
        assert "Phase focus: Follow the clues" in text
        assert "Story choices available: 2 options to explore" in text

    def test_template_guidance_needs_both_parts(self):
        assert format_template_guidance("romance", None) is None
        assert format_template_guidance(None, "slow burn") is None

        text = format_template_guidance("unknown_template", "slow burn")
        assert "Template: unknown_template" in text
        assert "Core Narrative Direction: slow burn" in text

    def test_momentum_for_arc_progress(self):
        early = format_momentum(GenerationOptions(style="comedy"), ArcStatus(has_active_arc=True, progress=10))
        late = format_momentum(GenerationOptions(style="comedy"), ArcStatus(has_active_arc=True, progress=90))

        assert early.startswith("- Early arc phase")
        assert late.startswith("- Late arc phase")

    def test_momentum_none_without_guidance(self):
        assert format_momentum(GenerationOptions(style="natural")) is None


class TestBuildPlotPrompt:
    """Tests for build_plot_prompt."""

    def test_minimal_character_scenario(self):
        """A bare named character with no history still yields a complete prompt."""
        prompt = build_plot_prompt(Character(name="Mira"), [], GenerationOptions())

        assert "Mira" in prompt
        assert NO_HISTORY_PLACEHOLDER in prompt
        assert f"Personality: {NOT_SPECIFIED}" in prompt
        assert DEFAULT_DIRECTION in prompt

    def test_blank_name_falls_back(self):
        prompt = build_plot_prompt(Character(name="  "), [])

        assert f"Name: {DEFAULT_CHARACTER_NAME}" in prompt
        assert f"Name: {NOT_SPECIFIED}" not in prompt
        assert f"Scenario: {NOT_SPECIFIED}" in prompt

    def test_direction_and_style_are_rendered(self):
        options = GenerationOptions(direction="Reveal the stranger's secret", style="mysterious", intensity="strong")
        prompt = build_plot_prompt(Character(name="Mira"), [], options)

        assert "Reveal the stranger's secret" in prompt
        assert DEFAULT_DIRECTION not in prompt
        assert "intriguing unknowns" in prompt
        assert "compelling story momentum" in prompt

    def test_unknown_style_uses_natural(self):
        prompt = build_plot_prompt(Character(name="Mira"), [], GenerationOptions(style="gothic"))
        assert "organic story development" in prompt

    def test_optional_sections_appended(self):
        prompt = build_plot_prompt(
            Character(name="Mira"),
            [],
            GenerationOptions(style="romantic"),
            world_context=[WorldEntry(name="Harbor", category="location")],
            arc_status=ArcStatus(has_active_arc=True, arc_name="Romance Arc", progress=50),
        )

        assert "\n\nCURRENT STORY ARC:\nCurrent arc: Romance Arc" in prompt
        assert "\n\nWORLD CONTEXT:\nNotable locations: Harbor" in prompt
        assert "STORY MOMENTUM:" in prompt
        assert "TEMPLATE GUIDANCE" not in prompt

    def test_sections_omitted_without_collaborators(self):
        prompt = build_plot_prompt(Character(name="Mira"), [])

        assert "CURRENT STORY ARC" not in prompt
        assert "WORLD CONTEXT" not in prompt
        assert "STORY MOMENTUM" not in prompt

    def test_message_limit_from_options(self):
        messages = [ChatMessage(speaker="Mira", text=f"line {i}") for i in range(8)]
        prompt = build_plot_prompt(Character(name="Mira"), messages, GenerationOptions(message_limit=2))

        assert "Mira: line 7" in prompt
        assert "Mira: line 5" not in prompt


class TestGroupContext:
    """Tests for group chat context."""

    def test_single_character_has_no_group_section(self):
        mira = Character(id="mira", name="Mira")

        assert format_group_context(mira, [mira]) is None
        assert format_group_context(mira, None) is None
        assert "GROUP DYNAMICS" not in build_plot_prompt(mira, [], active_characters=[mira])

    def test_other_members_and_roles_listed(self):
        mira = Character(id="mira", name="Mira", group_role="leader")
        others = [
            Character(id="tobin", name="Tobin", group_role="mentor"),
            Character(id="sel", name="Sel"),
        ]

        text = format_group_context(mira, [mira] + others)

        assert text == "Group includes 2 other characters: Tobin, Sel\nGroup roles: mentor"

    def test_members_matched_by_name_without_ids(self):
        text = format_group_context(Character(name="Mira"), [Character(name="Mira"), Character(name="Tobin")])
        assert text == "Group includes 1 other characters: Tobin"

    def test_group_section_follows_world_context(self):
        mira = Character(id="mira", name="Mira")
        prompt = build_plot_prompt(
            mira,
            [],
            world_context=[WorldEntry(name="Harbor", category="location")],
            active_characters=[mira, Character(id="tobin", name="Tobin", group_role="supporter")],
        )

        assert "\n\nGROUP DYNAMICS:\nGroup includes 1 other characters: Tobin\nGroup roles: supporter" in prompt
        assert prompt.index("WORLD CONTEXT") < prompt.index("GROUP DYNAMICS")
