"""
Unit tests for the NarrativeArcTracker.

Tests cover:
- Starting known and unknown arcs
- Phase progress and completion
- Branch choices
- Arc status reporting
"""

from roundtable.core.arc import ARC_TEMPLATES, NarrativeArcTracker


class TestNarrativeArcTracker:
    """Tests for NarrativeArcTracker."""

    def test_unknown_arc_type(self):
        tracker = NarrativeArcTracker()
        assert tracker.start_arc("space_opera") is False
        assert tracker.get_arc_status().has_active_arc is False

    def test_start_arc_status(self):
        tracker = NarrativeArcTracker()
        assert tracker.start_arc("mystery", "Mira") is True

        status = tracker.get_arc_status()
        assert status.has_active_arc is True
        assert status.arc_type == "mystery"
        assert status.arc_name == ARC_TEMPLATES["mystery"]["name"]
        assert status.current_phase == ARC_TEMPLATES["mystery"]["phases"][0]["name"]
        assert status.progress == 0
        assert status.total_phases == len(ARC_TEMPLATES["mystery"]["phases"])

    def test_progress_advances(self):
        tracker = NarrativeArcTracker()
        tracker.start_arc("romance")
        total = len(ARC_TEMPLATES["romance"]["phases"])

        tracker.advance_phase()

        assert tracker.calculate_progress() == round(1 / total * 100)
        assert tracker.get_arc_status().current_phase_index == 1

    def test_completing_last_phase_archives_arc(self):
        tracker = NarrativeArcTracker()
        tracker.start_arc("adventure")

        for _ in ARC_TEMPLATES["adventure"]["phases"]:
            assert tracker.advance_phase() is True

        assert tracker.current_arc is None
        status = tracker.get_arc_status()
        assert status.has_active_arc is False
        assert status.completed_arcs == 1
        assert tracker.advance_phase() is False

    def test_branch_choice(self):
        tracker = NarrativeArcTracker()
        assert tracker.make_choice("branching", "betrayal") is False

        tracker.start_arc("friendship")
        assert tracker.make_choice("branching", "betrayal") is True
        assert tracker.current_arc.branch == "betrayal"
        assert len(tracker.current_arc.choices) == 1

    def test_reset(self):
        tracker = NarrativeArcTracker()
        tracker.start_arc("hero_journey")
        tracker.advance_phase()
        tracker.reset()

        assert tracker.current_arc is None
        assert tracker.arc_history == []
        assert tracker.completed_phases == []
