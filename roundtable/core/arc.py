"""
Narrative Arc Tracker for Roundtable
Tracks progress through story-structure templates and summarizes it for the prompt.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..models import ArcStatus

logger = logging.getLogger("roundtable.arc")


# ============================================================================
# Arc Templates
# ============================================================================

ARC_TEMPLATES: Dict[str, Dict[str, Any]] = {
    "romance": {
        "name": "Romance Arc",
        "guidance": "Create emotional tension through meaningful character interactions and relationship development that builds across multiple exchanges",
        "phases": [
            {"name": "introduction", "description": "Meeting and initial attraction"},
            {"name": "getting_to_know", "description": "Developing relationship"},
            {"name": "complication", "description": "Conflict or obstacle"},
            {"name": "tension", "description": "Emotional climax"},
            {"name": "resolution", "description": "Relationship resolution"},
        ],
        "branching": {
            "introduction": ["friends_to_lovers", "enemies_to_lovers", "strangers_to_lovers"],
            "getting_to_know": ["slow_burn", "quick_connection", "friendship_first"],
            "complication": ["external_obstacle", "internal_conflict", "misunderstanding"],
        },
    },
    "adventure": {
        "name": "Adventure Arc",
        "guidance": "Establish compelling challenges and growth opportunities that drive heroic development and quest progression",
        "phases": [
            {"name": "call_to_adventure", "description": "The quest begins"},
            {"name": "preparation", "description": "Gathering resources/companions"},
            {"name": "challenges", "description": "Obstacles and trials"},
            {"name": "climax", "description": "Major confrontation"},
            {"name": "resolution", "description": "Victory and return"},
        ],
        "branching": {
            "call_to_adventure": ["mysterious_map", "urgent_quest", "accidental_discovery"],
            "challenges": ["physical_trials", "moral_dilemmas", "mystery_solving"],
        },
    },
    "mystery": {
        "name": "Mystery Arc",
        "guidance": "Present intriguing clues and revelations that create suspense and drive investigation forward",
        "phases": [
            {"name": "hook", "description": "Mystery introduced"},
            {"name": "investigation", "description": "Gathering clues"},
            {"name": "revelation", "description": "Key discovery"},
            {"name": "confrontation", "description": "Confronting the truth"},
            {"name": "conclusion", "description": "Case solved"},
        ],
        "branching": {
            "hook": ["crime_scene", "missing_person", "strange_event"],
            "investigation": ["detective_work", "interviews", "forensic_analysis"],
        },
    },
    "friendship": {
        "name": "Friendship Arc",
        "guidance": "Build meaningful connections through shared experiences and mutual support that deepens bonds",
        "phases": [
            {"name": "first_meeting", "description": "Characters meet"},
            {"name": "bonding", "description": "Getting to know each other"},
            {"name": "test", "description": "Friendship tested"},
            {"name": "growth", "description": "Stronger bond"},
        ],
        "branching": {
            "first_meeting": ["unlikely_meeting", "forced_together", "mutual_interest"],
            "bonding": ["shared_interests", "helping_each_other", "adventure_together"],
        },
    },
    "hero_journey": {
        "name": "Hero's Journey",
        "guidance": "Create transformative moments through trials and growth that lead to heroic achievement",
        "phases": [
            {"name": "ordinary_world", "description": "Normal life"},
            {"name": "call_to_adventure", "description": "Called to action"},
            {"name": "refusal", "description": "Initial hesitation"},
            {"name": "mentor", "description": "Guidance received"},
            {"name": "crossing_threshold", "description": "Commit to journey"},
            {"name": "tests", "description": "Trials and allies"},
            {"name": "ordeal", "description": "Major crisis"},
            {"name": "reward", "description": "Achievement"},
            {"name": "return", "description": "Return transformed"},
        ],
        "branching": {},
    },
}


@dataclass
class ArcChoice:
    choice_type: str
    choice: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class ActiveArc:
    arc_type: str
    character_name: Optional[str] = None
    phase_index: int = 0
    branch: Optional[str] = None
    choices: List[ArcChoice] = field(default_factory=list)
    started_at: float = field(default_factory=time.time)

    @property
    def template(self) -> Dict[str, Any]:
        return ARC_TEMPLATES[self.arc_type]

    @property
    def phases(self) -> List[Dict[str, str]]:
        return self.template["phases"]

    @property
    def current_phase(self) -> Dict[str, str]:
        return self.phases[self.phase_index]


class NarrativeArcTracker:
    """Follows one story arc at a time and keeps a count of completed arcs."""

    def __init__(self):
        self.current_arc: Optional[ActiveArc] = None
        self.arc_history: List[ActiveArc] = []
        self.completed_phases: List[str] = []

    def start_arc(self, arc_type: str, character_name: Optional[str] = None) -> bool:
        if arc_type not in ARC_TEMPLATES:
            logger.warning(f"[start_arc] Unknown arc type: {arc_type}")
            return False

        self.current_arc = ActiveArc(arc_type=arc_type, character_name=character_name)
        self.completed_phases = []
        logger.info(
            f"[start_arc] Started {ARC_TEMPLATES[arc_type]['name']} "
            f"with {character_name or 'unknown character'}"
        )
        return True

    def calculate_progress(self) -> int:
        """Percent of phases already completed in the active arc."""
        if self.current_arc is None:
            return 0
        return round(self.current_arc.phase_index / len(self.current_arc.phases) * 100)

    def make_choice(self, choice_type: str, choice: str) -> bool:
        if self.current_arc is None:
            return False

        self.current_arc.choices.append(ArcChoice(choice_type=choice_type, choice=choice))
        if choice_type == "branching" and choice:
            self.current_arc.branch = choice
            logger.info(f"[make_choice] Arc branch selected: {choice}")
        return True

    def advance_phase(self) -> bool:
        """
        Move to the next phase.

        Completing the final phase archives the arc and clears the active one.
        """
        if self.current_arc is None:
            return False

        arc = self.current_arc
        self.completed_phases.append(arc.current_phase["name"])
        arc.phase_index += 1

        if arc.phase_index >= len(arc.phases):
            logger.info(f"[advance_phase] Arc completed: {arc.template['name']}")
            self.arc_history.append(arc)
            self.current_arc = None
            return True

        logger.info(f"[advance_phase] Advanced to phase: {arc.current_phase['name']}")
        return True

    def branch_options(self) -> List[str]:
        if self.current_arc is None:
            return []
        branching = self.current_arc.template.get("branching", {})
        return list(branching.get(self.current_arc.current_phase["name"], []))

    def get_arc_status(self) -> ArcStatus:
        arc = self.current_arc
        if arc is None:
            return ArcStatus(completed_arcs=len(self.arc_history))

        return ArcStatus(
            has_active_arc=True,
            arc_type=arc.arc_type,
            arc_name=arc.template["name"],
            current_phase=arc.current_phase["name"],
            current_phase_description=arc.current_phase["description"],
            progress=self.calculate_progress(),
            total_phases=len(arc.phases),
            current_phase_index=arc.phase_index,
            completed_arcs=len(self.arc_history),
            arc_guidance=arc.template["guidance"],
            available_choices=len(self.branch_options()),
        )

    def reset(self) -> None:
        self.current_arc = None
        self.arc_history = []
        self.completed_phases = []
        logger.info("[reset] Narrative arc tracker reset")
