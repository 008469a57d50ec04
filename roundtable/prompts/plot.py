"""
Plot Hook Prompts
Instruction template and guidance tables for plot hook generation.
"""

PLOT_SYSTEM_PROMPT = """You are a narrative architect creating compelling story hooks for immersive roleplay. You read the character sheet and the latest exchanges, then propose one short plot development that drives the story forward without taking control away from the participants.

You MUST respond with a single JSON object and nothing else."""

PLOT_USER_PROMPT_TEMPLATE = """Based on the character information and recent conversation context provided, generate a dynamic plot context that will drive the story forward and create engaging narrative momentum.

CHARACTER INFORMATION:
Name: {name}
Personality: {personality}
Description: {description}
Scenario: {scenario}

RECENT CONVERSATION CONTEXT:
{recent_chat}

TASK:
Generate a compelling plot context (2-4 sentences) that:
1. Creates dramatic tension or emotional stakes
2. Establishes clear story direction and momentum
3. Provides specific motivation for character actions
4. Sets up potential conflicts or revelations
5. Drives the narrative forward with purpose
6. Feels natural within the roleplay context

STORY DIRECTION:
{direction}

STYLE:
{style}

INTENSITY:
{intensity}

TONE:
Focus on bold, story-driving elements that create narrative energy. Avoid passive observations; create situations that demand character engagement and response.

FORMAT:
Respond with JSON only:
{{
  "plot_hook": "The plot context, written as a bracketed narrative note, e.g. [A figure from {name}'s past appears carrying evidence of a conspiracy]",
  "tone_analysis": "One sentence on the emotional tone the hook sets",
  "pacing_guidance": "One sentence on how quickly the hook should unfold"
}}"""

DEFAULT_DIRECTION = "Let the story unfold with compelling natural progression"

NOT_SPECIFIED = "Not specified"

# Used for blank character names and unnamed speakers, not NOT_SPECIFIED
DEFAULT_CHARACTER_NAME = "Character"

NO_HISTORY_PLACEHOLDER = "No conversation history available."


# ============================================================================
# Style and Intensity
# ============================================================================

STYLE_DESCRIPTIONS = {
    "natural": "organic story development with realistic character reactions",
    "dramatic": "high-stakes situations with intense emotional weight",
    "romantic": "deep emotional connections with relationship tension",
    "mysterious": "intriguing unknowns with suspenseful revelations",
    "adventure": "exciting challenges with heroic growth and discovery",
    "comedy": "light-hearted situations with amusing complications",
}

INTENSITY_DESCRIPTIONS = {
    "subtle": "lightly atmospheric, gentle undertones",
    "moderate": "noticeable narrative drive with room for natural flow",
    "strong": "compelling story momentum with clear direction",
    "dramatic": "intense plot pressure with high emotional stakes and urgent conflicts",
}


# ============================================================================
# Template Guidance
# ============================================================================

TEMPLATE_DISPLAY_NAMES = {
    "meet_cute": "Romance Template: Meet Cute",
    "adventure_begins": "Adventure Template: Adventure Begins",
    "mystery_hook": "Mystery Template: Mystery Hook",
    "conflict_rises": "Conflict Template: Conflict Rises",
}

TEMPLATE_GUIDANCE = {
    "meet_cute": (
        "Create an immediate spark of connection or recognition. Focus on a moment that could "
        "change the entire relationship dynamic. Include specific details that suggest deep "
        "compatibility or irresistible attraction."
    ),
    "adventure_begins": (
        "Present a compelling call to action that the character cannot ignore. Establish high "
        "stakes and exciting possibilities that create urgency and drive the narrative forward."
    ),
    "mystery_hook": (
        "Reveal a clue, secret, or unexplained event that creates urgent questions. Focus on "
        "something that suggests larger consequences and demands investigation."
    ),
    "conflict_rises": (
        "Escalate existing tensions or introduce a major obstacle that forces characters into "
        "difficult positions. Build dramatic pressure that cannot be ignored."
    ),
}

DEFAULT_TEMPLATE_GUIDANCE = (
    "Focus on creating compelling narrative momentum that drives the story forward "
    "with purpose and emotional weight."
)

TEMPLATE_EXECUTION_FOCUS = (
    "EXECUTION FOCUS: Create a plot context that immediately establishes dramatic tension, "
    "character motivation, and clear story momentum."
)


# ============================================================================
# Momentum
# ============================================================================

STYLE_MOMENTUM = {
    "romantic": "Build emotional tension through meaningful character interactions",
    "adventure": "Establish compelling challenges that drive character growth",
    "mysterious": "Plant intriguing clues that hint at larger revelations",
}

DRAMATIC_MOMENTUM = "Create urgent conflicts that demand immediate character response"

TEMPLATE_MOMENTUM = {
    "conflict_rises": "Escalate existing tensions to create compelling dramatic pressure",
    "adventure_begins": "Introduce exciting new possibilities that beckon character action",
    "mystery_hook": "Present intriguing unknowns that demand investigation and discovery",
}

ARC_MOMENTUM_EARLY = "Early arc phase: Establish foundational story elements and character motivations"
ARC_MOMENTUM_MIDDLE = "Mid-arc phase: Escalate conflicts and deepen character relationships"
ARC_MOMENTUM_LATE = "Late arc phase: Build toward climactic moments and resolution"
