"""
Prompt Composer — Builds every prompt the debate services send.

WHAT THIS DOES:
Turns debate state (topic, side, persona, style, recent turns, user
interjection) into bounded-length natural-language prompts.

TURN PROMPT LAYOUT:
    <system instruction: topic, side, persona, style, fixed rules>
    <recent history: last N turns as "Pro: ..." / "Con: ..." / "User: ...">
    <user interjection, if any>
    <trailing cue>

LENGTH CEILING:
Long prompts make the model slow or fail outright, so the turn prompt is
cut at max_prompt_chars. The cut is blunt (from the end, possibly
mid-sentence); it is a guard against request failures, not a summarizer.

The stance, summary and evaluation prompts all ask for JSON only; their
replies go through extract_json().
"""

from typing import Optional

from app.services.debate.models import (
    DebateStyle,
    Side,
    SideSummary,
    Turn,
    normalize_style,
)

DEFAULT_MAX_PROMPT_CHARS = 8000
DEFAULT_HISTORY_WINDOW = 4

SIDE_LABELS = {
    "pro": "Pro",
    "con": "Con",
    "user": "User",
}

STANCE_WORDS = {
    "pro": "in favour of",
    "con": "against",
}

STYLE_DIRECTIVES = {
    "emotional": (
        "Argue through emotion and empathy, using human stories and emotionally "
        "resonant language."
    ),
    "logical": (
        "Argue through logic and evidence, using data, statistics and counterexamples "
        "in a structured way."
    ),
    "philosophical": (
        "Argue through philosophical questions and the exploration of values, "
        "reasoning with depth."
    ),
}

TURN_RULES = [
    "Answer in 2-3 sentences and no more than 100 words.",
    "Skip filler and long-winded phrasing; state only your core point.",
    "Rebut or build on the previous speaker's argument.",
    "Give 1-2 concrete pieces of evidence or examples only in your opening turn.",
    "If no evidence is available, or the point is reasonable without it, leave it out.",
    "Hold the {stance} position consistently.",
    "Keep deliberation to a minimum and go straight to your answer.",
]

FINAL_TURN_RULE = (
    "This is your final turn: summarize your position and close with a strong, "
    "persuasive conclusion."
)

TRAILING_CUE = "\n\nIt is now your turn. Make your argument:"


def truncate_prompt(prompt: str, max_chars: int = DEFAULT_MAX_PROMPT_CHARS) -> str:
    """Cut the prompt to the ceiling, dropping characters from the end."""
    if max_chars < 0:
        max_chars = 0
    if len(prompt) > max_chars:
        return prompt[:max_chars]
    return prompt


def format_history(turns: list[Turn]) -> str:
    """Render turns as 'Pro: ...' lines."""
    return "\n".join(
        f"{SIDE_LABELS.get(turn.side, 'User')}: {turn.content}" for turn in turns
    )


def build_system_instruction(
    topic: str,
    side: Side,
    character: str = "",
    style: Optional[DebateStyle] = None,
    stance: str = "",
    is_final: bool = False,
) -> str:
    """The fixed instruction block at the top of every turn prompt."""
    stance_word = STANCE_WORDS.get(side, STANCE_WORDS["pro"])
    style_directive = STYLE_DIRECTIVES[normalize_style(style)]

    lines = [f'You are a debater arguing {stance_word} the topic "{topic}".']
    if stance:
        lines.append(f"Your position: {stance}")
    lines.append("")
    lines.append(f"Character: {character}")
    lines.append("")
    lines.append(f"Debate style: {style_directive}")
    lines.append("")
    lines.append("Important rules (follow them strictly):")

    rules = [rule.format(stance=stance_word) for rule in TURN_RULES]
    if is_final:
        rules.append(FINAL_TURN_RULE)
    lines.extend(f"{i}. {rule}" for i, rule in enumerate(rules, 1))

    return "\n".join(lines)


def compose_turn_prompt(
    topic: str,
    side: Side,
    character: str = "",
    style: Optional[DebateStyle] = None,
    history: Optional[list[Turn]] = None,
    user_intervention: Optional[str] = None,
    is_final: bool = False,
    stance: str = "",
    history_window: int = DEFAULT_HISTORY_WINDOW,
    max_chars: int = DEFAULT_MAX_PROMPT_CHARS,
) -> str:
    """
    Compose the prompt for one debate turn.

    Args:
        topic: The debate topic
        side: Which side is speaking ("pro" or "con")
        character: Persona description for this side
        style: "emotional", "logical" or "philosophical" (default logical)
        history: Prior turns, oldest first; only the last history_window are used
        user_intervention: Free text the user injected, if any
        is_final: Adds the concluding-summary rule
        stance: Optional one-sentence position statement for this side
        history_window: How many prior turns to include
        max_chars: Hard ceiling on the returned prompt length

    Returns:
        The prompt, never longer than max_chars
    """
    system_instruction = build_system_instruction(
        topic, side, character, style, stance, is_final
    )

    recent = list(history or [])[-history_window:] if history_window > 0 else []
    history_block = f"\n\nPrevious exchange:\n{format_history(recent)}" if recent else ""

    intervention_block = ""
    if user_intervention and user_intervention.strip():
        intervention_block = (
            f"\n\nUser interjection: {user_intervention.strip()}\n"
            "Take the user's interjection into account and respond from your position."
        )

    prompt = system_instruction + history_block + intervention_block + TRAILING_CUE
    return truncate_prompt(prompt, max_chars)


# =============================================================================
# STANCES
# =============================================================================

STANCE_PROMPT = """You are a debate analyst who distils the core issue of a debate topic.
For the topic below, state the core claim of the pro side and of the con side, each as one very short sentence.

Return ONLY JSON in exactly this form:
{
  "pro": "The pro side's core claim (one sentence)",
  "con": "The con side's core claim (one sentence)"
}

Example:
Topic: "Does artificial intelligence take away human jobs?"
{
  "pro": "AI takes away jobs",
  "con": "AI does not take away jobs"
}"""


def compose_stance_prompt(topic: str) -> str:
    return f'{STANCE_PROMPT}\n\nTopic: "{topic}"'


# =============================================================================
# MODERATOR
# =============================================================================

def _format_statements(messages: list[str]) -> str:
    return "\n---\n".join(messages) if messages else "No statements"


def compose_summary_prompt(side: Side, messages: list[str], character: str = "") -> str:
    """Ask for a five-field JSON summary of one side's statements."""
    side_label = SIDE_LABELS.get(side, "Pro")
    label = f"{side_label} ({character} position summary)" if character else f"{side_label} position summary"

    return f"""You are the moderator of a debate.
Below are the statements made by the "{side_label}" side.
Analyse them and summarize them in the JSON format below.
Output nothing except the JSON.

{{
  "label": "{label}",
  "coreClaim": "The central claim of this side, at most 2 sentences",
  "mainArgument": "The key reasoning or evidence, 2-3 sentences",
  "supportingExample": "A concrete example used, 1-2 sentences",
  "closingStatement": "A one-sentence closing summary"
}}

Statements:
{_format_statements(messages)}"""


def _format_summary(summary: SideSummary) -> str:
    return "\n".join(
        f"- {key}: {value}" for key, value in summary.to_json().items() if key != "label"
    )


def compose_evaluation_prompt(
    topic: str,
    pro_summary: SideSummary,
    con_summary: SideSummary,
) -> str:
    """Ask for a verdict over both sides' summaries."""
    return f"""You are the moderator of a debate on the topic "{topic}".
Below are summaries of the pro and con sides.
Evaluate the debate and return ONLY JSON in this form:

{{
  "overall": "Strengths, weaknesses and logical completeness of the debate, 3-4 sentences",
  "pro": "Clarity, evidence and examples of the pro side, 2-3 sentences",
  "con": "Clarity, evidence and examples of the con side, 2-3 sentences",
  "morePersuasive": "pro" or "con" or "undetermined",
  "reasoning": "Why that side was more persuasive, 2-3 sentences",
  "advice": "Concrete advice for the next debate, 1-2 sentences"
}}

Pro summary:
{_format_summary(pro_summary)}

Con summary:
{_format_summary(con_summary)}"""
