"""
Presets shown on the setup screen: styles, sample topics, character
personas, quick interjections and the turn counts a session may request.
"""

import random

DEFAULT_PRO_CHARACTER = (
    "As a logical analyst, build a systematic, evidence-based case."
)
DEFAULT_CON_CHARACTER = (
    "As a critical debater, point out counterarguments and weaknesses sharply."
)

ALLOWED_TURN_COUNTS = (4, 6, 8, 10)

DEBATE_STYLES = [
    {
        "id": "emotional",
        "label": "Emotional",
        "description": "Empathy and feeling first: emotive language, examples, human stories",
    },
    {
        "id": "logical",
        "label": "Logical",
        "description": "Structured around evidence, counterexamples and statistics",
    },
    {
        "id": "philosophical",
        "label": "Philosophical",
        "description": "Driven by questions and the exploration of values",
    },
]

SAMPLE_TOPICS = [
    "Does artificial intelligence take away human jobs?",
    "Does social media bring society together or drive it apart?",
    "Is a universal basic income feasible?",
    "Should remote work be the standard?",
    "Should we spend heavily on space exploration?",
    "Can animal testing be ethically justified?",
]

CHARACTER_PRESETS = {
    "pro": [
        {
            "id": "kant",
            "label": "Kant (philosopher of reason)",
            "prompt": (
                "You are Immanuel Kant. Argue logically and systematically from "
                "reason and the moral law."
            ),
        },
        {
            "id": "ceo",
            "label": "Startup CEO",
            "prompt": (
                "You are a startup CEO who values innovation and efficiency. Argue "
                "from a practical, forward-looking perspective."
            ),
        },
        {
            "id": "scientist",
            "label": "Scientist",
            "prompt": (
                "You are a scientist who values data and evidence. Build your case on "
                "objective grounds and research findings."
            ),
        },
    ],
    "con": [
        {
            "id": "hobbes",
            "label": "Hobbes (philosopher of human nature)",
            "prompt": (
                "You are Thomas Hobbes. Analyse critically from human nature and "
                "real-world constraints."
            ),
        },
        {
            "id": "worker",
            "label": "Small-business employee",
            "prompt": (
                "You are an ordinary worker on the shop floor. Argue from everyday "
                "hardships and practical problems."
            ),
        },
        {
            "id": "activist",
            "label": "Social activist",
            "prompt": (
                "You are an activist pursuing social justice. Criticise from the "
                "standpoint of the vulnerable and of social inequality."
            ),
        },
    ],
}

PRESET_INTERJECTIONS = [
    "Explain that point further",
    "Give concrete evidence",
    "How would you rebut the opposing view?",
    "Give a real-world example",
]


def random_topic() -> str:
    return random.choice(SAMPLE_TOPICS)


def all_presets() -> dict:
    return {
        "styles": DEBATE_STYLES,
        "sampleTopics": SAMPLE_TOPICS,
        "characters": CHARACTER_PRESETS,
        "interjections": PRESET_INTERJECTIONS,
        "turnCounts": list(ALLOWED_TURN_COUNTS),
        "randomTopic": random_topic(),
        "defaultCharacters": {
            "pro": DEFAULT_PRO_CHARACTER,
            "con": DEFAULT_CON_CHARACTER,
        },
    }
