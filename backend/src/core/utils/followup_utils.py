"""
Follow-up suggestion heuristics.

After each bot reply the chat offers up to three short next questions. They
are picked by keyword from the finished exchange, not generated by the LLM.
"""

# Topic groups in match order: (keywords, suggestions)
TOPIC_FOLLOWUPS: list[tuple[tuple[str, ...], tuple[str, str]]] = [
    (
        ("budget",),
        (
            "Can you build a monthly budget template for me?",
            "What 3 changes would save me the most next month?",
        ),
    ),
    (
        ("invest", "portfolio"),
        (
            "What is a simple diversified plan for my risk level?",
            "Explain dollar-cost averaging for my situation.",
        ),
    ),
    (
        ("tax",),
        (
            "Which deductions might apply to me?",
            "How can I reduce my taxable income legally?",
        ),
    ),
]

GENERIC_FOLLOWUPS: tuple[str, str] = (
    "What should I do next to reach my goal?",
    "Summarize my options and trade-offs.",
)

MAX_FOLLOWUPS = 3


def generate_followups(user_text: str, bot_text: str) -> list[str]:
    """
    Suggest follow-up questions for a completed exchange.

    Each matching topic group contributes its two suggestions, checked in the
    order budget, investment, tax. With no match the two generic suggestions
    are used. The result is deduplicated (first occurrence wins) and capped
    at three.

    Examples:
        >>> generate_followups("How do I budget better?", "Track spending.")
        ['Can you build a monthly budget template for me?', 'What 3 changes would save me the most next month?']
        >>> generate_followups("Hi", "Hello!")
        ['What should I do next to reach my goal?', 'Summarize my options and trade-offs.']
    """
    combined = f"{user_text} {bot_text}".lower()

    suggestions: list[str] = []
    for keywords, topic_suggestions in TOPIC_FOLLOWUPS:
        if any(keyword in combined for keyword in keywords):
            suggestions.extend(topic_suggestions)

    if not suggestions:
        suggestions.extend(GENERIC_FOLLOWUPS)

    # dict preserves insertion order
    return list(dict.fromkeys(suggestions))[:MAX_FOLLOWUPS]
