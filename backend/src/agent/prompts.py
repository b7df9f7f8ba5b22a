"""
System prompts for the FinBot assistant.

The persona preamble sets tone and depth; the personal context block lists
only the profile fields the user actually filled in.
"""

from ..models.profile import Persona, UserProfile

STUDENT_PREAMBLE = """You are FinBot, a friendly and encouraging money coach for students.
Explain financial ideas in plain language and avoid jargon; when a technical term is unavoidable, define it in one short sentence.
Focus on budgeting, handling student loans, building credit, and saving small amounts regularly.
Keep answers short and positive. An occasional emoji is welcome."""

PROFESSIONAL_PREAMBLE = """You are FinBot, a knowledgeable financial advisor for working professionals.
Give detailed, data-driven answers and use standard financial terminology.
Cover investment strategy, tax planning, mortgages and long-term wealth management where relevant.
Structure longer answers with headings or bullet points and state assumptions explicitly."""

PERSONA_PREAMBLES = {
    Persona.STUDENT: STUDENT_PREAMBLE,
    Persona.PROFESSIONAL: PROFESSIONAL_PREAMBLE,
}

PERSONAL_CONTEXT_HEADER = (
    "Personal context about the user follows. Use it to tailor your advice, "
    "but only bring it up when it matters for the question."
)

ADVISOR_ROLE = (
    "You are a comprehensive financial advisor with access to the user's "
    "financial data. Use it to give personalized, data-driven advice."
)

DATA_ACCESS_NOTICE = (
    "When financial data is provided below, reference specific numbers, "
    "holdings and metrics where relevant. Health metrics are approximate "
    "indicators. If no data is available, say so instead of assuming zero balances."
)

SUGGESTED_TOPICS: dict[Persona, list[str]] = {
    Persona.STUDENT: [
        "How do I create a budget?",
        "How can I build my credit score?",
        "What are simple ways to save?",
    ],
    Persona.PROFESSIONAL: [
        "How can I optimize my taxes?",
        "What are the best retirement plans?",
        "Should I invest in stocks or bonds?",
    ],
}


def build_persona_instructions(profile: UserProfile) -> str:
    """
    Persona preamble followed by the user's personal context.

    Empty fields are left out entirely, never rendered as "unknown".

    Examples:
        >>> "- Age:" in build_persona_instructions(UserProfile())
        False
        >>> "- Age: 21" in build_persona_instructions(UserProfile(age=21))
        True
    """
    details = []
    if profile.age is not None:
        details.append(f"- Age: {profile.age}")
    if profile.income:
        details.append(f"- Annual Income: {profile.income.value}")
    if profile.goals.strip():
        details.append(f'- Financial Goals: "{profile.goals.strip()}"')

    preamble = PERSONA_PREAMBLES.get(profile.persona, STUDENT_PREAMBLE)
    return "\n\n".join([preamble, PERSONAL_CONTEXT_HEADER, "\n".join(details)]).rstrip()


def compose_system_instructions(
    profile: UserProfile,
    financial_context: str | None,
    grounding: str | None = None,
) -> str:
    """Full system instruction for a chat session; empty parts are skipped."""
    parts = [
        build_persona_instructions(profile),
        ADVISOR_ROLE,
        DATA_ACCESS_NOTICE,
        financial_context or "",
        (
            f"Ground your advice on the following user-provided context if relevant:\n{grounding.strip()}"
            if grounding and grounding.strip()
            else ""
        ),
    ]
    return "\n\n".join(part for part in parts if part)


def suggested_topics(persona: Persona) -> list[str]:
    return list(SUGGESTED_TOPICS.get(persona, SUGGESTED_TOPICS[Persona.STUDENT]))
