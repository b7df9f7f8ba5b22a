"""
Chat title generation utilities.

Chats start untitled; the first exchange names the chat after the user's
opening message so the history drawer has something meaningful to show.
"""

# Maximum number of characters taken from the user's message
MAX_TITLE_LENGTH = 40

ELLIPSIS = "…"

DEFAULT_TITLE = "New Chat"


def derive_chat_title(user_message: str, max_length: int = MAX_TITLE_LENGTH) -> str:
    """
    Derive a concise chat title from the user's message.

    Args:
        user_message: The message that opened the exchange
        max_length: Number of characters kept before the ellipsis

    Returns:
        Trimmed message, cut to `max_length` characters with an ellipsis
        appended when truncated. Blank input falls back to "New Chat".

    Examples:
        >>> derive_chat_title("  How do I budget better?  ")
        'How do I budget better?'
        >>> derive_chat_title("What should I do with my bonus?", max_length=13)
        'What should I…'
    """
    text = user_message.strip()
    if not text:
        return DEFAULT_TITLE

    if len(text) <= max_length:
        return text

    return text[:max_length] + ELLIPSIS


def display_title(title: str | None) -> str:
    """Title to show for a chat that may never have been named."""
    return title or DEFAULT_TITLE
