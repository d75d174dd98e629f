"""Prompt builders for in-character replies and persona suggestions."""

from collections.abc import Sequence

from persona_chat.models import HistoryEntry, PersonaPrompt, Sender

CONTENT_GUIDELINES = """
CONTENT GUIDELINES - STRICTLY ENFORCE:
1. NEVER suggest generic roles/occupations as personas (e.g., "Doctor", "Teacher", "Engineer").
2. ONLY suggest specific, named individuals - real people, fictional characters, historical figures, etc.
3. NO adult content creators or sexually explicit personas.
4. ALLOW prominent figures even if controversial, but EXCLUDE those known primarily for severe criminal activity or hate speech.
5. If the search term relates to inappropriate content, pivot to wholesome alternatives in the same general category."""

PERSONA_CATEGORIES = [
    "Historical Figure",
    "Contemporary Figure",
    "Celebrity",
    "Fictional Character",
    "Mythological Figure",
    "Literary Figure",
    "Politician/World Leader",
    "Scientist/Inventor",
    "Artist/Creator",
    "Business/Entrepreneur",
    "Anime Character",
    "Video Game Character",
    "Comic Book Character",
    "Cartoon Character",
    "Sports Personality",
    "Philosopher",
    "Tech Innovator",
    "Superhero/Villain",
]


def build_system_instruction(persona: PersonaPrompt) -> str:
    return f"""You are {persona.name}, a {persona.category} character. {persona.description}

Please respond to the user's messages in character. Keep your responses engaging, authentic to the character, and conversational. Stay true to the persona's personality and background.

Key guidelines:
- Always respond as {persona.name}
- Maintain consistency with your character's personality, background, and speaking style
- Keep responses natural and conversational
- Don't break character or mention that you're an AI
- Respond directly to what the user says without repeating their message"""


def build_chat_content(
    user_message: str,
    history: Sequence[HistoryEntry],
    window: int = 5,
) -> str:
    """Render the most recent ``window`` history messages and the new message."""
    lines: list[str] = []
    recent = list(history)[-window:] if window > 0 else []
    for entry in recent:
        role = "User" if entry.sender is Sender.USER else "Assistant"
        lines.append(f"{role}: {entry.text}")
    lines.append(f"User: {user_message}")
    return "\n".join(lines)


def build_persona_search_prompt(search_term: str, limit: int = 5) -> str:
    categories = ", ".join(f'"{category}"' for category in PERSONA_CATEGORIES)
    return f"""You are generating personas for a family-friendly chat application. Generate up to {limit} appropriate personas related to or exactly named "{search_term}".
{CONTENT_GUIDELINES}

For each persona, provide:
- name: The full name of the specific person/character (NEVER just a role/occupation)
- description: A brief, family-friendly description (1-2 sentences) focusing on positive traits
- category: Choose from these categories: [{categories}]

Format your response as a JSON array of objects with these exact properties.

Example format:
[
  {{
    "name": "Albert Einstein",
    "description": "Brilliant physicist known for the theory of relativity and his contributions to science.",
    "category": "Historical Figure"
  }}
]

Only return the JSON array, no additional text."""
