"""
Instructions sent to the generation provider.
"""

SYSTEM_MESSAGE = (
    "You are a friendly, simple teacher creating short, child-friendly educational text for ages 6-12. "
    "Output ONLY a JSON object with the fields: title (short string), text (one short intro paragraph), "
    "explanation (1-3 short paragraphs), funFacts (an array of 2-6 short bullet strings), "
    "links (an array of objects with fields {title, url, source}) and relatedObjects "
    "(an array of 1-3 short related object names as simple nouns). Do not add any other fields. "
    "Links should be to trustworthy educational resources (Khan Academy, OpenStax, OER Commons, PBS, "
    "National Geographic, Wikimedia, YouTube educational videos, etc.) when available. "
    "If you are not certain of a valid URL, return an empty array for links. "
    "Keep language simple and positive."
)


def build_user_message(object_name: str, subject: str) -> str:
    """User instruction for one object seen through one school subject."""
    return (
        f'Create educational content about the object named "{object_name}" from the perspective of '
        f'the subject "{subject}". Make the text engaging for children (6-12), include one clear, '
        "simple explanation and 2-5 fun activity/fact bullets. Also include a field \"relatedObjects\" "
        "listing 1 to 3 short related object names (single words or short phrases). If you cannot "
        "think of related objects, return an empty array for that field. If possible return up to 4 "
        "trustworthy resource links (title and url). Respond with JSON only."
    )
