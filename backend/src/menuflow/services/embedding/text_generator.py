"""Embedding Text Generator - canonical text for menu item embeddings.

The text is deterministic for the same item so that its hash can be used to
skip re-embedding unchanged items.
"""

import hashlib
from typing import Optional, Sequence


def generate_menu_item_embedding_text(
    name: str,
    description: Optional[str] = None,
    tags: Optional[Sequence[str]] = None,
) -> str:
    """Generate canonical embedding text for a menu item.

    Format (blank-line separated, empty parts omitted):
        {name}

        {description}

        Tags: {tag1}, {tag2}

    Example:
        >>> generate_menu_item_embedding_text("Margherita", "Tomato, mozzarella", ["vegetarian"])
        'Margherita\\n\\nTomato, mozzarella\\n\\nTags: vegetarian'
    """
    parts = [name.strip()]
    if description and description.strip():
        parts.append(description.strip())
    clean_tags = [tag.strip() for tag in (tags or []) if tag and tag.strip()]
    if clean_tags:
        parts.append("Tags: " + ", ".join(clean_tags))
    return "\n\n".join(part for part in parts if part)


def calculate_text_hash(text: str) -> str:
    """SHA256 hex digest of the canonical text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
