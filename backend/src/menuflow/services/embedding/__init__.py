"""Canonical text generation for menu item embeddings."""

from .text_generator import generate_menu_item_embedding_text, calculate_text_hash

__all__ = [
    "generate_menu_item_embedding_text",
    "calculate_text_hash",
]
