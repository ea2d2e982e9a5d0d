"""JSON schema and prompts for vision-based menu extraction.

The schema is passed to the model as a strict structured-output format, so
every object must list all of its properties in `required` and forbid
additional properties. Optional item fields are therefore nullable instead
of absent.
"""

SCHEMA_NAME = "menu_extraction"

SYSTEM_PROMPT = (
    "You extract structured menu data for restaurants. Return currency codes "
    "and price numbers (no currency symbols). Leave allergens empty if not "
    "explicit. Return confidence per item between 0 and 1."
)

USER_PROMPT = (
    "Extract menu categories and items from this page. Do not hallucinate "
    "missing allergens or prices."
)

_MENU_ITEM_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "name": {"type": "string"},
        "description": {"type": ["string", "null"]},
        "price": {"type": "number", "description": "Non-negative price in major units"},
        "currency": {"type": "string", "description": "ISO 4217 code"},
        "allergens": {"type": "array", "items": {"type": "string"}},
        "is_alcohol": {"type": "boolean"},
        "tags": {"type": "array", "items": {"type": "string"}},
        "confidence": {"type": ["number", "null"], "description": "Between 0 and 1"},
    },
    "required": [
        "name",
        "description",
        "price",
        "currency",
        "allergens",
        "is_alcohol",
        "tags",
        "confidence",
    ],
}

MENU_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "currency": {"type": "string", "description": "ISO 4217 code"},
        "categories": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "name": {"type": "string"},
                    "items": {"type": "array", "items": _MENU_ITEM_SCHEMA},
                },
                "required": ["name", "items"],
            },
        },
    },
    "required": ["currency", "categories"],
}
