"""
Closed prompts for the oracle-backed cascade stages.

Each builder returns (system, prompt). Every prompt constrains the reply
to a small literal vocabulary or a fixed JSON shape; the classifier still
validates the reply because the model is not trusted to comply.
"""
from typing import Sequence, Tuple

from pagepilot.core.destinations import Destination
from pagepilot.core.field_normalizer import CANONICAL_SUBJECTS, FORM_FIELDS

SUBMIT_TOKEN = "SUBMIT"
NONE_TOKEN = "NONE"


SUBMIT_SYSTEM = (
    f'You are a specialized assistant that detects form submission intent. '
    f'Respond with ONLY "{SUBMIT_TOKEN}" or "{NONE_TOKEN}".'
)

FORM_SYSTEM = (
    "You are a specialized assistant that extracts ALL possible contact form field data from user speech. "
    "Extract any name, email, subject, and message content. Be very careful to correctly separate "
    "different field data. Pay special attention to multiple fields mentioned in one sentence and "
    "ensure you don't include field identifiers in the values."
)

LIST_SYSTEM = (
    "You are a helpful assistant that identifies product filtering and sorting commands. "
    f'Respond ONLY with the JSON format specified or "{NONE_TOKEN}".'
)

NAV_SYSTEM = (
    "You are a helpful assistant that identifies which page a user wants to navigate to "
    "based on their speech. Respond ONLY with the page ID, nothing else."
)


def submission_prompt(utterance: str) -> Tuple[str, str]:
    prompt = f"""Analyze if the following text indicates an intent to submit a contact form.

User text: "{utterance}"

Common submission phrases include:
- "submit the form"
- "send the message"
- "submit my contact information"
- "send my details"
- "submit"
- "send"
- "go ahead and submit"
- "submit now"

Respond with ONLY "{SUBMIT_TOKEN}" if the text indicates form submission intent, or "{NONE_TOKEN}" if it does not."""
    return SUBMIT_SYSTEM, prompt


def form_extraction_prompt(utterance: str, fields: Sequence[str] = FORM_FIELDS) -> Tuple[str, str]:
    field_list = ", ".join(fields)
    subjects = ", ".join(f'"{s}"' for s in CANONICAL_SUBJECTS)
    json_lines = ",\n".join(f'  "{f}": "extracted {f} or null if not mentioned"' for f in fields)
    prompt = f"""Extract ALL contact form information from the following text. The form has these fields: {field_list}.

User text: "{utterance}"

Extract any information that could fill a contact form, even if implied. Return ALL fields that can be extracted.
You must be very precise in separating different fields from the text. Specifically:

1. For name fields, extract only the actual name, not instructions like "my name is" or "name as"
2. For email fields, extract the complete email address, even if it's written in speech format
3. For subject, map to one of: {subjects}
4. For message, capture actual message content

Pay special attention to:
- When multiple fields are mentioned in one sentence (e.g., "fill name as John email as john@example.com")
- When fields are separated by "as", "with", "to", or similar words
- When fields are mentioned in different orders

Respond ONLY with a JSON object in this exact format:
{{
{json_lines},
  "submit": true/false (whether user wants to submit the form)
}}

Example: "fill name as John Smith email as john@example.com" ->
{{"name": "John Smith", "email": "john@example.com", "subject": null, "message": null, "submit": false}}

If there is absolutely no form-related content, respond with "{NONE_TOKEN}"."""
    return FORM_SYSTEM, prompt


def list_mutation_prompt(utterance: str) -> Tuple[str, str]:
    prompt = f"""I have a products page with filtering, sorting, and search functionality.
The user said: "{utterance}"

Is the user trying to:
1. Filter products by a category
2. Sort products by price (low to high or high to low)
3. Search for specific products
4. Clear filters
5. None of these (not a product-related command)

If it's a product command, respond in this exact JSON format:
{{
  "action": "filter|sort|search|clear",
  "type": "category|price|text" (omit for clear),
  "value": "the value to filter/sort/search by" (omit for clear)
}}

If it's not a product command, just respond with: {NONE_TOKEN}

Examples:
1. "Show me Enterprise products" -> {{"action":"filter","type":"category","value":"Enterprise"}}
2. "Sort products by price from low to high" -> {{"action":"sort","type":"price","value":"low-to-high"}}
3. "Search for voice products" -> {{"action":"search","type":"text","value":"voice"}}
4. "Clear all filters" -> {{"action":"clear"}}"""
    return LIST_SYSTEM, prompt


def navigation_prompt(utterance: str, destinations: Sequence[Destination]) -> Tuple[str, str]:
    listing = "\n".join(
        f"- {d.id}: {d.display_name} (Keywords: {', '.join(d.keywords)})" for d in destinations
    )
    ids = ", ".join(d.id for d in destinations)
    prompt = f"""I have a website with the following pages:
{listing}

The user said: "{utterance}"

Based on what the user said, which page should I navigate to?
Respond with just the ID of the most relevant page. Only respond with one of these exact IDs: {ids}. If there is no relevant page, respond with "{NONE_TOKEN}"."""
    return NAV_SYSTEM, prompt
