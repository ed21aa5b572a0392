"""
Message representation for oracle prompts.

Each cascade stage sends one system instruction and one user prompt.
Chat-style backends receive the list as-is; completion-style backends
receive it flattened into a single prompt string.
"""
from typing import List, Literal, TypedDict


Role = Literal["system", "user", "assistant"]


class Message(TypedDict):
    """A single chat message."""
    role: Role
    content: str


def msg_system(content: str) -> Message:
    return {"role": "system", "content": content}


def msg_user(content: str) -> Message:
    return {"role": "user", "content": content}


def build_messages(system: str, prompt: str) -> List[Message]:
    """System + user pair, skipping empty parts."""
    messages: List[Message] = []
    if system and system.strip():
        messages.append(msg_system(system.strip()))
    if prompt and prompt.strip():
        messages.append(msg_user(prompt.strip()))
    return messages


def flatten_messages(
    messages: List[Message],
    include_role_headers: bool = False,
    block_separator: str = "\n\n"
) -> str:
    """
    Flatten messages into a single prompt string for completion endpoints.

    Example:
        >>> flatten_messages([msg_system("Answer NONE."), msg_user("hi")])
        'Answer NONE.\\n\\nhi'
    """
    parts = []
    for msg in messages or []:
        content = msg.get("content", "").strip()
        if not content:
            continue
        if include_role_headers:
            parts.append(f"{msg.get('role', 'user').capitalize()}:\n{content}")
        else:
            parts.append(content)
    return block_separator.join(parts)
