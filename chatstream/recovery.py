from typing import Any, Mapping, Optional

# Literal id used by sample payloads; never a real conversation
PLACEHOLDER_ID = "hello-world"

ID_FIELDS = ("chatId", "id")

MAX_DEPTH = 64


def is_plausible_chat_id(value: str) -> bool:
    """
    Heuristic check for the long, hyphenated ids the chat store issues.

    This is tuned to that one format and is not a general id validator.
    """
    if value == PLACEHOLDER_ID or len(value) <= 10:
        return False
    return ("-" in value and len(value) > 20) or len(value) > 15


def recover_chat_id(value: Any, *, max_depth: int = MAX_DEPTH) -> Optional[str]:
    """
    Search a nested value for a conversation identifier.

    Depth-first: at each mapping, `chatId` is tried before `id`; then list
    and tuple elements are searched in order, or mapping values in
    insertion order. The first plausible candidate anywhere wins.

    Args:
        value: Decoded JSON-like data (dicts, lists, scalars).
        max_depth: Nodes nested deeper than this are not inspected.

    Returns:
        Optional[str]: The identifier, or None if nothing plausible was found.
    """
    return _search(value, 0, max_depth)


def _search(node: Any, depth: int, max_depth: int) -> Optional[str]:
    if depth > max_depth:
        return None

    if isinstance(node, Mapping):
        for name in ID_FIELDS:
            candidate = node.get(name)
            if isinstance(candidate, str) and is_plausible_chat_id(candidate):
                return candidate
        children = node.values()
    elif isinstance(node, (list, tuple)):
        children = node
    else:
        return None

    for child in children:
        found = _search(child, depth + 1, max_depth)
        if found is not None:
            return found
    return None
