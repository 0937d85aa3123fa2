"""
Item validation for the line-based backing file.

The backing file stores one item per line, so an item has to survive a
write/read cycle as exactly one line: non-empty and free of line breaks.
"""

from durable_queue.exceptions import InvalidItemError

# Characters that would split an item across lines on reload
LINE_BREAKS = ('\n', '\r')


def validate_item(item: object) -> str:
    """
    Check that an item can be stored as a single line.

    Args:
        item: Candidate queue item

    Returns:
        The item, unchanged

    Raises:
        InvalidItemError: If the item is not a string, is empty,
                          or contains a line break
    """
    if not isinstance(item, str):
        raise InvalidItemError(f"Item must be str, got {type(item).__name__}")
    if not item:
        raise InvalidItemError("Item must not be empty")
    for char in LINE_BREAKS:
        if char in item:
            raise InvalidItemError(f"Item must not contain line break {char!r}")
    return item

