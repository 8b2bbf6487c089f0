"""Optimistic update bookkeeping for toggle-style actions.

Likes and follows flip a boolean and move a counter on the view state before
the write is issued. If the write fails the view state is restored, so the
page never shows a change that did not reach the database.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, MutableMapping

logger = logging.getLogger(__name__)


def toggle_with_rollback(
    state: MutableMapping[str, Any],
    flag_key: str,
    count_key: str,
    write: Callable[[bool], Any],
) -> bool:
    """Flip ``state[flag_key]``, adjust ``state[count_key]`` and run ``write``.

    ``write`` receives the flag value from before the flip, so ``True`` means
    "undo" (unlike, unfollow) and ``False`` means "do" (like, follow).
    Returns False, with ``state`` restored, if the write raised.
    """
    was_active = bool(state.get(flag_key))
    previous_count = int(state.get(count_key) or 0)

    state[flag_key] = not was_active
    state[count_key] = max(previous_count + (-1 if was_active else 1), 0)

    try:
        write(was_active)
    except Exception as e:
        state[flag_key] = was_active
        state[count_key] = previous_count
        logger.error(f"Toggle of {flag_key} failed, rolled back: {e}")
        return False
    return True
