"""
Save behavior flags for BaseRepository.save_changes().
"""

import enum


class SaveOptions(enum.Flag):
    """How pending changes are written to the backing store."""

    # Flush inside the open transaction; nothing is committed
    NONE = 0
    # Commit after the flush; tracked entities become clean
    ACCEPT_ALL_CHANGES_AFTER_SAVE = enum.auto()
    # Roll the session back when the store rejects the flush
    ROLLBACK_ON_FAILURE = enum.auto()

    DEFAULT = ACCEPT_ALL_CHANGES_AFTER_SAVE | ROLLBACK_ON_FAILURE
