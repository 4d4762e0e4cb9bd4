from __future__ import annotations

from collections.abc import Sequence

from subtitle_review_bot.bot.github.tracker import Tracker

SUBTITLES_ROOT = "subtitles"


def is_upload_path_set(paths: Sequence[str]) -> bool:
    """True iff ``paths`` is exactly one file shaped ``subtitles/<folder>/<name>``."""

    if len(paths) != 1:
        return False
    path = paths[0]
    if not path.startswith(f"{SUBTITLES_ROOT}/"):
        return False
    return len(path.split("/")) == 3


def is_upload(tracker: Tracker, pull_number: int) -> bool:
    files = tracker.list_changed_files(pull_number)
    return is_upload_path_set([f.path for f in files])
