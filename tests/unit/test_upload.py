"""Unit tests for the upload command pipeline."""

from __future__ import annotations

import random

import pytest

from subtitle_review_bot.bot.github.tracker import TransportError
from subtitle_review_bot.bot.workflow.upload import (
    UploadCommand,
    UploadProcessor,
    UploadStep,
    UploadStepFailed,
    folded_comment_body,
    parse_upload_payload,
)
from subtitle_review_bot.labels import LabelRegistry

PREFIX = "bot, please upload"


class _FixedDigit(random.Random):
    def __init__(self, digit: int) -> None:
        super().__init__()
        self._digit = digit

    def randrange(self, *_args, **_kwargs) -> int:  # type: ignore[override]
        return self._digit


def _command(payload: str = "line1\nline2") -> UploadCommand:
    channel = LabelRegistry.default().channel_of("美食作家王刚")
    assert channel is not None
    return UploadCommand(
        task_number=42,
        task_title="[美食作家王刚] ep1",
        channel=channel,
        payload=payload,
        comment_id=777,
        author_login="translator",
    )


def test_parse_upload_payload_keeps_remainder_verbatim() -> None:
    assert parse_upload_payload("bot, please uploadline1\nline2", PREFIX) == "line1\nline2"
    assert parse_upload_payload("bot, please upload\n1\n00:00 --> 00:01\n", PREFIX) == (
        "\n1\n00:00 --> 00:01\n"
    )


@pytest.mark.parametrize("body", ["bot, please upload", "please upload this", " bot, please upload x"])
def test_parse_upload_payload_rejects_non_commands(body: str) -> None:
    assert parse_upload_payload(body, PREFIX) is None


def test_pipeline_creates_single_file_pull_and_folds_comment(tracker) -> None:
    processor = UploadProcessor(
        tracker=tracker, base_branch="master", prefix=PREFIX, rng=_FixedDigit(3)
    )

    artifacts = processor.run(_command())

    base_sha, entries = tracker.trees[0]
    assert base_sha == "base-sha"
    assert len(entries) == 1
    assert entries[0].path == "subtitles/wang-gang/subtitles-issue-42"
    assert entries[0].content == "line1\nline2"
    assert entries[0].mode == "100644"

    assert tracker.commits == [
        ("tree-1", ["base-sha"], "Upload subtitles for issue #42 on behalf of @translator")
    ]
    assert tracker.refs == {"refs/heads/issue-42-3": "commit-1"}
    assert tracker.pulls_created == [
        {
            "number": 101,
            "head": "issue-42-3",
            "base": "master",
            "title": "[美食作家王刚] ep1",
            "body": "#42\n\nUploaded on behalf of @translator",
        }
    ]

    folded = tracker.comment_bodies[777]
    assert folded.startswith(PREFIX + "\n\n<details>")
    assert "```\nline1\nline2\n```</details>" in folded
    assert folded == folded_comment_body(PREFIX, "line1\nline2")

    assert tracker.created_comments == [
        (42, "@translator, I've uploaded your subtitles as #101.")
    ]
    assert artifacts.pull_number == 101
    assert artifacts.branch == "issue-42-3"
    assert artifacts.comment_folded and artifacts.confirmed


def test_steps_run_in_order(tracker) -> None:
    UploadProcessor(tracker=tracker, base_branch="master", prefix=PREFIX).run(_command())

    assert tracker.calls == [
        "get_branch_tip",
        "create_tree",
        "create_commit",
        "create_ref",
        "create_pull",
        "update_comment",
        "create_comment",
    ]


def test_branch_suffix_is_a_single_digit(tracker) -> None:
    processor = UploadProcessor(
        tracker=tracker, base_branch="master", prefix=PREFIX, rng=random.Random(1234)
    )

    for _ in range(20):
        name = processor.branch_name(42)
        assert name.startswith("issue-42-")
        assert name.removeprefix("issue-42-") in set("0123456789")


def test_ref_collision_fails_without_cleanup(tracker) -> None:
    tracker.refs["refs/heads/issue-42-3"] = "older-commit"
    processor = UploadProcessor(
        tracker=tracker, base_branch="master", prefix=PREFIX, rng=_FixedDigit(3)
    )

    with pytest.raises(UploadStepFailed) as exc_info:
        processor.run(_command())

    err = exc_info.value
    assert isinstance(err, TransportError)
    assert err.step is UploadStep.CREATE_REF
    assert err.status_code == 422
    assert err.artifacts.tree_sha == "tree-1"
    assert err.artifacts.commit_sha == "commit-1"
    assert err.artifacts.branch is None
    assert tracker.refs == {"refs/heads/issue-42-3": "older-commit"}
    assert tracker.pulls_created == []
    assert tracker.comment_bodies == {}
    assert tracker.created_comments == []


def test_failure_after_pull_keeps_pull(tracker) -> None:
    tracker.fail_on.add("update_comment")
    processor = UploadProcessor(tracker=tracker, base_branch="master", prefix=PREFIX)

    with pytest.raises(UploadStepFailed) as exc_info:
        processor.run(_command())

    assert exc_info.value.step is UploadStep.FOLD_COMMENT
    assert exc_info.value.artifacts.pull_number == 101
    assert len(tracker.pulls_created) == 1
    assert tracker.created_comments == []


def test_missing_base_branch_fails_first_step(tracker) -> None:
    processor = UploadProcessor(tracker=tracker, base_branch="main", prefix=PREFIX)

    with pytest.raises(UploadStepFailed) as exc_info:
        processor.run(_command())

    assert exc_info.value.step is UploadStep.RESOLVE_BASE
    assert tracker.trees == []
