"""Channel and status label conventions.

Channels are the content sources a subtitle task belongs to. Each channel is
rendered twice: as a human-readable issue/pull request label and as a folder
under ``subtitles/`` in the repository.

Statuses are the mutually exclusive workflow stages a task moves through. A task
carries at most one status label at any time.

We keep these as stable, human-readable names (not machine IDs) so that:
- repos can be bootstrapped idempotently (create if missing)
- translators can filter the issue list by label
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum


class TaskStatus(str, Enum):
    QUEUED_FOR_TRANSLATION = "待翻译"
    QUEUED_FOR_REVIEW = "待审阅"
    QUEUED_FOR_UPLOAD = "待上传"
    QUEUED_FOR_PUBLICATION = "待发布"


STATUS_LABELS: tuple[str, ...] = tuple(status.value for status in TaskStatus)

DEFAULT_CHANNEL_LABELS: tuple[str, ...] = (
    "测试作者",
    "美食作家王刚",
    "雪鱼探店",
    "华农兄弟",
)

DEFAULT_CHANNEL_FOLDERS: tuple[str, ...] = (
    "test-author",
    "wang-gang",
    "xue-yu",
    "hua-nong-brothers",
)

_CHANNEL_COLOR = "1d76db"
_STATUS_COLOR = "fbca04"


class CatalogMisalignedError(ValueError):
    """Raised when the channel label and folder lists cannot be paired by position."""


@dataclass(frozen=True, slots=True)
class Channel:
    label: str
    folder: str
    ordinal: int

    @property
    def title_markers(self) -> tuple[str, str]:
        """Title prefixes that mark a new issue as belonging to this channel."""

        return (f"[{self.label}]", f"【{self.label}】")


@dataclass(frozen=True, slots=True)
class LabelSpec:
    name: str
    color: str
    description: str


@dataclass(frozen=True, slots=True)
class LabelRegistry:
    """Immutable lookup over the channel catalog and the status catalog.

    Built once at startup (see :meth:`from_lists`) and passed to every component
    that needs to interpret labels.
    """

    channels: tuple[Channel, ...]

    @classmethod
    def from_lists(cls, labels: Sequence[str], folders: Sequence[str]) -> LabelRegistry:
        if len(labels) != len(folders):
            raise CatalogMisalignedError(
                f"Channel catalog is misaligned: {len(labels)} labels vs {len(folders)} folders"
            )

        normalized_labels = [label.strip() for label in labels]
        normalized_folders = [folder.strip() for folder in folders]
        if any(not label for label in normalized_labels):
            raise CatalogMisalignedError("Channel labels must be non-empty")
        if any(not folder or "/" in folder for folder in normalized_folders):
            raise CatalogMisalignedError("Channel folders must be non-empty single path segments")
        if len(set(normalized_labels)) != len(normalized_labels):
            raise CatalogMisalignedError("Channel labels must be unique")
        if len(set(normalized_folders)) != len(normalized_folders):
            raise CatalogMisalignedError("Channel folders must be unique")

        overlap = set(normalized_labels) & set(STATUS_LABELS)
        if overlap:
            raise CatalogMisalignedError(
                f"Channel labels collide with status labels: {sorted(overlap)}"
            )

        return cls(
            channels=tuple(
                Channel(label=label, folder=folder, ordinal=i)
                for i, (label, folder) in enumerate(
                    zip(normalized_labels, normalized_folders, strict=True)
                )
            )
        )

    @classmethod
    def default(cls) -> LabelRegistry:
        return cls.from_lists(DEFAULT_CHANNEL_LABELS, DEFAULT_CHANNEL_FOLDERS)

    def all_channels(self) -> tuple[Channel, ...]:
        return self.channels

    def channel_of(self, label: str) -> Channel | None:
        for channel in self.channels:
            if channel.label == label:
                return channel
        return None

    @staticmethod
    def is_status_label(label: str) -> bool:
        return label in STATUS_LABELS

    def sole_channel(self, labels: Iterable[str]) -> Channel | None:
        """Return the single channel found in ``labels``.

        Zero matches and more than one distinct match both yield ``None``: an
        ambiguous task is treated exactly like an unlabelled one.
        """

        found: list[Channel] = []
        for label in labels:
            channel = self.channel_of(label)
            if channel is not None and channel not in found:
                found.append(channel)
        if len(found) != 1:
            return None
        return found[0]

    def channels_in_title(self, title: str) -> list[Channel]:
        """Channels (in catalog order) whose bracketed marker prefixes ``title``."""

        return [
            channel
            for channel in self.channels
            if any(title.startswith(marker) for marker in channel.title_markers)
        ]

    def label_specs(self) -> tuple[LabelSpec, ...]:
        specs = [
            LabelSpec(
                name=channel.label,
                color=_CHANNEL_COLOR,
                description=f"Subtitle channel: subtitles/{channel.folder}",
            )
            for channel in self.channels
        ]
        specs.extend(
            LabelSpec(
                name=status.value,
                color=_STATUS_COLOR,
                description="Subtitle workflow: " + status.name.lower().replace("_", " "),
            )
            for status in TaskStatus
        )
        return tuple(specs)
