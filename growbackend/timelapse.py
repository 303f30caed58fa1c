"""Building blocks of the timelapse render worker: paths, frames and commands."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

STORAGE_DIR = "/var/timelapse"
FFMPEG = "/usr/bin/ffmpeg"


@dataclass(frozen=True)
class FrameSlot:
    """One image of the rendered sequence.

    Even slots are downloaded frames; odd slots are blends of the two
    neighbouring frames, listed in ``blend_sources``.
    """

    index: int
    path: str
    frame: Any
    blend_sources: tuple[str, str] | None = None

    @property
    def is_blend(self) -> bool:
        return self.blend_sources is not None


def render_dir(storage_dir: str, render_id: object) -> str:
    """Return the working directory of a render."""
    return f"{storage_dir}/render-{render_id}"


def frame_path(directory: str, index: int) -> str:
    """Return the path of the numbered frame image in a render directory."""
    return f"{directory}/frame-{index}.jpg"


def interleave_frames(directory: str, frames: Iterable[Any]) -> list[FrameSlot]:
    """Lay frames out on even slots with a blended image between each pair."""
    slots: list[FrameSlot] = []
    for position, frame in enumerate(frames):
        index = position * 2
        path = frame_path(directory, index)
        if index:
            previous = frame_path(directory, index - 2)
            slots.append(
                FrameSlot(
                    index=index - 1,
                    path=frame_path(directory, index - 1),
                    frame=frame,
                    blend_sources=(previous, path),
                )
            )
        slots.append(FrameSlot(index=index, path=path, frame=frame))
    return slots


def blend_command(image1: str, image2: str, dst: str) -> list[str]:
    """Command blending two images half and half into ``dst``."""
    return ["composite", "-blend", "50", image1, image2, "-matte", dst]


def render_command(directory: str, dst: str) -> list[str]:
    """Command encoding the numbered frames of a directory into a video."""
    return [
        FFMPEG, "-r", "40", "-i", f"{directory}/frame-%d.jpg",
        "-vf", "scale=1440:-2", dst,
    ]


def thumbnail_command(video: str, dst: str) -> list[str]:
    """Command extracting the first frame of a video as an image."""
    return [FFMPEG, "-i", video, "-ss", "00:00:00.000", "-frames:v", "1", dst]


def upload_object_name(url: str) -> str:
    """Return the object name of an upload path such as ``/bucket/name?query``."""
    parts = url.split("/")
    if len(parts) < 3:
        raise ValueError(f"upload path has no object name: {url!r}")
    return parts[2].split("?")[0]


def check_access(header: str | None, access_key: str) -> bool:
    """Whether an authentication header carries the worker's access key."""
    return header == f"Bearer {access_key}"