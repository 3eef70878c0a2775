"""
Asset bundle storage.

Each story lives in its own directory under the stories root:

    stories/<story_id>/
        b-roll-1.png ... b-roll-3.png   one still per window
        voiceover-1.mp3                 primary narration
        transcription-1.json            optional word timestamps
        final.mp4                       published Final Video

Upstream generation owns these files. When it could not produce an asset it
leaves a ``<name>.degraded`` marker beside the placeholder, which validation
treats the same as a missing file.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from core.errors import InvalidStoryIdError, MissingAssetError, StoryNotFoundError
from core.models.build import SEGMENT_COUNT

logger = logging.getLogger(__name__)

IMAGE_TEMPLATE = "b-roll-{number}.png"
AUDIO_NAME = "voiceover-1.mp3"
TRANSCRIPT_NAME = "transcription-1.json"
FINAL_NAME = "final.mp4"
DEGRADED_SUFFIX = ".degraded"


def is_degraded(path: Path) -> bool:
    """True when upstream flagged the asset or left an empty placeholder."""
    path = Path(path)
    marker = path.with_name(path.name + DEGRADED_SUFFIX)
    if marker.exists():
        return True
    return path.exists() and path.stat().st_size == 0


@dataclass
class AssetBundle:
    """
    The input files for one story build.

    Attributes:
        story_id: Opaque story identifier
        directory: Story directory (derived artifacts are written here too)
        image_paths: One still per window, in window order
        audio_path: Primary narration track
        transcript_path: Word-level transcript, if upstream produced one
    """
    story_id: str
    directory: Path
    image_paths: List[Path] = field(default_factory=list)
    audio_path: Optional[Path] = None
    transcript_path: Optional[Path] = None

    @property
    def final_path(self) -> Path:
        return self.directory / FINAL_NAME

    def validate(self, segment_count: int = SEGMENT_COUNT) -> None:
        """
        Check the bundle can feed the encoder.

        Raises:
            MissingAssetError: If an image or the narration is absent or degraded
        """
        if len(self.image_paths) != segment_count:
            raise MissingAssetError(
                f"Story {self.story_id} has {len(self.image_paths)} images, "
                f"expected {segment_count}",
                stage="validating"
            )

        for i, image in enumerate(self.image_paths):
            if not image.exists():
                raise MissingAssetError(
                    f"Missing image {image.name} for story {self.story_id}",
                    stage="validating",
                    index=i
                )
            if is_degraded(image):
                raise MissingAssetError(
                    f"Image {image.name} for story {self.story_id} is a degraded placeholder",
                    stage="validating",
                    index=i
                )

        if self.audio_path is None or not self.audio_path.exists():
            raise MissingAssetError(
                f"Missing narration {AUDIO_NAME} for story {self.story_id}",
                stage="validating"
            )
        if is_degraded(self.audio_path):
            raise MissingAssetError(
                f"Narration {self.audio_path.name} for story {self.story_id} is empty or degraded",
                stage="validating"
            )


class StoryStore:
    """Directory-addressed store of story asset bundles and their Final Videos."""

    def __init__(self, root: str = "stories", segment_count: int = SEGMENT_COUNT):
        self.root = Path(root)
        self.segment_count = segment_count

    def story_dir(self, story_id: str) -> Path:
        """
        Resolve a story ID to its directory.

        Raises:
            InvalidStoryIdError: If the ID is empty or would leave the root
        """
        if (
            not story_id
            or story_id in (".", "..")
            or "/" in story_id
            or "\\" in story_id
            or story_id.startswith(".")
        ):
            raise InvalidStoryIdError(f"Invalid story ID: {story_id!r}")
        return self.root / story_id

    def load_bundle(self, story_id: str) -> AssetBundle:
        """
        Collect the bundle's file paths (existence is checked by validate()).

        Raises:
            InvalidStoryIdError: If the ID is malformed
            StoryNotFoundError: If the story directory does not exist
        """
        directory = self.story_dir(story_id)
        if not directory.is_dir():
            raise StoryNotFoundError(f"Story with ID {story_id} not found")

        transcript = directory / TRANSCRIPT_NAME
        return AssetBundle(
            story_id=story_id,
            directory=directory,
            image_paths=[
                directory / IMAGE_TEMPLATE.format(number=i + 1)
                for i in range(self.segment_count)
            ],
            audio_path=directory / AUDIO_NAME,
            transcript_path=transcript if transcript.exists() else None,
        )

    def final_path(self, story_id: str) -> Path:
        return self.story_dir(story_id) / FINAL_NAME

    def has_final(self, story_id: str) -> bool:
        return self.final_path(story_id).is_file()

    def list_completed(self) -> List[str]:
        """Story IDs that have a published Final Video, sorted."""
        if not self.root.exists():
            return []

        stories = []
        for item in self.root.iterdir():
            if item.is_dir() and not item.name.startswith(".") and (item / FINAL_NAME).is_file():
                stories.append(item.name)
        return sorted(stories)
