"""Unit tests for story asset bundles and the story store"""

import pytest

from core.assets import AUDIO_NAME, FINAL_NAME, TRANSCRIPT_NAME, AssetBundle, StoryStore, is_degraded
from core.errors import InvalidStoryIdError, MissingAssetError, StoryNotFoundError


class TestStoryStore:
    """Tests for StoryStore path resolution and listing"""

    def test_load_bundle_paths(self, store, make_story):
        story_dir = make_story("abc123")

        bundle = store.load_bundle("abc123")

        assert bundle.story_id == "abc123"
        assert bundle.directory == story_dir
        assert [p.name for p in bundle.image_paths] == ["b-roll-1.png", "b-roll-2.png", "b-roll-3.png"]
        assert bundle.audio_path == story_dir / AUDIO_NAME
        assert bundle.transcript_path == story_dir / TRANSCRIPT_NAME
        assert bundle.final_path == story_dir / FINAL_NAME

    def test_transcript_optional(self, store, make_story):
        make_story("abc123", transcript=None)
        assert store.load_bundle("abc123").transcript_path is None

    def test_unknown_story(self, store):
        with pytest.raises(StoryNotFoundError) as exc_info:
            store.load_bundle("nope")
        assert exc_info.value.kind == "StoryNotFound"

    @pytest.mark.parametrize("story_id", ["", ".", "..", "../etc", "a/b", "a\\b", ".hidden"])
    def test_rejects_escaping_ids(self, store, story_id):
        with pytest.raises(InvalidStoryIdError):
            store.story_dir(story_id)

    def test_list_completed(self, store, make_story, stories_root):
        for story_id in ("zeta", "alpha", "mid"):
            make_story(story_id)
        (stories_root / "zeta" / FINAL_NAME).write_bytes(b"video")
        (stories_root / "alpha" / FINAL_NAME).write_bytes(b"video")
        (stories_root / ".build-tmp").mkdir()
        (stories_root / "stray.txt").write_text("not a story")

        assert store.list_completed() == ["alpha", "zeta"]
        assert store.has_final("alpha")
        assert not store.has_final("mid")

    def test_list_completed_missing_root(self, tmp_path):
        assert StoryStore(root=str(tmp_path / "absent")).list_completed() == []


class TestAssetBundleValidation:
    """Tests for AssetBundle.validate"""

    def test_complete_bundle_passes(self, store, make_story):
        make_story()
        store.load_bundle("story1").validate()

    def test_missing_image(self, store, make_story):
        story_dir = make_story()
        (story_dir / "b-roll-2.png").unlink()

        with pytest.raises(MissingAssetError) as exc_info:
            store.load_bundle("story1").validate()

        assert exc_info.value.index == 1
        assert exc_info.value.stage == "validating"
        assert "b-roll-2.png" in exc_info.value.message

    def test_missing_audio(self, store, make_story):
        make_story(audio=False)
        with pytest.raises(MissingAssetError) as exc_info:
            store.load_bundle("story1").validate()
        assert exc_info.value.index is None

    def test_empty_audio_is_degraded(self, store, make_story):
        story_dir = make_story()
        (story_dir / AUDIO_NAME).write_bytes(b"")
        with pytest.raises(MissingAssetError):
            store.load_bundle("story1").validate()

    def test_degraded_marker_rejects_image(self, store, make_story):
        story_dir = make_story()
        (story_dir / "b-roll-3.png.degraded").touch()

        with pytest.raises(MissingAssetError) as exc_info:
            store.load_bundle("story1").validate()
        assert exc_info.value.index == 2

    def test_wrong_image_count(self, tmp_path):
        bundle = AssetBundle(story_id="s", directory=tmp_path, image_paths=[tmp_path / "one.png"])
        with pytest.raises(MissingAssetError):
            bundle.validate(segment_count=3)


class TestIsDegraded:
    """Tests for degraded-asset detection"""

    def test_marker_file(self, tmp_path):
        image = tmp_path / "b-roll-1.png"
        image.write_bytes(b"png")
        assert not is_degraded(image)

        (tmp_path / "b-roll-1.png.degraded").touch()
        assert is_degraded(image)

    def test_zero_byte_placeholder(self, tmp_path):
        image = tmp_path / "b-roll-1.png"
        image.write_bytes(b"")
        assert is_degraded(image)
