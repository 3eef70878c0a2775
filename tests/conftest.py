"""Shared pytest fixtures"""

import pytest

from core.assets import StoryStore
from tests.mocks.fixtures import make_transcript, make_words, write_story
from tests.mocks.renderer import FakeRenderer


# ============================================================
# Story Storage
# ============================================================

@pytest.fixture
def stories_root(tmp_path):
    """Empty stories root directory"""
    root = tmp_path / "stories"
    root.mkdir()
    return root


@pytest.fixture
def store(stories_root):
    """StoryStore over the temporary stories root"""
    return StoryStore(root=str(stories_root))


@pytest.fixture
def make_story(stories_root):
    """Factory writing a story directory under the stories root"""
    def _make(story_id: str = "story1", **kwargs):
        return write_story(stories_root, story_id=story_id, **kwargs)
    return _make


# ============================================================
# Renderer
# ============================================================

@pytest.fixture
def fake_renderer():
    """Renderer stand-in that writes marker clips instead of encoding"""
    return FakeRenderer()


# ============================================================
# Test Data Fixtures
# ============================================================

@pytest.fixture
def sample_words():
    """Four short words, 0.1s apart"""
    return make_words()


@pytest.fixture
def sample_transcript(sample_words):
    """Transcript document for the sample words"""
    return make_transcript(sample_words)


# ============================================================
# Markers Configuration
# ============================================================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests that need a real ffmpeg install"
    )
