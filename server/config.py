"""Server configuration using pydantic-settings"""

from pydantic_settings import BaseSettings
from typing import Literal, Optional

from core.models.build import PipelineConfig
from core.models.render import RenderConfig
from core.models.subtitle import SubtitleConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Environment
    env: Literal["development", "production"] = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Storage
    stories_dir: str = "stories"
    keep_scratch: bool = False

    # Encoder
    ffmpeg_path: Optional[str] = None
    ffprobe_path: Optional[str] = None
    max_concurrent_encoders: int = 4
    encoder_timeout: float = 300.0
    video_width: int = 1080
    video_height: int = 1920
    video_fps: float = 30.0
    video_codec: str = "libx264"
    audio_codec: str = "aac"
    audio_bitrate: str = "192k"
    preset: str = "medium"
    crf: int = 23

    # Captions
    max_words_per_cue: int = 10
    max_cue_pause: float = 0.7
    subtitle_language: str = "eng"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    def render_config(self) -> RenderConfig:
        return RenderConfig(
            output_width=self.video_width,
            output_height=self.video_height,
            output_fps=self.video_fps,
            video_codec=self.video_codec,
            audio_codec=self.audio_codec,
            audio_bitrate=self.audio_bitrate,
            preset=self.preset,
            crf=self.crf,
            encoder_timeout=self.encoder_timeout,
        )

    def subtitle_config(self) -> SubtitleConfig:
        return SubtitleConfig(
            max_words_per_cue=self.max_words_per_cue,
            max_pause=self.max_cue_pause,
            language=self.subtitle_language,
        )

    def pipeline_config(self) -> PipelineConfig:
        return PipelineConfig(keep_scratch=self.keep_scratch)


# Global settings instance
settings = Settings()
