"""sitesmith configuration.

Centralised, typed configuration for the server, the generation pipeline
and the preview workspaces. All settings use Pydantic v2 models so they
are validated at construction time and can be serialised to/from JSON or
read from environment variables. A ``Config`` instance is built once by the
CLI and passed explicitly to everything that needs it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    """Settings for the text-completion endpoint."""

    provider: Literal["gemini", "ollama"] = Field(default="gemini")
    api_key: str = Field(default="", description="Gemini API key")
    gemini_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta")
    model: str = Field(default="", description="Model tag; empty selects the provider default")
    ollama_url: str = Field(default="http://localhost:11434")
    timeout: int = Field(default=120, ge=10, description="Per-request timeout in seconds")


class GenerationConfig(BaseModel):
    """Limits applied to a single generation session."""

    max_files: int = Field(
        default=100, ge=1, description="Maximum number of files generated per session"
    )
    default_platform: str = Field(default="none")


class PreviewConfig(BaseModel):
    """Where preview workspaces live and how long they are kept."""

    root_dir: Path = Field(default=Path("./previews"))
    retention_seconds: int = Field(default=30 * 60, ge=1)
    sweep_interval_seconds: int = Field(default=5 * 60, ge=1)
    url_prefix: str = Field(default="/preview")


class ServerConfig(BaseModel):
    """HTTP server binding."""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=5000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class Config(BaseModel):
    """Global sitesmith configuration."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    preview: PreviewConfig = Field(default_factory=PreviewConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Parent directories are created.

        Returns:
            The path that was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            GEMINI_API_KEY, SITESMITH_LLM_PROVIDER, SITESMITH_MODEL,
            SITESMITH_OLLAMA_URL, SITESMITH_LLM_TIMEOUT, SITESMITH_MAX_FILES,
            SITESMITH_PREVIEW_DIR, SITESMITH_PREVIEW_RETENTION,
            SITESMITH_HOST, PORT.
        """
        llm_kwargs: dict[str, Any] = {}
        if os.environ.get("GEMINI_API_KEY"):
            llm_kwargs["api_key"] = os.environ["GEMINI_API_KEY"]
        if os.environ.get("SITESMITH_LLM_PROVIDER"):
            llm_kwargs["provider"] = os.environ["SITESMITH_LLM_PROVIDER"]
        if os.environ.get("SITESMITH_MODEL"):
            llm_kwargs["model"] = os.environ["SITESMITH_MODEL"]
        if os.environ.get("SITESMITH_OLLAMA_URL"):
            llm_kwargs["ollama_url"] = os.environ["SITESMITH_OLLAMA_URL"]
        if os.environ.get("SITESMITH_LLM_TIMEOUT"):
            llm_kwargs["timeout"] = int(os.environ["SITESMITH_LLM_TIMEOUT"])

        generation_kwargs: dict[str, Any] = {}
        if os.environ.get("SITESMITH_MAX_FILES"):
            generation_kwargs["max_files"] = int(os.environ["SITESMITH_MAX_FILES"])

        preview_kwargs: dict[str, Any] = {}
        if os.environ.get("SITESMITH_PREVIEW_DIR"):
            preview_kwargs["root_dir"] = Path(os.environ["SITESMITH_PREVIEW_DIR"])
        if os.environ.get("SITESMITH_PREVIEW_RETENTION"):
            preview_kwargs["retention_seconds"] = int(os.environ["SITESMITH_PREVIEW_RETENTION"])

        server_kwargs: dict[str, Any] = {}
        if os.environ.get("SITESMITH_HOST"):
            server_kwargs["host"] = os.environ["SITESMITH_HOST"]
        if os.environ.get("PORT"):
            server_kwargs["port"] = int(os.environ["PORT"])

        return cls(
            llm=LLMConfig(**llm_kwargs),
            generation=GenerationConfig(**generation_kwargs),
            preview=PreviewConfig(**preview_kwargs),
            server=ServerConfig(**server_kwargs),
        )
