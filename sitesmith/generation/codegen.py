"""Per-file code generation."""

from __future__ import annotations

from sitesmith.completion_client import CompletionClient
from sitesmith.errors import CodeGenerationError, TransportError
from sitesmith.generation.models import FileDescriptor
from sitesmith.generation.prompts import PromptRenderer


class FileCodeGenerator:
    """Asks the model for the source of exactly one file."""

    def __init__(self, client: CompletionClient, prompts: PromptRenderer | None = None) -> None:
        self.client = client
        self.prompts = prompts or PromptRenderer()

    async def generate_file_code(
        self,
        user_prompt: str,
        platform: str,
        file: FileDescriptor,
        analysis: str = "",
        existing_code: str | None = None,
    ) -> str:
        """Return the trimmed model output for ``file``.

        With ``existing_code`` the update prompt is used, so the model edits
        the current contents instead of starting over. The text may still be
        wrapped in a Markdown fence; callers strip it.

        Raises:
            CodeGenerationError: If the completion call failed or the model
                returned nothing.
        """
        if existing_code is None:
            prompt = self.prompts.file_prompt(user_prompt, platform, file, analysis)
        else:
            prompt = self.prompts.update_prompt(user_prompt, platform, file, existing_code, analysis)

        try:
            text = (await self.client.complete(prompt)).strip()
        except TransportError as exc:
            raise CodeGenerationError(file.path, str(exc)) from exc
        if not text:
            raise CodeGenerationError(file.path, "the model returned an empty response")
        return text
