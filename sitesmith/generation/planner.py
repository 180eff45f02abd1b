"""Structure planner: ask the model for a project tree and merge it.

The planner shows the model the platform's baseline skeleton, parses the
``{"analysis", "structure"}`` answer with the response normalizer, and
merges the returned tree on top of the skeleton.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from sitesmith.completion_client import CompletionClient
from sitesmith.errors import InvalidStructureError
from sitesmith.generation.models import DirectoryNode, ProjectPlan
from sitesmith.generation.normalizer import normalize
from sitesmith.generation.prompts import PromptRenderer
from sitesmith.generation.skeletons import get_skeleton

DEFAULT_ANALYSIS = "Project structure generated successfully"


def merge_with_skeleton(skeleton: dict[str, Any], structure: dict[str, Any]) -> dict[str, Any]:
    """Merge a model-proposed root into the baseline root.

    The merged root takes the proposed root's fields, falling back to the
    skeleton's, and its children are the skeleton's top-level children
    followed by the proposed ones. Entries the model echoes from the
    skeleton therefore appear twice; duplicates are kept.
    """
    proposed_children = structure.get("children")
    if not isinstance(proposed_children, list):
        proposed_children = []
    merged = {**skeleton, **structure}
    merged["type"] = "directory"
    merged["children"] = [*skeleton.get("children", []), *proposed_children]
    return merged


class StructurePlanner:
    """Turns a user request into a ``ProjectPlan`` with one model call."""

    def __init__(self, client: CompletionClient, prompts: PromptRenderer | None = None) -> None:
        self.client = client
        self.prompts = prompts or PromptRenderer()

    async def plan_structure(self, user_prompt: str, platform: str) -> ProjectPlan:
        """Request, parse, validate and merge the project structure.

        Raises:
            TransportError: If the completion call fails.
            MalformedStructureError: If no JSON object can be recovered.
            InvalidStructureError: If the object has no usable ``structure``.
        """
        skeleton = get_skeleton(platform)
        prompt = self.prompts.structure_prompt(user_prompt, platform, skeleton)
        raw_text = await self.client.complete(prompt)

        data = normalize(raw_text)
        structure = data.get("structure")
        if not isinstance(structure, dict):
            raise InvalidStructureError("Invalid structure format received: missing 'structure' object")

        merged = merge_with_skeleton(skeleton, structure)
        try:
            tree = DirectoryNode.model_validate(merged)
        except ValidationError as exc:
            raise InvalidStructureError(f"Invalid structure format received: {exc}") from exc

        analysis = data.get("analysis")
        if not isinstance(analysis, str) or not analysis.strip():
            analysis = DEFAULT_ANALYSIS
        return ProjectPlan(analysis=analysis, tree=tree)
