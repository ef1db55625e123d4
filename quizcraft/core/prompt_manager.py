"""
Prompt templates for quiz generation.

Templates are plain text files in ``quizcraft/prompts`` with ``{{VARIABLE}}``
placeholders, read once and cached per manager.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).resolve().parent.parent / "prompts"

PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


class PromptManager:
    """
    Renders named prompt templates.

    Example:
        prompts = PromptManager()
        text = prompts.load_prompt("quiz_generation", TOPIC="Operating Systems", ...)
    """

    def __init__(self, prompts_dir: Path = PROMPTS_DIR):
        self.prompts_dir = Path(prompts_dir)
        self._templates: Dict[str, str] = {}

        if not self.prompts_dir.is_dir():
            logger.warning("Prompts directory not found: %s", self.prompts_dir)

    def load_prompt(self, name: str, **variables: Any) -> str:
        """Render template ``name``; unknown placeholders are left in place and logged."""
        missing: List[str] = []

        def substitute(match: re.Match) -> str:
            key = match.group(1)
            if key in variables:
                return str(variables[key])
            missing.append(key)
            return match.group(0)

        prompt = PLACEHOLDER.sub(substitute, self.get_template(name))
        if missing:
            logger.warning("Prompt %r rendered without %s", name, missing)
        return prompt

    def get_template(self, name: str) -> str:
        template = self._templates.get(name)
        if template is None:
            path = self.prompts_dir / f"{name}.txt"
            if not path.is_file():
                raise FileNotFoundError(
                    f"No prompt template {name!r} in {self.prompts_dir} "
                    f"(have: {', '.join(self.list_templates()) or 'none'})"
                )
            template = path.read_text(encoding="utf-8")
            self._templates[name] = template
            logger.debug("Loaded prompt template %s", name)
        return template

    def list_templates(self) -> List[str]:
        if not self.prompts_dir.is_dir():
            return []
        return sorted(path.stem for path in self.prompts_dir.glob("*.txt"))


_prompt_manager: Optional[PromptManager] = None


def get_prompt_manager() -> PromptManager:
    """Shared manager for the packaged templates."""
    global _prompt_manager
    if _prompt_manager is None:
        _prompt_manager = PromptManager()
    return _prompt_manager
