"""
Prompt Configuration System

Manages user-editable instructions and generation limits for the document
tasks (match analysis, essays, résumé tailoring and parsing, cover letters).
Configuration is stored in YAML; missing files fall back to defaults.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from ..ai.settings import get_project_root

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class GenerationParameters(BaseModel):
    """Generation limits for a specific task."""
    max_tokens: int = Field(default=500, ge=16, le=16384, description="Maximum tokens in response")


class MatchAnalysisConfig(BaseModel):
    """Configuration for job/résumé match analysis."""
    rules: str = Field(
        default="""1. ELIGIBILITY CHECK (CRITICAL):
   - Compare the graduation date or years of experience required by the job against the dates on the resume.
   - If there is ANY mismatch, list it in "cons", do not call the match perfect, and reduce the score by at least 20 points.
2. TECHNICAL ALIGNMENT:
   - Identify 3 specific projects or skills on the resume that address responsibilities in the job description.
   - Each claim MUST reference a specific project name or skill from the resume.
3. FACT-CHECKING:
   - Every item in "pros" MUST be supported by a data point from the resume.
   - Never invent skills or projects that are not in the resume.
4. WEIGHTED SCORING:
   - Start at 100 for a perfect match.
   - Subtract 30 for a graduation/experience requirement mismatch.
   - Subtract 10 for each missing core technical skill.""",
        description="Scoring rules given to the model"
    )
    parameters: GenerationParameters = Field(default_factory=lambda: GenerationParameters(max_tokens=500))


class EssayConfig(BaseModel):
    """Configuration for "Why do you want to join?" essays."""
    instructions: str = Field(
        default="""- Explain why this candidate is a great fit for this specific role.
- Reference specific skills from the resume that match the job.
- Sound enthusiastic but professional.
- Do NOT use generic phrases like "I am a hard worker".
- Return ONLY the essay text, no quotes or preamble.""",
        description="Instructions for essay writing"
    )
    parameters: GenerationParameters = Field(default_factory=lambda: GenerationParameters(max_tokens=300))


class TailorConfig(BaseModel):
    """Configuration for résumé tailoring."""
    rules: str = Field(
        default="""1. NEVER FABRICATE: Only use information from the original resume.
2. PRESERVE ALL FACTS: Keep dates, numbers, company names and job titles exactly as they appear.
3. REPHRASE ONLY: Reword bullet points to match job keywords and emphasize relevant achievements.
4. PRIORITIZE: Order experience, projects and skills by relevance to the job.""",
        description="Rules for résumé tailoring"
    )
    parameters: GenerationParameters = Field(default_factory=lambda: GenerationParameters(max_tokens=2000))


class ResumeParserConfig(BaseModel):
    """Configuration for résumé parsing."""
    parameters: GenerationParameters = Field(default_factory=lambda: GenerationParameters(max_tokens=1500))


class CoverLetterConfig(BaseModel):
    """Configuration for cover letter generation."""
    instructions: str = Field(
        default="""1. Concise (under 250 words)
2. NO placeholders like [Date] or [Skill] - use actual data
3. Only use facts stated in the resume""",
        description="Instructions for cover letter writing"
    )
    parameters: GenerationParameters = Field(default_factory=lambda: GenerationParameters(max_tokens=400))


class PromptConfig(BaseModel):
    """Complete prompt configuration."""
    version: str = Field(default="1.0", description="Config version for migrations")
    updated_at: Optional[str] = Field(default=None, description="Last update timestamp")

    match_analysis: MatchAnalysisConfig = Field(default_factory=MatchAnalysisConfig)
    essay: EssayConfig = Field(default_factory=EssayConfig)
    tailor: TailorConfig = Field(default_factory=TailorConfig)
    resume_parser: ResumeParserConfig = Field(default_factory=ResumeParserConfig)
    cover_letter: CoverLetterConfig = Field(default_factory=CoverLetterConfig)


# =============================================================================
# Configuration Manager
# =============================================================================

class PromptConfigManager:
    """Manages loading and saving prompt configurations."""

    DEFAULT_CONFIG_FILENAME = "prompt_config.yaml"

    def __init__(self, config_path: Optional[Path] = None):
        """
        Args:
            config_path: Path to config file. If None, uses the project root.
        """
        if config_path is None:
            config_path = get_project_root() / self.DEFAULT_CONFIG_FILENAME

        self.config_path = Path(config_path)
        self._config: Optional[PromptConfig] = None

    def load(self, create_if_missing: bool = False) -> PromptConfig:
        """
        Load configuration from file.

        Args:
            create_if_missing: If True, writes the default config when the file doesn't exist

        Returns:
            PromptConfig instance
        """
        if self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
                self._config = PromptConfig.model_validate(data)
                logger.info(f"Loaded prompt config from {self.config_path}")
            except (yaml.YAMLError, ValidationError, IOError) as e:
                logger.warning(f"Failed to load prompt config: {e}. Using defaults.")
                self._config = PromptConfig()
        else:
            self._config = PromptConfig()
            if create_if_missing:
                self.save()
                logger.info(f"Created default prompt config at {self.config_path}")

        return self._config

    def save(self, config: Optional[PromptConfig] = None) -> bool:
        """
        Save configuration to file.

        Returns:
            True if saved successfully
        """
        if config is not None:
            self._config = config

        if self._config is None:
            self._config = PromptConfig()

        self._config.updated_at = datetime.now().isoformat()

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            data = self._config.model_dump()
            with open(self.config_path, "w", encoding="utf-8") as f:
                yaml.dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False, width=120)
            logger.info(f"Saved prompt config to {self.config_path}")
            return True
        except IOError as e:
            logger.error(f"Failed to save prompt config: {e}")
            return False

    def get_config(self) -> PromptConfig:
        """Get current config, loading if necessary."""
        if self._config is None:
            return self.load()
        return self._config

    def reset_to_defaults(self) -> PromptConfig:
        """Reset configuration to defaults."""
        self._config = PromptConfig()
        self.save()
        return self._config


def get_prompt_config() -> PromptConfig:
    """Get the prompt config from the project root (defaults when absent)."""
    return PromptConfigManager().load()
