"""Central configuration via Pydantic Settings. All values driven by env vars."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings

from suggestion_engine.models.schemas import GeneratorConfig, ThresholdConfig


class Settings(BaseSettings):
    # Actionability gate
    t_action: float = 0.5
    t_out_of_scope: float = 0.4

    # Score gates
    t_overall_min: float = 0.65
    t_section_min: float = 0.6

    # Validators
    t_generic: float = 0.55
    min_evidence_chars: int = 120

    # Routing
    t_attach: float = 0.80

    # Output
    max_suggestions: int = 5

    # Feature toggles
    enable_debug: bool = False
    use_llm_classifiers: bool = False
    embedding_enabled: bool = False

    # Debug ledger
    debug_verbosity: Literal["OFF", "REDACTED", "FULL_TEXT"] | None = None
    allow_full_text_debug: bool = False
    environment: str = "development"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    model_config = {"env_file": ".env", "env_prefix": "SUGGEST_"}

    def thresholds(self) -> ThresholdConfig:
        return ThresholdConfig(
            t_action=self.t_action,
            t_out_of_scope=self.t_out_of_scope,
            t_section_min=self.t_section_min,
            t_overall_min=self.t_overall_min,
            min_evidence_chars=self.min_evidence_chars,
            t_generic=self.t_generic,
            t_attach=self.t_attach,
        )

    def generator_config(self) -> GeneratorConfig:
        """Build the explicit per-call options record from the environment."""
        return GeneratorConfig(
            thresholds=self.thresholds(),
            max_suggestions=self.max_suggestions,
            enable_debug=self.enable_debug,
            use_llm_classifiers=self.use_llm_classifiers,
            embedding_enabled=self.embedding_enabled,
            debug_verbosity=self.debug_verbosity,
            allow_full_text_debug=self.allow_full_text_debug,
            environment=self.environment,
        )
