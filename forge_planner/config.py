"""Configuration management for the FORGE planner."""

import os
from typing import List
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./forge_planner.db")

    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Text generation providers (tried in order: OpenRouter, Ollama, Claude)
    OPENROUTER_API_KEY: str = os.getenv("OPENROUTER_API_KEY", "")
    OPENROUTER_BASE_URL: str = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
    OPENROUTER_MODEL: str = os.getenv("OPENROUTER_MODEL", "meta-llama/llama-3.1-70b-instruct")
    OLLAMA_URL: str = os.getenv("OLLAMA_URL", "http://localhost:11434")
    OLLAMA_MODEL: str = os.getenv("OLLAMA_MODEL", "llama3.1")
    OLLAMA_ENABLED: bool = os.getenv("OLLAMA_ENABLED", "true").lower() == "true"
    ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")
    CLAUDE_MODEL: str = os.getenv("CLAUDE_MODEL", "claude-3-5-sonnet-20241022")
    AI_TIMEOUT_SECONDS: float = float(os.getenv("AI_TIMEOUT_SECONDS", "60"))
    AI_TEMPERATURE: float = float(os.getenv("AI_TEMPERATURE", "0.7"))

    # Token budgets
    PROGRAM_MAX_TOKENS: int = int(os.getenv("PROGRAM_MAX_TOKENS", "8192"))
    SESSION_MAX_TOKENS: int = int(os.getenv("SESSION_MAX_TOKENS", "4096"))
    PROMPT_MAX_CHARS: int = int(os.getenv("PROMPT_MAX_CHARS", "6000"))

    # Program generation
    DEFAULT_PROGRAM_WEEKS: int = int(os.getenv("DEFAULT_PROGRAM_WEEKS", "8"))
    MIN_PROGRAM_WEEKS: int = 4
    MAX_PROGRAM_WEEKS: int = int(os.getenv("MAX_PROGRAM_WEEKS", "52"))
    MIN_EXERCISES_PER_DAY: int = int(os.getenv("MIN_EXERCISES_PER_DAY", "12"))
    DEFAULT_WORKOUT_TIME: str = os.getenv("DEFAULT_WORKOUT_TIME", "09:00")
    DEFAULT_WORKOUT_MINUTES: int = int(os.getenv("DEFAULT_WORKOUT_MINUTES", "60"))

    # Request throttling (seconds between generation requests per user)
    REQUEST_COOLDOWN_SECONDS: float = float(os.getenv("REQUEST_COOLDOWN_SECONDS", "2"))

    # Personal records
    PR_HISTORY_LIMIT: int = int(os.getenv("PR_HISTORY_LIMIT", "10"))

    # Readiness factor weights
    READINESS_WEIGHT_HRV: float = float(os.getenv("READINESS_WEIGHT_HRV", "0.30"))
    READINESS_WEIGHT_SLEEP: float = float(os.getenv("READINESS_WEIGHT_SLEEP", "0.30"))
    READINESS_WEIGHT_RHR: float = float(os.getenv("READINESS_WEIGHT_RHR", "0.20"))
    READINESS_WEIGHT_SUBJECTIVE: float = float(os.getenv("READINESS_WEIGHT_SUBJECTIVE", "0.20"))
    READINESS_DEFAULT_HRV_BASELINE: float = float(os.getenv("READINESS_DEFAULT_HRV_BASELINE", "50"))
    CHECK_IN_MAX_AGE_DAYS: int = int(os.getenv("CHECK_IN_MAX_AGE_DAYS", "2"))

    def get_ai_providers(self) -> List[str]:
        """Get the ordered list of configured text-generation providers."""
        providers = []
        if self.OPENROUTER_API_KEY:
            providers.append("openrouter")
        if self.OLLAMA_ENABLED:
            providers.append("ollama")
        if self.ANTHROPIC_API_KEY:
            providers.append("claude")
        return providers

    def validate(self) -> bool:
        """Validate required configuration."""
        if self.MIN_EXERCISES_PER_DAY < 4:
            raise ValueError("MIN_EXERCISES_PER_DAY must cover the four exercise categories")
        if self.DEFAULT_PROGRAM_WEEKS < self.MIN_PROGRAM_WEEKS:
            raise ValueError(f"DEFAULT_PROGRAM_WEEKS must be at least {self.MIN_PROGRAM_WEEKS}")
        if self.DEFAULT_PROGRAM_WEEKS > self.MAX_PROGRAM_WEEKS:
            raise ValueError(f"DEFAULT_PROGRAM_WEEKS must be at most {self.MAX_PROGRAM_WEEKS}")
        weights = (
            self.READINESS_WEIGHT_HRV
            + self.READINESS_WEIGHT_SLEEP
            + self.READINESS_WEIGHT_RHR
            + self.READINESS_WEIGHT_SUBJECTIVE
        )
        if abs(weights - 1.0) > 1e-6:
            raise ValueError(f"Readiness weights must sum to 1.0 (got {weights:.2f})")
        return True


config = Config()
