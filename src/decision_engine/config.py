"""
Configuration management for the Decision Engine.

Loads settings from environment variables with sensible defaults.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

from .models.decision_state import ScoringWeights

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / '.env'
if _env_file.exists():
    load_dotenv(_env_file)


class Config:
    """Configuration settings loaded from environment."""

    # Data store
    DATABASE_URL: str = os.getenv('DATABASE_URL', '')

    # Scheduling defaults (overridable per call)
    MAX_ACTIONS_PER_DAY: int = int(os.getenv('MAX_ACTIONS_PER_DAY', '2'))
    SCHEDULING_HORIZON_DAYS: int = int(os.getenv('SCHEDULING_HORIZON_DAYS', '30'))

    # Score weights: the maximum points each sub-score contributes to the total
    SCORE_WEIGHT_URGENCY: float = float(os.getenv('SCORE_WEIGHT_URGENCY', '40'))
    SCORE_WEIGHT_STALL_RISK: float = float(os.getenv('SCORE_WEIGHT_STALL_RISK', '25'))
    SCORE_WEIGHT_VALUE: float = float(os.getenv('SCORE_WEIGHT_VALUE', '20'))
    SCORE_WEIGHT_EFFORT_BIAS: float = float(os.getenv('SCORE_WEIGHT_EFFORT_BIAS', '15'))

    # Signals
    EMAIL_SIGNAL_LOOKBACK_DAYS: int = int(os.getenv('EMAIL_SIGNAL_LOOKBACK_DAYS', '30'))

    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')

    @classmethod
    def validate(cls) -> list[str]:
        """
        Validate that required configuration is present.

        Returns:
            List of missing or invalid configuration keys
        """
        missing = []
        if not cls.DATABASE_URL:
            missing.append('DATABASE_URL')
        if cls.MAX_ACTIONS_PER_DAY < 1:
            missing.append('MAX_ACTIONS_PER_DAY')
        if cls.SCHEDULING_HORIZON_DAYS < 1:
            missing.append('SCHEDULING_HORIZON_DAYS')
        return missing

    @classmethod
    def scoring_weights(cls) -> ScoringWeights:
        """Build the score weights from the configured values."""
        return ScoringWeights(
            urgency=cls.SCORE_WEIGHT_URGENCY,
            stall_risk=cls.SCORE_WEIGHT_STALL_RISK,
            value=cls.SCORE_WEIGHT_VALUE,
            effort_bias=cls.SCORE_WEIGHT_EFFORT_BIAS,
        )


# Singleton config instance
config = Config()
