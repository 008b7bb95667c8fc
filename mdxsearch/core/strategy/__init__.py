"""Settings and strategy config loading."""
from .loader import StrategyLoader, load_settings
from .models import Settings, StrategyConfig

__all__ = ["Settings", "StrategyConfig", "StrategyLoader", "load_settings"]
