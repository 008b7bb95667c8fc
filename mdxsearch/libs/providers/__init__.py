from .bootstrap import register_builtin_providers

__all__ = ["register_builtin_providers"]
