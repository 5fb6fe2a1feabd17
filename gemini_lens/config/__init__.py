from .loader import ConfigError, LensConfig, load_config, resolve_api_key

__all__ = [
    "ConfigError",
    "LensConfig",
    "load_config",
    "resolve_api_key",
]
