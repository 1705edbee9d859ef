from src.config.settings import config, Config, BASE_DIR

__all__ = ["config", "Config", "BASE_DIR"]
