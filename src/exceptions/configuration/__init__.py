from src.exceptions.configuration.configuration_error import ConfigurationError

__all__ = ["ConfigurationError"]
