from .adapter import AaveDataProvider

__all__ = ["AaveDataProvider"]
