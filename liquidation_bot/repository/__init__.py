from .postgres import PostgresPositionRepository

__all__ = ["PostgresPositionRepository"]
