from src.infrastructure.accounts.in_memory import InMemoryUserRepository
from src.infrastructure.accounts.postgres import PostgresUserRepository
from src.infrastructure.accounts.sqlite import SqliteUserRepository

__all__ = ["InMemoryUserRepository", "PostgresUserRepository", "SqliteUserRepository"]
