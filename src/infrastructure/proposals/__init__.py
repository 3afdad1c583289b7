from src.infrastructure.proposals.in_memory import InMemoryProposalRepository
from src.infrastructure.proposals.postgres import PostgresProposalRepository
from src.infrastructure.proposals.sqlite import SqliteProposalRepository

__all__ = [
    "InMemoryProposalRepository",
    "PostgresProposalRepository",
    "SqliteProposalRepository",
]
