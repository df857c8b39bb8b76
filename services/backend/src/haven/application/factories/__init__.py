"""Application factories for repository and adapter access."""

from haven.application.factories.repository_factory import RepositoryFactory

__all__ = ["RepositoryFactory"]
