# Infrastructure Adapters Package
from .github_contents import GitHubContentsAdapter

__all__ = ["GitHubContentsAdapter"]
