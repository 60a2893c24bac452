from .client import GitHubClient, GitHubError, GitHubSettings
from .types import CommitRef, JobOutcome, PullRequestRef, Repository, RunSummary

__all__ = [
    "CommitRef",
    "GitHubClient",
    "GitHubError",
    "GitHubSettings",
    "JobOutcome",
    "PullRequestRef",
    "Repository",
    "RunSummary",
]
