"""Git history error types."""


class GitError(Exception):
    """Base error for history lookups."""

    pass


class NotARepositoryError(GitError):
    """Path is not a git repository."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Not a git repository: {path}")
        self.path = path


class PathNotTrackedError(GitError):
    """Path has no history at HEAD."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Path not tracked at HEAD: {path}")
        self.path = path
