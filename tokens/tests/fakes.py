from typing import Optional

from tokens.github import RemoteConflictError, RemoteFile, RemoteStoreError


class FakeRemote:
    """
    In-memory stand-in for GitHubContentsClient.

    Enforces the sha check the way GitHub does. Set `interleave` to a callable
    to simulate another client writing between this client's read and write.
    """

    def __init__(self, text: str = "", exists: Optional[bool] = None):
        self.text = text
        self.sha = "sha0" if (text if exists is None else exists) else None
        self.reads = 0
        self.commits = []
        self.interleave = None
        self.fail_with = None

    def read(self) -> RemoteFile:
        if self.fail_with:
            raise self.fail_with
        self.reads += 1
        snapshot = RemoteFile(text=self.text, sha=self.sha)
        if self.interleave:
            interleave, self.interleave = self.interleave, None
            interleave(self)
        return snapshot

    def write(self, text: str, sha, message: str) -> str:
        if sha != self.sha:
            raise RemoteConflictError(
                f"GitHub write failed with status 409: tokens.json does not match {sha}",
                status_code=409,
            )
        self.text = text
        self.sha = f"sha{len(self.commits) + 1}"
        self.commits.append(message)
        return self.sha


class UnreachableRemote(FakeRemote):
    def __init__(self):
        super().__init__()
        self.fail_with = RemoteStoreError("Could not reach GitHub: connection refused")
