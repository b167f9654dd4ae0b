"""Errors raised while preparing or executing a deployment."""

from pathlib import Path
from typing import List


class DeploymentError(Exception):
    """Base class for every fatal deployment condition."""


class ManifestMissing(DeploymentError):
    """No manifest file exists although some contracts must be reused."""

    def __init__(self, network: str, filepath: Path):
        self.network = network
        self.filepath = filepath
        super().__init__(
            f"No deployed contract addresses found for {network} "
            f"(expected {filepath}) but some contracts are not flagged for deployment."
        )


class ManifestIncomplete(DeploymentError):
    """Contracts flagged for reuse have no recorded address."""

    def __init__(self, network: str, missing: List[str], filepath: Path):
        self.network = network
        self.missing = list(missing)
        self.filepath = filepath
        super().__init__(
            "Cannot use existing contracts for deployment as addresses not found "
            f"for the following contracts on {network}: {', '.join(self.missing)} "
            f"(used {filepath} as source)"
        )


class ArtifactNotFound(DeploymentError):
    def __init__(self, artifact: str, filepath: Path):
        self.artifact = artifact
        self.filepath = filepath
        super().__init__(f"Cannot find compiled contract code for: {artifact} ({filepath})")


class UnresolvedDependency(DeploymentError):
    """A step referenced a contract that has neither been deployed nor recorded."""

    def __init__(self, requester: str, missing: str):
        self.requester = requester
        self.missing = missing
        super().__init__(
            f"{requester} depends on {missing}, which has not been deployed "
            f"earlier in this run and has no reusable address"
        )


class SubmissionError(DeploymentError):
    """A deployment or method-call transaction failed."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Transaction for {name} failed: {reason}")
