from collections import OrderedDict
from pathlib import Path
from typing import Dict, List, NamedTuple

from deployment.exceptions import DeploymentError
from deployment.utils import load_config

ContractName = str

ARTIFACT_KEY = "artifact"
LEGACY_ARTIFACT_KEY = "contract"


class DeploymentFlag(NamedTuple):
    """Whether a named contract must be freshly deployed, and which artifact backs it."""

    deploy: bool
    artifact: str


class FlagFile:
    """The contract flags for one run, keyed by contract name; read once."""

    class Invalid(DeploymentError, ValueError):
        """Raised when the flag file is malformed"""

    def __init__(self, flags: Dict[ContractName, DeploymentFlag], filepath: Path = None):
        self._flags = OrderedDict(flags)
        self.filepath = filepath

    @classmethod
    def from_file(cls, filepath: Path) -> "FlagFile":
        raw = load_config(filepath)
        if not isinstance(raw, dict):
            raise cls.Invalid(f"Contract flags in {filepath} must be a mapping of name to flags.")
        flags = OrderedDict()
        for name, entry in raw.items():
            flags[name] = cls._parse_entry(name, entry)
        return cls(flags, filepath=filepath)

    @classmethod
    def _parse_entry(cls, name: ContractName, entry) -> DeploymentFlag:
        if not isinstance(entry, dict):
            raise cls.Invalid(f"Malformed contract flags for {name}.")
        deploy = entry.get("deploy")
        if not isinstance(deploy, bool):
            raise cls.Invalid(f"'deploy' for {name} must be true or false, got {deploy!r}.")
        artifact = entry.get(ARTIFACT_KEY, entry.get(LEGACY_ARTIFACT_KEY))
        if not artifact or not isinstance(artifact, str):
            raise cls.Invalid(f"No artifact given for {name}.")
        return DeploymentFlag(deploy=deploy, artifact=artifact)

    def __getitem__(self, name: ContractName) -> DeploymentFlag:
        return self._flags[name]

    def __contains__(self, name: object) -> bool:
        return name in self._flags

    def __iter__(self):
        return iter(self._flags)

    def __len__(self) -> int:
        return len(self._flags)

    def items(self):
        return self._flags.items()

    def get(self, name: ContractName, default=None):
        return self._flags.get(name, default)

    def to_deploy(self) -> List[ContractName]:
        return [name for name, flag in self._flags.items() if flag.deploy]

    def to_reuse(self) -> List[ContractName]:
        return [name for name, flag in self._flags.items() if not flag.deploy]

    def artifacts(self) -> List[str]:
        """Distinct artifact names, in flag order."""
        return list(OrderedDict.fromkeys(flag.artifact for flag in self._flags.values()))
