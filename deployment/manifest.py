"""
Per-network record of deployed contract addresses.

Only one process may deploy against a given network at a time: the manifest
and journal files are not locked.
"""

from collections import OrderedDict
from pathlib import Path
from typing import Dict, List, Optional, Set

from eth_typing import ChecksumAddress

from deployment.constants import JOURNAL_FILENAME, MANIFEST_FILENAME
from deployment.exceptions import DeploymentError, ManifestIncomplete, ManifestMissing
from deployment.flags import ContractName, FlagFile
from deployment.utils import _load_json, write_json_atomically


def manifest_filepath(output_path: Path, network: str) -> Path:
    return Path(output_path) / network / MANIFEST_FILENAME


def journal_filepath(output_path: Path, network: str) -> Path:
    return Path(output_path) / network / JOURNAL_FILENAME


def read_manifest(filepath: Path) -> Dict[ContractName, ChecksumAddress]:
    data = _load_json(filepath)
    if not isinstance(data, dict):
        raise DeploymentError(f"Manifest at {filepath} is not a mapping of name to address.")
    return OrderedDict(data)


def write_manifest(addresses: Dict[ContractName, ChecksumAddress], filepath: Path) -> Path:
    """Writes the manifest, sorted by contract name to keep diffs stable."""
    data = OrderedDict(sorted(addresses.items()))
    return write_json_atomically(data, filepath)


class Manifest:
    """Mapping of contract name to deployed address on a single network."""

    def __init__(
        self,
        network: str,
        filepath: Path,
        addresses: Optional[Dict[ContractName, ChecksumAddress]] = None,
    ):
        self.network = network
        self.filepath = filepath
        self.addresses = OrderedDict(addresses or dict())

    @classmethod
    def load(cls, output_path: Path, network: str, flags: FlagFile) -> "Manifest":
        """
        Loads the manifest of a network. A missing file is only acceptable
        when every flagged contract is to be freshly deployed.
        """
        filepath = manifest_filepath(output_path, network)
        if not filepath.exists():
            if flags.to_reuse():
                raise ManifestMissing(network=network, filepath=filepath)
            return cls(network=network, filepath=filepath)
        return cls(network=network, filepath=filepath, addresses=read_manifest(filepath))

    def __contains__(self, name: object) -> bool:
        return name in self.addresses

    def __getitem__(self, name: ContractName) -> ChecksumAddress:
        return self.addresses[name]

    def get(self, name: ContractName) -> Optional[ChecksumAddress]:
        return self.addresses.get(name)

    def update(self, name: ContractName, address: ChecksumAddress) -> None:
        self.addresses[name] = address

    def persist(self) -> Path:
        return write_manifest(self.addresses, self.filepath)


def check_completeness(flags: FlagFile, manifest: Manifest) -> List[ContractName]:
    """Returns every contract flagged for reuse that has no recorded address."""
    return [name for name in flags.to_reuse() if name not in manifest]


def ensure_complete(flags: FlagFile, manifest: Manifest) -> None:
    missing = check_completeness(flags, manifest)
    if missing:
        raise ManifestIncomplete(
            network=manifest.network, missing=missing, filepath=manifest.filepath
        )


class Journal:
    """
    Progress of the current run: contracts deployed and method calls made.

    Written before the manifest on every step and removed once a run
    completes, so a journal left on disk marks an interrupted run to resume.
    """

    DEPLOYED_KEY = "deployed"
    CALLS_KEY = "calls"

    def __init__(
        self,
        filepath: Path,
        deployed: Optional[Dict[ContractName, ChecksumAddress]] = None,
        calls: Optional[List[str]] = None,
    ):
        self.filepath = filepath
        self.deployed = OrderedDict(deployed or dict())
        self.calls: Set[str] = set(calls or [])
        self.resumed = bool(self.deployed or self.calls)

    @classmethod
    def load(cls, filepath: Path) -> "Journal":
        if not filepath.exists():
            return cls(filepath=filepath)
        data = _load_json(filepath)
        return cls(
            filepath=filepath,
            deployed=data.get(cls.DEPLOYED_KEY),
            calls=data.get(cls.CALLS_KEY),
        )

    def record_deployment(self, name: ContractName, address: ChecksumAddress) -> None:
        self.deployed[name] = address
        self._write()

    def record_call(self, key: str) -> None:
        self.calls.add(key)
        self._write()

    def clear(self) -> None:
        self.filepath.unlink(missing_ok=True)
        self.deployed.clear()
        self.calls.clear()

    def _write(self) -> None:
        data = {self.DEPLOYED_KEY: self.deployed, self.CALLS_KEY: sorted(self.calls)}
        write_json_atomically(data, self.filepath)
