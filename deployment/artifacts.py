from pathlib import Path
from typing import Any, Dict, Iterable, List, NamedTuple

from web3.types import ABI

from deployment.constants import COMPILED_FOLDER
from deployment.exceptions import ArtifactNotFound
from deployment.utils import _load_json, write_json_atomically


class Artifact(NamedTuple):
    """Compiled bytecode and interface of a contract."""

    name: str
    bytecode: str
    abi: ABI


def _get_bytecode(data: Dict[str, Any]) -> str:
    """
    Returns the deployment bytecode from either a plain {abi, bytecode} artifact,
    an ethPM contract type or solc standard JSON output.
    """
    bytecode = data.get("bytecode")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if not bytecode:
        bytecode = (data.get("deploymentBytecode") or {}).get("bytecode")
    if not bytecode:
        bytecode = ((data.get("evm") or {}).get("bytecode") or {}).get("object")
    if not bytecode:
        return ""
    if not bytecode.startswith("0x"):
        bytecode = f"0x{bytecode}"
    return bytecode


class ArtifactStore:
    """Compiled artifacts under <build path>/compiled, one JSON file per contract."""

    def __init__(self, build_path: Path):
        self.compiled_path = Path(build_path) / COMPILED_FOLDER
        self._cache: Dict[str, Artifact] = dict()

    def filepath(self, name: str) -> Path:
        return self.compiled_path / f"{name}.json"

    def get(self, name: str) -> Artifact:
        if name in self._cache:
            return self._cache[name]
        filepath = self.filepath(name)
        if not filepath.exists():
            raise ArtifactNotFound(artifact=name, filepath=filepath)
        data = _load_json(filepath)
        artifact = Artifact(name=name, bytecode=_get_bytecode(data), abi=data.get("abi", []))
        self._cache[name] = artifact
        return artifact

    def load_all(self, names: Iterable[str]) -> List[Artifact]:
        """Loads every named artifact, failing on the first one missing."""
        return [self.get(name) for name in names]


def write_artifacts(contract_types: Dict[str, Any], build_path: Path) -> List[Path]:
    """Writes {abi, bytecode} artifacts for compiled ape/ethPM contract types."""
    compiled_path = Path(build_path) / COMPILED_FOLDER
    written = list()
    for name, contract_type in sorted(contract_types.items()):
        abi = [entry.model_dump(mode="json", by_alias=True) for entry in contract_type.abi]
        deployment_bytecode = contract_type.deployment_bytecode
        bytecode = deployment_bytecode.bytecode if deployment_bytecode else None
        artifact = {"abi": abi, "bytecode": bytecode or "0x"}
        written.append(write_json_atomically(artifact, compiled_path / f"{name}.json"))
    return written
