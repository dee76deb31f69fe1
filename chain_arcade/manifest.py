"""
manifest.py
Reads and writes the deployment manifest (contractInfo.json).

Two shapes are accepted:

  single    {"address": ..., "abi": [...], "network": ..., "chainId": ...}
  multiple  {"GameLogic": {"address": ..., "abi": [...]}, "GameNFT": {...}}

For the multi-contract shape the game contract is "GameLogic" when present,
otherwise the first entry that has an address.
"""

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from chain_arcade.abi import GAME_LOGIC_ABI


GAME_CONTRACT = "GameLogic"


@dataclass
class ContractEntry:
    name: str
    address: Optional[str]
    abi: List[dict]


@dataclass
class DeploymentManifest:
    contracts: Dict[str, ContractEntry] = field(default_factory=dict)
    network: Optional[str] = None
    chain_id: Optional[int] = None
    deployer: Optional[str] = None
    timestamp: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "DeploymentManifest":
        if not isinstance(data, dict):
            raise ValueError("manifest must be a JSON object")
        if "address" in data or "abi" in data:
            entries = {GAME_CONTRACT: _entry(GAME_CONTRACT, data)}
        else:
            entries = {
                name: _entry(name, value)
                for name, value in data.items()
                if isinstance(value, dict)
            }
        chain_id = data.get("chainId")
        return cls(
            contracts=entries,
            network=data.get("network"),
            chain_id=int(chain_id) if chain_id is not None else None,
            deployer=data.get("deployer"),
            timestamp=data.get("timestamp"),
        )

    def game_contract(self) -> Optional[ContractEntry]:
        """The contract the session talks to, or None when no address is known."""
        entry = self.contracts.get(GAME_CONTRACT)
        if entry is not None and entry.address:
            return entry
        for candidate in self.contracts.values():
            if candidate.address:
                return candidate
        return None

    def to_dict(self) -> dict:
        entry = self.game_contract()
        if len(self.contracts) <= 1 and entry is not None:
            data = {"address": entry.address, "abi": entry.abi}
        else:
            data = {
                name: {"address": e.address, "abi": e.abi}
                for name, e in self.contracts.items()
            }
        data["network"] = self.network
        data["chainId"] = self.chain_id
        if self.deployer:
            data["deployer"] = self.deployer
        if self.timestamp:
            data["timestamp"] = self.timestamp
        return data


def _entry(name: str, data: dict) -> ContractEntry:
    address = data.get("address")
    address = (address.strip() or None) if isinstance(address, str) else None
    abi = data.get("abi")
    if not isinstance(abi, list) or not abi:
        abi = GAME_LOGIC_ABI
    return ContractEntry(name=name, address=address, abi=abi)


def load_manifest(path: str) -> Optional[DeploymentManifest]:
    """
    Load the manifest at `path`. A missing or unreadable manifest is not an
    error: the session simply runs without a contract.
    """
    if not os.path.exists(path):
        print(f"[chain] No deployed contract info found at {path}")
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            manifest = DeploymentManifest.from_dict(json.load(f))
    except (OSError, ValueError, TypeError) as exc:
        print(f"[chain] WARNING: could not read manifest {path}: {exc}")
        return None
    entry = manifest.game_contract()
    if entry is not None:
        print(f"[chain] Contract info loaded: {entry.address}")
    return manifest


def write_manifest(manifest: DeploymentManifest, *paths: str) -> List[str]:
    """Write the manifest to every path, creating parent directories."""
    if manifest.timestamp is None:
        manifest.timestamp = datetime.now(timezone.utc).isoformat()
    body = json.dumps(manifest.to_dict(), indent=2)
    written = []
    for path in paths:
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(body)
        written.append(path)
    return written
