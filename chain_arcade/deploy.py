"""
deploy.py
Writes the deployment manifest the session and the static server read.

Either deploy a compiled Hardhat artifact first:

    chain-arcade-deploy --artifact artifacts/contracts/GameLogic.sol/GameLogic.json

or record a contract that is already deployed:

    chain-arcade-deploy --address 0x5FbDB2315678afecb367f032d93F642f64180aa3

The manifest is written to web/contractInfo.json and, as a backup, to
dist/contractInfo.json.
"""

import argparse
import json
import os
import sys

from chain_arcade.abi import GAME_LOGIC_ABI
from chain_arcade.contract_client import ChainConfig
from chain_arcade.errors import GameClientError
from chain_arcade.manifest import GAME_CONTRACT, ContractEntry, DeploymentManifest, write_manifest
from chain_arcade.wallet_bridge import WalletProvider


HARDHAT_CHAIN_ID = 31337


def load_artifact(path: str):
    """(abi, bytecode) from a Hardhat/solc JSON artifact."""
    with open(path, "r", encoding="utf-8") as f:
        artifact = json.load(f)
    bytecode = artifact.get("bytecode")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if not bytecode:
        raise ValueError(f"{path} has no bytecode")
    return artifact["abi"], bytecode


def deploy_artifact(wallet: WalletProvider, abi: list, bytecode: str) -> str:
    """Deploy with the bound signer and return the new contract address."""
    factory = wallet.w3.eth.contract(abi=abi, bytecode=bytecode)
    tx = factory.constructor().build_transaction({"from": wallet.address})
    tx_hash = wallet.send_transaction(tx)
    print(f"[deploy] tx sent {tx_hash}, waiting for confirmation...")
    receipt = wallet.wait_for_receipt(tx_hash)
    if receipt.get("status", 1) == 0 or not receipt.get("contractAddress"):
        raise GameClientError(f"deployment reverted (tx={tx_hash})")
    return receipt["contractAddress"]


def build_manifest(address: str, abi: list, network: str, chain_id: int, deployer=None) -> DeploymentManifest:
    return DeploymentManifest(
        contracts={GAME_CONTRACT: ContractEntry(GAME_CONTRACT, address, abi)},
        network=network,
        chain_id=chain_id,
        deployer=deployer,
    )


def main(argv=None):
    config = ChainConfig.from_env()
    parser = argparse.ArgumentParser(description="Deploy GameLogic and write contractInfo.json.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--artifact", help="compiled contract JSON (abi + bytecode)")
    source.add_argument("--address", help="address of an existing deployment")
    parser.add_argument("--rpc-url", default=config.rpc_url)
    parser.add_argument("--network", default="localhost")
    parser.add_argument("--chain-id", type=int, default=None)
    parser.add_argument("--out", default=config.manifest_path)
    parser.add_argument("--dist", default=os.path.join("dist", "contractInfo.json"))
    args = parser.parse_args(argv)

    wallet = WalletProvider(args.rpc_url, private_key=config.private_key,
                            account_index=config.account_index)
    deployer = None
    chain_id = args.chain_id

    if args.artifact:
        print("[deploy] Deploying Game contracts...")
        try:
            abi, bytecode = load_artifact(args.artifact)
            signer = wallet.connect()
            deployer = signer.address
            address = deploy_artifact(wallet, abi, bytecode)
        except (OSError, ValueError, KeyError, GameClientError) as exc:
            print(f"[deploy] ✗ {exc}")
            return 1
        print(f"[deploy] GameLogic contract deployed to: {address}")
    else:
        address, abi = args.address, GAME_LOGIC_ABI

    if chain_id is None:
        health = wallet.health()
        chain_id = health["chainId"] if health.get("ok") else HARDHAT_CHAIN_ID

    manifest = build_manifest(address, abi, args.network, chain_id, deployer)
    for path in write_manifest(manifest, args.out, args.dist):
        print(f"[deploy] Contract info saved to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
