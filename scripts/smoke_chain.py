"""
Chain integration smoke test — run with: python3 scripts/smoke_chain.py
Requires a Hardhat node on localhost:8545 with GameLogic deployed and
web/contractInfo.json written (chain-arcade-deploy).
"""
import sys, threading, json, urllib.request

sys.path.insert(0, __file__.rsplit("/scripts", 1)[0])
from chain_arcade.contract_client import ChainConfig
from chain_arcade.server import make_server
from chain_arcade.session import GameSession

config = ChainConfig.from_env()

print("=== Chain Integration Test ===\n")

# 1 — node health
s = GameSession.open(config)
h = s.wallet.health()
assert h.get("ok"), f"health failed: {h}"
print(f"✓ node  chainId={h['chainId']}")

# 2 — manifest
assert s.manifest is not None and s.manifest.game_contract(), "no manifest / address"
print(f"✓ manifest  address={s.manifest.game_contract().address}")

# 3 — connect + auto-register
assert s.connect_wallet(), f"connect failed: {s.status_message}"
assert s.ready
assert s.player_info is not None and s.player_info.registered, f"not registered: {s.player_info}"
print(f"✓ connect  {s.wallet.address}  level={s.player_info.level}")

# 4 — mint
before = len(s.player_info.nfts)
r = s.mint_nft()
assert r.ok, r.message
assert len(s.player_info.nfts) == before + 1
print(f"✓ mintNFT  tx={r.tx_hash[:12]}…  nfts={len(s.player_info.nfts)}")

# 5 — perform action (a cooldown revert is an acceptable outcome)
r = s.perform_action()
assert r.ok or "cooldown" in r.message.lower(), r.message
print(f"✓ performAction  {r.message}")

# 6 — background action
task = s.submit_background("perform_action")
assert task.wait(60), "background action never finished"
print(f"✓ background performAction  state={task.state.value}  {task.result.message}")

# 7 — static server
server = make_server(config.web_root, config.manifest_path, port=0)
threading.Thread(target=server.serve_forever, daemon=True).start()
base = f"http://127.0.0.1:{server.server_address[1]}"
health = json.loads(urllib.request.urlopen(f"{base}/health").read())
assert health["status"] == "OK"
info = json.loads(urllib.request.urlopen(f"{base}/contractInfo.json").read())
assert info.get("address") or info.get("GameLogic")
server.shutdown()
print("✓ server  /health + /contractInfo.json")

print("\n=== All tests passed ✓ ===")
