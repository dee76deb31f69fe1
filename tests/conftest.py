import pytest

from chain_arcade.models import GuildInfo, PlayerInfo
from chain_arcade.session import GameSession
from chain_arcade.wallet_bridge import Signer


PLAYER = "0x1234567890AbcdEF1234567890aBcdef12345678"


class FakeWallet:
    def __init__(self, fail=None):
        self.signer = None
        self.fail = fail

    @property
    def address(self):
        return self.signer.address if self.signer else None

    def health(self):
        return {"ok": True, "chainId": 31337, "block": 1}

    def connect(self):
        if self.fail is not None:
            raise self.fail
        self.signer = Signer(address=PLAYER)
        return self.signer

    def disconnect(self):
        self.signer = None


class FakeContract:
    """In-memory GameLogic: writes mutate `player`, reads return it."""

    address = "0x5FbDB2315678afecb367f032d93F642f64180aa3"

    def __init__(self, player=None):
        self.player = player if player is not None else PlayerInfo(level=1)
        self.guild = GuildInfo("Knights", "We ride", 3, 2, 450)
        self.market = (7, 9)
        self.stakes = ()
        self.calls = []
        self.submit_errors = {}     # method → exception raised on submit
        self.confirm_errors = {}    # method → exception raised on confirm
        self.read_error = None
        self.on_confirm = None
        self._pending = {}
        self._n = 0

    def _tx(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.submit_errors:
            raise self.submit_errors[name]
        self._n += 1
        tx_hash = f"0x{self._n:064x}"
        self._pending[tx_hash] = (name, args)
        return tx_hash

    def wait_for_receipt(self, tx_hash):
        name, args = self._pending.pop(tx_hash)
        if self.on_confirm is not None:
            self.on_confirm(name)
        if name in self.confirm_errors:
            raise self.confirm_errors[name]
        if name == "mint_nft":
            nfts = self.player.nfts + (len(self.player.nfts) + 1,)
            self.player = PlayerInfo(nfts=nfts, level=self.player.level, nft_count=len(nfts))
        elif name == "register_player":
            self.player = PlayerInfo(level=1)
        elif name == "join_guild":
            self.player = PlayerInfo(nfts=self.player.nfts, level=self.player.level, guild_id=args[0])
        elif name == "stake_nft":
            self.stakes = self.stakes + (args[0],)
        return {"status": 1, "transactionHash": tx_hash}

    def register_player(self):
        return self._tx("register_player")

    def mint_nft(self, uri):
        return self._tx("mint_nft", uri)

    def perform_action(self):
        return self._tx("perform_action")

    def upgrade_nft(self, token_id):
        return self._tx("upgrade_nft", token_id)

    def claim_daily_reward(self):
        return self._tx("claim_daily_reward")

    def create_guild(self, name, description):
        return self._tx("create_guild", name, description)

    def join_guild(self, guild_id):
        return self._tx("join_guild", guild_id)

    def leave_guild(self):
        return self._tx("leave_guild")

    def challenge_player(self, opponent, amount):
        return self._tx("challenge_player", opponent, amount)

    def list_item(self, token_id, price):
        return self._tx("list_item", token_id, price)

    def buy_item(self, token_id):
        return self._tx("buy_item", token_id)

    def stake_nft(self, token_id):
        return self._tx("stake_nft", token_id)

    def unstake_nft(self, token_id):
        return self._tx("unstake_nft", token_id)

    def _read(self, value):
        if self.read_error is not None:
            raise self.read_error
        return value

    def get_player_info(self, address):
        return self._read(self.player)

    def get_player_achievements(self, address):
        return self._read(("first-mint",) if self.player.nfts else ())

    def get_guild_info(self, guild_id):
        return self._read(self.guild)

    def get_active_market_items(self):
        return self._read(self.market)

    def get_player_stakes(self, address):
        return self._read(self.stakes)


@pytest.fixture
def wallet():
    return FakeWallet()


@pytest.fixture
def contract():
    return FakeContract()


@pytest.fixture
def session(wallet, contract):
    s = GameSession(wallet, contract=contract)
    assert s.connect_wallet()
    return s
