"""
abi.py
ABI of the GameLogic contract, used when a manifest carries an address but no
ABI (the plain deploy script only writes address, network and chainId).
"""


def _param(kind: str, name: str = "") -> dict:
    return {"internalType": kind, "name": name, "type": kind}


def _function(name: str, inputs=(), outputs=(), mutability: str = "nonpayable") -> dict:
    return {
        "inputs": [_param(kind, arg) for kind, arg in inputs],
        "name": name,
        "outputs": [_param(kind, arg) for kind, arg in outputs],
        "stateMutability": mutability,
        "type": "function",
    }


_UINT_LIST = [("uint256[]", "")]

GAME_LOGIC_ABI = [
    _function("registerPlayer"),
    _function("mintNFT", [("string", "uri")], [("uint256", "")]),
    _function("performAction"),
    _function("upgradeNFT", [("uint256", "tokenId")]),
    _function("claimDailyReward"),
    _function("createGuild", [("string", "name"), ("string", "description")]),
    _function("joinGuild", [("uint256", "guildId")]),
    _function("leaveGuild"),
    _function("challengePlayer", [("address", "opponent"), ("uint256", "amount")]),
    _function("listItem", [("uint256", "tokenId"), ("uint256", "price")]),
    _function("buyItem", [("uint256", "tokenId")]),
    _function("stakeNFT", [("uint256", "tokenId")]),
    _function("unstakeNFT", [("uint256", "tokenId")]),
    _function(
        "getPlayerInfo",
        [("address", "playerAddr")],
        [
            ("uint256[]", "nfts"),
            ("uint256", "level"),
            ("uint256", "experience"),
            ("uint256", "lastActionTime"),
            ("uint256", "lastClaimTime"),
            ("uint256", "totalRewards"),
            ("uint256", "achievementPoints"),
            ("uint256", "nftCount"),
            ("uint256", "gameTokens"),
            ("uint256", "reputation"),
            ("uint256", "guildId"),
        ],
        "view",
    ),
    _function("getPlayerAchievements", [("address", "playerAddr")], _UINT_LIST, "view"),
    _function(
        "getGuildInfo",
        [("uint256", "guildId")],
        [
            ("string", "name"),
            ("string", "description"),
            ("uint256", "memberCount"),
            ("uint256", "level"),
            ("uint256", "totalExperience"),
        ],
        "view",
    ),
    _function("getActiveMarketItems", (), _UINT_LIST, "view"),
    _function("getPlayerStakes", [("address", "playerAddr")], _UINT_LIST, "view"),
]
