import argparse

from chain_arcade.arcade import ArcadeLoop
from chain_arcade.arcade_view import ArcadeWindow, chain_side_effect
from chain_arcade.contract_client import ChainConfig
from chain_arcade.session import GameSession


def main(argv=None):
    config = ChainConfig.from_env()
    parser = argparse.ArgumentParser(description="Play the blockchain arcade.")
    parser.add_argument("--rpc-url", default=config.rpc_url)
    parser.add_argument("--manifest", default=config.manifest_path)
    parser.add_argument("--account-index", type=int, default=config.account_index)
    parser.add_argument("--connect", action="store_true", help="connect the wallet on startup")
    parser.add_argument("--guild-name", default="Arcade Guild")
    parser.add_argument("--guild-id", type=int, default=1)
    parser.add_argument("--opponent", help="address challenged with H")
    parser.add_argument("--challenge-amount", type=int, default=10)
    parser.add_argument("--list-price", type=int, default=100)
    args = parser.parse_args(argv)

    config.rpc_url = args.rpc_url
    config.manifest_path = args.manifest
    config.account_index = args.account_index

    print("Opening game session...")
    session = GameSession.open(config)
    if args.connect:
        print("Connecting wallet...")
        session.connect_wallet()
        print("Session:", session.permanent_message)

    loop = ArcadeLoop(on_coin_action=chain_side_effect(session))
    window = ArcadeWindow(
        session,
        loop,
        guild_name=args.guild_name,
        guild_id=args.guild_id,
        opponent=args.opponent,
        challenge_amount=args.challenge_amount,
        list_price=args.list_price,
    )
    window.run()


if __name__ == "__main__":
    main()
