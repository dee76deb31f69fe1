"""
arcade_view.py
Pygame window: arcade canvas on the left, HUD panels on the right, wallet line
and toast at the bottom. The session and the loop are passed in; the window
only translates keys into loop input and session actions.
"""

import threading
import time

import pygame

from chain_arcade.arcade import HEIGHT, TICK_RATE, WIDTH, ArcadeLoop
from chain_arcade.session import GameSession


TITLE = "Blockchain Game"
PANEL_WIDTH = 300
FOOTER_HEIGHT = 70

BG = (24, 26, 32)
CANVAS_BG = (240, 240, 240)
PLAYER_COLOR = (76, 175, 80)
BOOSTED_COLOR = (139, 195, 74)
ENEMY_COLOR = (33, 150, 243)
COIN_COLOR = (255, 152, 0)
POWER_UP_COLOR = (156, 39, 176)
TEXT = (230, 230, 230)
OK = (120, 220, 120)
BAD = (240, 110, 110)

MOVE_KEYS = {
    "left": (pygame.K_LEFT, pygame.K_a),
    "right": (pygame.K_RIGHT, pygame.K_d),
    "up": (pygame.K_UP, pygame.K_w),
    "down": (pygame.K_DOWN, pygame.K_s),
}


def chain_side_effect(session: GameSession):
    """Coin pickup hook: a delayed background perform_action when the chain is usable."""
    def _fire(delay: float):
        if session.ready:
            session.submit_background("perform_action", delay=delay)
    return _fire


class ArcadeWindow:
    def __init__(self, session: GameSession, loop: ArcadeLoop,
                 guild_name="Arcade Guild", guild_id=1, opponent=None,
                 challenge_amount=10, list_price=100):
        self.session = session
        self.loop = loop
        self.guild_name = guild_name
        self.guild_id = guild_id
        self.opponent = opponent
        self.challenge_amount = challenge_amount
        self.list_price = list_price
        self._flash = None
        self._flash_until = 0.0

        # key → (action, argument resolver); a resolver returning None means
        # the action has nothing to act on yet
        self.action_keys = {
            pygame.K_m: ("mint_nft", lambda: ()),
            pygame.K_p: ("perform_action", lambda: ()),
            pygame.K_u: ("upgrade_nft", self._first_nft),
            pygame.K_r: ("claim_daily_reward", lambda: ()),
            pygame.K_g: ("create_guild", lambda: (self.guild_name, "Formed in the arcade")),
            pygame.K_j: ("join_guild", lambda: (self.guild_id,)),
            pygame.K_l: ("leave_guild", lambda: ()),
            pygame.K_h: ("challenge_player", self._challenge_args),
            pygame.K_t: ("list_item", self._list_args),
            pygame.K_b: ("buy_item", self._first_listing),
            pygame.K_k: ("stake_nft", self._first_nft),
            pygame.K_n: ("unstake_nft", self._first_stake),
        }

    # ── argument resolvers ────────────────────────────────────────────────────

    def _first_nft(self):
        player = self.session.player_info
        return (player.nfts[0],) if player and player.nfts else None

    def _first_listing(self):
        items = self.session.market_items
        return (items[0],) if items else None

    def _first_stake(self):
        stakes = self.session.stakes
        return (stakes[0],) if stakes else None

    def _list_args(self):
        nft = self._first_nft()
        return (nft[0], self.list_price) if nft else None

    def _challenge_args(self):
        return (self.opponent, self.challenge_amount) if self.opponent else None

    # ── input ─────────────────────────────────────────────────────────────────

    def flash(self, text: str, seconds: float = 2.0):
        self._flash = text
        self._flash_until = time.time() + seconds

    def handle_key(self, key) -> bool:
        """Returns False when the window should close."""
        if key == pygame.K_ESCAPE:
            return False
        if key == pygame.K_SPACE:
            self.loop.toggle()
            self.flash("Game started!" if self.loop.running else "Game paused!")
        elif key == pygame.K_c:
            threading.Thread(target=self.session.connect_wallet, daemon=True).start()
        elif key in self.action_keys:
            kind, resolve = self.action_keys[key]
            args = resolve()
            if args is None:
                self.flash(f"{kind}: nothing to act on")
            else:
                self.session.submit_background(kind, *args)
        return True

    @staticmethod
    def held_directions(pressed):
        return {d for d, keys in MOVE_KEYS.items() if any(pressed[k] for k in keys)}

    def on_event(self, event):
        if event.kind == "coin":
            self.flash(f"Coin collected!  score={self.loop.score}")
        elif event.kind == "power_up":
            self.flash("Speed boost!")
        elif event.kind == "game_over":
            self.flash("Game over! Press SPACE to restart", seconds=5)

    # ── drawing ───────────────────────────────────────────────────────────────

    def draw(self, screen, font):
        screen.fill(BG)
        pygame.draw.rect(screen, CANVAS_BG, (0, 0, WIDTH, HEIGHT))
        loop = self.loop

        for coin in loop.coins:
            if not coin.collected:
                pygame.draw.rect(screen, COIN_COLOR, (coin.x, coin.y, coin.width, coin.height))
        for power_up in loop.power_ups:
            if power_up.active:
                pygame.draw.rect(screen, POWER_UP_COLOR,
                                 (power_up.x, power_up.y, power_up.width, power_up.height))
        for enemy in loop.enemies:
            pygame.draw.rect(screen, ENEMY_COLOR, (enemy.x, enemy.y, enemy.width, enemy.height))
        p = loop.player
        color = BOOSTED_COLOR if loop.boost_until is not None else PLAYER_COLOR
        pygame.draw.rect(screen, color, (p.x, p.y, p.width, p.height))

        screen.blit(font.render(f"{TITLE} - WASD or Arrow Keys to move", True, (0, 0, 0)), (10, 10))
        screen.blit(
            font.render(f"Score: {loop.score}   Coins: {loop.coins_collected}   HP: {p.health}",
                        True, (0, 0, 0)),
            (10, 30),
        )

        y = 10
        for title, lines in self.session.panels.titled():
            screen.blit(font.render(title, True, COIN_COLOR), (WIDTH + 10, y))
            y += 18
            for line in lines:
                screen.blit(font.render(line, True, TEXT), (WIDTH + 16, y))
                y += 16
            y += 6

        footer = HEIGHT + 8
        s = self.session
        screen.blit(font.render(s.permanent_message, True, OK if s.permanent_ok else BAD), (10, footer))
        if s.status_message:
            screen.blit(font.render(s.status_message, True, OK if s.status_ok else BAD), (10, footer + 18))
        elif self._flash and time.time() < self._flash_until:
            screen.blit(font.render(self._flash, True, TEXT), (10, footer + 18))
        screen.blit(
            font.render("SPACE play/pause  C connect  M mint  P act  U upgrade  R claim  "
                        "G/J/L guild  H challenge  T/B trade  K/N stake", True, TEXT),
            (10, footer + 40),
        )

    # ── main loop ─────────────────────────────────────────────────────────────

    def run(self):
        pygame.init()
        screen = pygame.display.set_mode((WIDTH + PANEL_WIDTH, HEIGHT + FOOTER_HEIGHT))
        pygame.display.set_caption(TITLE)
        font = pygame.font.SysFont(None, 20)
        clock = pygame.time.Clock()

        running = True
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    running = self.handle_key(event.key)

            for ev in self.loop.step(self.held_directions(pygame.key.get_pressed())):
                self.on_event(ev)
            self.session.tick()
            self.draw(screen, font)
            pygame.display.flip()
            clock.tick(TICK_RATE)

        pygame.quit()
