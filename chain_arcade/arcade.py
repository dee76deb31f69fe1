"""
arcade.py
The local mini-game: a player square chased by enemies, collecting coins and
speed power-ups on a fixed 30 Hz tick. Nothing here touches the chain except
the optional on_coin_action callback, which the window wires to a delayed
background perform_action.

The loop is pure state: the window feeds it the held directions every frame
and draws whatever it holds afterwards.
"""

import random
import time
from dataclasses import dataclass
from typing import Callable, Iterable, List, NamedTuple, Optional


TICK_RATE = 30
WIDTH, HEIGHT = 600, 400

PLAYER_START = (50, 50)
PLAYER_SIZE = 50
BASE_SPEED = 5
MAX_HEALTH = 100

ENEMY_LAYOUT = ((200, 150), (300, 250))
ENEMY_SIZE = 30
ENEMY_STEP = 1
ENEMY_DAMAGE = 1            # per enemy, per tick of overlap

COIN_LAYOUT = ((350, 100), (150, 200), (400, 300))
COIN_SIZE = 25
COIN_SCORE = 10

POWER_UP_LAYOUT = ((500, 60), (80, 320))
POWER_UP_SIZE = 20
SPEED_BOOST = 3
BOOST_SECONDS = 5.0
POWER_UP_RESPAWN_SECONDS = 10.0

ACTION_CHANCE = 0.3
ACTION_DELAY = 1.0


@dataclass
class Entity:
    x: float
    y: float
    width: float
    height: float

    def overlaps(self, other: "Entity") -> bool:
        return (
            self.x < other.x + other.width
            and self.x + self.width > other.x
            and self.y < other.y + other.height
            and self.y + self.height > other.y
        )


@dataclass
class Player(Entity):
    speed: float = BASE_SPEED
    health: int = MAX_HEALTH


@dataclass
class Enemy(Entity):
    speed: float = ENEMY_STEP


@dataclass
class Coin(Entity):
    collected: bool = False


@dataclass
class PowerUp(Entity):
    active: bool = True
    inactive_until: float = 0.0


class ArcadeEvent(NamedTuple):
    kind: str                   # "coin" | "chain_action" | "power_up" | "hit" | "game_over"
    entity: Optional[Entity] = None


def _clamp(value, low, high):
    return max(low, min(high, value))


class ArcadeLoop:
    def __init__(
        self,
        width: int = WIDTH,
        height: int = HEIGHT,
        on_coin_action: Optional[Callable[[float], None]] = None,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ):
        self.width = width
        self.height = height
        self.on_coin_action = on_coin_action
        self.clock = clock
        self.rng = rng or random.Random()

        self.player = self._new_player()
        self.enemies: List[Enemy] = []
        self.coins: List[Coin] = []
        self.power_ups: List[PowerUp] = []
        self.score = 0
        self.coins_collected = 0
        self.running = False
        self.game_over = False
        self.game_over_count = 0
        self.boost_until: Optional[float] = None

    # ── lifecycle ─────────────────────────────────────────────────────────────

    @staticmethod
    def _new_player() -> Player:
        x, y = PLAYER_START
        return Player(x, y, PLAYER_SIZE, PLAYER_SIZE)

    def _layout(self):
        """Fresh enemies, coins and power-ups. Player position and score are kept."""
        self.enemies = [Enemy(x, y, ENEMY_SIZE, ENEMY_SIZE) for x, y in ENEMY_LAYOUT]
        self.coins = [Coin(x, y, COIN_SIZE, COIN_SIZE) for x, y in COIN_LAYOUT]
        self.power_ups = [PowerUp(x, y, POWER_UP_SIZE, POWER_UP_SIZE) for x, y in POWER_UP_LAYOUT]

    def start(self):
        self._layout()
        self.running = True
        self.game_over = False
        print("[arcade] Game started!")

    def stop(self):
        self.running = False
        print("[arcade] Game paused!")

    def toggle(self) -> bool:
        if self.running:
            self.stop()
        else:
            self.start()
        return self.running

    # ── tick ──────────────────────────────────────────────────────────────────

    def step(self, held: Iterable[str] = ()) -> List[ArcadeEvent]:
        """Advance one tick. `held` holds any of "left", "right", "up", "down"."""
        if not self.running:
            return []
        now = self.clock()
        self._expire_effects(now)
        self._move_player(set(held))
        self._move_enemies()
        events = self._collect_coins()
        events += self._collect_power_ups(now)
        events += self._apply_damage()
        return events

    def _move_player(self, held):
        p = self.player
        if "left" in held:
            p.x -= p.speed
        if "right" in held:
            p.x += p.speed
        if "up" in held:
            p.y -= p.speed
        if "down" in held:
            p.y += p.speed
        p.x = _clamp(p.x, 0, self.width - p.width)
        p.y = _clamp(p.y, 0, self.height - p.height)

    def _move_enemies(self):
        px, py = self.player.x, self.player.y
        for e in self.enemies:
            if e.x < px:
                e.x = min(px, e.x + e.speed)
            elif e.x > px:
                e.x = max(px, e.x - e.speed)
            if e.y < py:
                e.y = min(py, e.y + e.speed)
            elif e.y > py:
                e.y = max(py, e.y - e.speed)
            e.x = _clamp(e.x, 0, self.width - e.width)
            e.y = _clamp(e.y, 0, self.height - e.height)

    def _collect_coins(self) -> List[ArcadeEvent]:
        events = []
        for coin in self.coins:
            if coin.collected or not self.player.overlaps(coin):
                continue
            coin.collected = True
            self.score += COIN_SCORE
            self.coins_collected += 1
            events.append(ArcadeEvent("coin", coin))
            if self.on_coin_action is not None and self.rng.random() < ACTION_CHANCE:
                self.on_coin_action(ACTION_DELAY)
                events.append(ArcadeEvent("chain_action", coin))
        return events

    def _collect_power_ups(self, now: float) -> List[ArcadeEvent]:
        events = []
        for power_up in self.power_ups:
            if not power_up.active and now >= power_up.inactive_until:
                power_up.active = True
            if not power_up.active or not self.player.overlaps(power_up):
                continue
            power_up.active = False
            power_up.inactive_until = now + POWER_UP_RESPAWN_SECONDS
            # a second pickup restarts the timer; boosts do not stack
            self.player.speed = BASE_SPEED + SPEED_BOOST
            self.boost_until = now + BOOST_SECONDS
            events.append(ArcadeEvent("power_up", power_up))
        return events

    def _expire_effects(self, now: float):
        if self.boost_until is not None and now >= self.boost_until:
            self.player.speed = BASE_SPEED
            self.boost_until = None

    def _apply_damage(self) -> List[ArcadeEvent]:
        hits = sum(1 for e in self.enemies if e.overlaps(self.player))
        if not hits:
            return []
        self.player.health = max(0, self.player.health - ENEMY_DAMAGE * hits)
        events = [ArcadeEvent("hit", self.player)]
        if self.player.health == 0:
            self.running = False
            self.game_over = True
            self.game_over_count += 1
            self.player = self._new_player()
            self.boost_until = None
            print(f"[arcade] Game over! score={self.score}")
            events.append(ArcadeEvent("game_over"))
        return events
