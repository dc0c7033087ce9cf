from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from hunter_system.engine import (
    INSUFFICIENT_FUNDS,
    INVALID_INPUT,
    NOT_FOUND,
    PENALTY_BLOCKED,
    EngineResult,
    make_log,
    new_id,
    with_logs,
)
from hunter_system.errors import InvalidInputError
from hunter_system.models import Notification, Player, ShopItem
from hunter_system.time_utils import now_local, to_epoch_ms

MAX_ITEM_COST = 1_000_000


def purchase_item(player: Player, item: ShopItem, now: datetime | None = None) -> EngineResult:
    if player.is_penalty_active:
        return EngineResult(
            player=player,
            notifications=(Notification("Penalty Zone active. Shop access denied.", "DANGER"),),
            advisory=PENALTY_BLOCKED,
        )
    if item.cost <= 0:
        return EngineResult(
            player=player,
            notifications=(Notification("Invalid item cost.", "WARNING"),),
            advisory=INVALID_INPUT,
        )
    if player.gold < item.cost:
        return EngineResult(
            player=player,
            notifications=(Notification("Insufficient Funds.", "WARNING"),),
            advisory=INSUFFICIENT_FUNDS,
        )

    ts = to_epoch_ms(now if now is not None else now_local())
    updated = with_logs(
        replace(player, gold=player.gold - item.cost),
        make_log(f"[PURCHASE] {item.title} obtained.", "PURCHASE", ts),
    )
    return EngineResult(
        player=updated,
        notifications=(Notification(f"Item Purchased: {item.title}", "PURCHASE"),),
    )


def purchase_by_id(player: Player, item_id: str, now: datetime | None = None) -> EngineResult:
    item = player.find_shop_item(item_id)
    if item is None:
        return EngineResult(player=player, advisory=NOT_FOUND)
    return purchase_item(player, item, now=now)


def add_shop_item(
    player: Player,
    title: str,
    cost: int,
    description: str = "",
    icon: str = "gift",
) -> EngineResult:
    clean_title = (title or "").strip()
    if not clean_title:
        raise InvalidInputError("Reward title is required")
    if cost <= 0 or cost > MAX_ITEM_COST:
        raise InvalidInputError(f"Reward cost must be between 1 and {MAX_ITEM_COST}")

    item = ShopItem(
        id=new_id(),
        title=clean_title,
        description=(description or "").strip(),
        cost=int(cost),
        icon=icon or "gift",
    )
    return EngineResult(
        player=replace(player, shop_items=player.shop_items + (item,)),
        notifications=(Notification("New Reward Registered.", "SYSTEM"),),
    )


def remove_shop_item(player: Player, item_id: str) -> EngineResult:
    remaining = tuple(i for i in player.shop_items if i.id != item_id)
    if len(remaining) == len(player.shop_items):
        return EngineResult(player=player, advisory=NOT_FOUND)
    return EngineResult(
        player=replace(player, shop_items=remaining),
        notifications=(Notification("Reward Removed.", "SYSTEM"),),
    )
