"""
State serialization and per-viewer projection.
"""

from typing import Any, Dict, List, Optional

from .constants import MERCY_ELIMINATED, POSITIONS_BY_COUNT, TABLE_ORDER, USER_ID
from .models import Card, GameEvent, GameSession, NumberCard
from .turns import seating_ring


def card_to_dict(card: Card) -> Dict[str, Any]:
    """Serialize a card; ``value`` only for numbers, ``playedBy`` only once discarded."""
    data = {
        "id": card.id,
        "color": card.color,
        "type": card.type,
    }
    if isinstance(card, NumberCard):
        data["value"] = card.value
    if card.played_by is not None:
        data["playedBy"] = card.played_by
    return data


def _view_order(session: GameSession, viewer_id: str) -> List[str]:
    """
    Seats clockwise starting from the viewer (empty if the viewer never sat here).

    A viewer who has been removed from the ring keeps their original place:
    the order starts with them and continues with whoever is still seated.
    """
    ring = seating_ring(session.players)
    if viewer_id in ring:
        start = ring.index(viewer_id)
        return ring[start:] + ring[:start]
    if viewer_id not in session.seating:
        return []
    start = session.seating.index(viewer_id)
    rotated = session.seating[start:] + session.seating[:start]
    return [viewer_id] + [pid for pid in rotated[1:] if pid in ring]


def perspective_aliases(session: GameSession, viewer_id: str) -> Dict[str, str]:
    """
    Map canonical ids to viewer-relative aliases.

    The viewer is always ``user``; everyone else is ``bot1``..``bot3``
    clockwise from the viewer around the living ring. Returns an empty
    map when the viewer never held a seat.
    """
    ordered = _view_order(session, viewer_id)
    return {pid: USER_ID if idx == 0 else f"bot{idx}" for idx, pid in enumerate(ordered)}


def resolve_alias(session: GameSession, viewer_id: str, alias: str) -> Optional[str]:
    """Translate an alias the viewer sent back into a canonical player id."""
    for canonical, candidate in perspective_aliases(session, viewer_id).items():
        if candidate == alias:
            return canonical
    return None


def _event_to_dict(event: Optional[GameEvent], aliases: Dict[str, str]) -> Optional[Dict[str, Any]]:
    if event is None:
        return None
    data = {
        "type": event.type,
        "playerId": aliases.get(event.player_id),
    }
    if event.count is not None:
        data["count"] = event.count
    if event.card_id is not None:
        data["cardId"] = event.card_id
    if event.target_id is not None:
        data["targetId"] = aliases.get(event.target_id)
    return data


def to_perspective(session: GameSession, viewer_id: str) -> Optional[Dict[str, Any]]:
    """
    Project the canonical session for one viewer.

    Identities are relabelled through ``perspective_aliases``, every hand
    other than the viewer's is redacted to a count, and seats are laid out
    around the viewer at the bottom. Pending-choice flags are only raised
    for the viewer who has to answer them.

    A viewer removed from the ring (mercy rule or leaving) still gets a
    read-only view from their old seat: no entry of their own in
    ``players`` and ``eliminated`` set.

    Returns:
        The perspective payload, or None if the viewer never held a seat
    """
    view_order = _view_order(session, viewer_id)
    if not view_order:
        return None
    aliases = perspective_aliases(session, viewer_id)

    by_id = {p.id: p for p in session.players}
    positions = POSITIONS_BY_COUNT.get(len(view_order), TABLE_ORDER)

    players: List[Dict[str, Any]] = []
    for idx, canonical_id in enumerate(view_order):
        player = by_id.get(canonical_id)
        if player is None:
            continue
        alias = aliases[canonical_id]
        players.append({
            "id": alias,
            "name": player.name,
            "avatar": player.avatar,
            "cardCount": player.card_count,
            "isBot": player.is_bot,
            "position": positions[idx],
            "hand": [card_to_dict(c) for c in player.hand] if alias == USER_ID else [],
        })

    if session.winner == MERCY_ELIMINATED:
        winner = MERCY_ELIMINATED
    else:
        winner = aliases.get(session.winner) if session.winner else None

    viewer_to_act = session.current_player_id == viewer_id and not session.is_finished
    pending = session.pending_card if viewer_to_act else None

    return {
        "gameMode": session.mode,
        "version": session.version,
        "players": players,
        "deck": [],
        "deckCount": len(session.deck),
        "discardPile": [card_to_dict(c) for c in session.discard_pile],
        "currentPlayerId": aliases.get(session.current_player_id, USER_ID),
        "direction": session.direction,
        "stackAccumulation": session.stack_accumulation,
        "winner": winner,
        "activeColor": session.active_color,
        "drawCount": 0,
        "isChoosingColor": viewer_to_act and session.is_choosing_color,
        "pendingCardPlayed": card_to_dict(pending) if pending else None,
        "isSwapping": viewer_to_act and session.is_swapping,
        "isStackingChoice": viewer_to_act and session.is_stacking_choice,
        "error": session.error if viewer_to_act else None,
        "lastEvent": _event_to_dict(session.last_event, aliases),
        "lastAction": session.last_action,
        "eliminated": viewer_id not in by_id,
    }


def sanitize_session(session: GameSession, viewer_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Canonical snapshot of a session with every hand but the viewer's hidden.

    Unlike ``to_perspective`` ids are not relabelled; hosts use this for
    logging and for local tables where ids already are the viewer's own.
    """
    sanitized = {
        "mode": session.mode,
        "version": session.version,
        "phase": session.phase,
        "current_player_id": session.current_player_id,
        "direction": session.direction,
        "stack_accumulation": session.stack_accumulation,
        "active_color": session.active_color,
        "winner": session.winner,
        "top_card": card_to_dict(session.top_card) if session.top_card else None,
        "deck_count": len(session.deck),
        "eliminated": list(session.eliminated),
        "players": {},
        "log": session.game_log[-5:],
    }

    for player in session.players:
        entry = {
            "id": player.id,
            "name": player.name,
            "position": player.position,
            "is_bot": player.is_bot,
            "hand_count": player.card_count,
        }
        # Show full hand only to the viewer
        if player.id == viewer_id:
            entry["hand"] = [card_to_dict(c) for c in player.hand]
        sanitized["players"][player.id] = entry

    return sanitized


def room_payload(room) -> Dict[str, Any]:
    """Public lobby information about a room."""
    return {
        "code": room.code,
        "hostId": room.host_id,
        "status": room.status,
        "mode": room.mode,
        "players": [
            {"id": m.id, "name": m.name, "isBot": m.is_bot}
            for m in room.members
        ],
    }
