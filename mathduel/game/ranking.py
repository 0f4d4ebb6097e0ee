from collections.abc import Iterable
from typing import Protocol

from pydantic import BaseModel, Field


class PlayerResult(Protocol):
    uid: str
    display_name: str
    score: int
    accuracy: int


class RankedPlayer(BaseModel):
    uid: str
    display_name: str
    score: int
    accuracy: int
    attempts: int = 0
    correct: int = 0
    rank: int
    is_winner: bool = False
    is_top_accuracy: bool = False
    is_me: bool = False


class MatchResults(BaseModel):
    ranked: list[RankedPlayer]
    winner: RankedPlayer | None = None
    top_accuracy: list[str] = Field(default_factory=list)


def _sort_key(player: PlayerResult) -> tuple[int, int, str, str, str]:
    return (
        -player.score,
        -player.accuracy,
        player.display_name.casefold(),
        player.display_name,
        player.uid,
    )


def compute_ranks(
    players: Iterable[PlayerResult], my_uid: str | None = None
) -> list[RankedPlayer]:
    ordered = sorted(players, key=_sort_key)
    top_accuracy = max((p.accuracy for p in ordered), default=0)

    ranked: list[RankedPlayer] = []
    current_rank = 0
    previous: tuple[int, int] | None = None
    for index, player in enumerate(ordered):
        standing = (player.score, player.accuracy)
        if standing != previous:
            # competition ranking: a new standing starts at its position
            current_rank = index + 1
            previous = standing

        ranked.append(
            RankedPlayer(
                uid=player.uid,
                display_name=player.display_name,
                score=player.score,
                accuracy=player.accuracy,
                attempts=getattr(player, "attempts", 0),
                correct=getattr(player, "correct", 0),
                rank=current_rank,
                is_winner=current_rank == 1,
                is_top_accuracy=player.accuracy == top_accuracy,
                is_me=my_uid is not None and player.uid == my_uid,
            )
        )
    return ranked


def summarize_results(
    players: Iterable[PlayerResult], my_uid: str | None = None
) -> MatchResults:
    ranked = compute_ranks(players, my_uid)
    return MatchResults(
        ranked=ranked,
        winner=ranked[0] if ranked else None,
        top_accuracy=[p.uid for p in ranked if p.is_top_accuracy],
    )
