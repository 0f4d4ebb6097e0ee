from types import SimpleNamespace

from mathduel.game.ranking import compute_ranks, summarize_results


def player(uid, name, score, accuracy, attempts=0, correct=0):
    return SimpleNamespace(
        uid=uid,
        display_name=name,
        score=score,
        accuracy=accuracy,
        attempts=attempts,
        correct=correct,
    )


def test_rank_by_score_then_accuracy():
    players = [
        player("a", "Alice", 30, 75),
        player("b", "Bob", 30, 100),
        player("c", "Cara", 10, 100),
    ]

    results = summarize_results(players, my_uid="a")

    assert [(p.uid, p.rank) for p in results.ranked] == [("b", 1), ("a", 2), ("c", 3)]
    assert results.winner.uid == "b"
    assert results.top_accuracy == ["b", "c"]
    assert [p.is_me for p in results.ranked] == [False, True, False]
    assert [p.is_top_accuracy for p in results.ranked] == [True, False, True]


def test_ties_share_rank_and_skip():
    players = [
        player("a", "alice", 20, 50),
        player("b", "Bob", 20, 50),
        player("c", "Cara", 10, 50),
    ]

    ranked = compute_ranks(players)

    assert [p.rank for p in ranked] == [1, 1, 3]
    assert [p.uid for p in ranked] == ["a", "b", "c"]
    assert [p.is_winner for p in ranked] == [True, True, False]


def test_tie_order_is_case_insensitive_by_name():
    ranked = compute_ranks(
        [player("x", "zed", 10, 100), player("y", "Amy", 10, 100)]
    )

    assert [p.uid for p in ranked] == ["y", "x"]


def test_zero_accuracy_still_tops():
    results = summarize_results(
        [player("a", "A", 0, 0), player("b", "B", 0, 0)]
    )

    assert results.top_accuracy == ["a", "b"]


def test_empty_roster():
    results = summarize_results([])

    assert results.ranked == []
    assert results.winner is None
    assert results.top_accuracy == []


def test_attempts_carried_through():
    ranked = compute_ranks([player("a", "A", 30, 75, attempts=4, correct=3)])

    assert ranked[0].attempts == 4
    assert ranked[0].correct == 3
