# /utils_stats.py
from typing import List
import pandas as pd

from ledger import GameLedger

HISTORY_EXTRA_COLUMNS = ["Ace Holder", "Winner"]


def player_labels(names, reserved=()) -> List[str]:
    """Column-safe labels: repeated names (or ones clashing with ``reserved``) get " (2)", " (3)", ..."""
    taken = set(reserved)
    labels = []
    for name in names:
        label, n = name, 1
        while label in taken:
            n += 1
            label = f"{name} ({n})"
        taken.add(label)
        labels.append(label)
    return labels


def _history_header(players) -> List[str]:
    return ["Round"] + [p.name for p in players] + HISTORY_EXTRA_COLUMNS


def round_history_df(ledger: GameLedger) -> pd.DataFrame:
    """One row per round: effective score per player, then ace holder and winner names."""
    players = ledger.players
    reserved = ["Round"] + HISTORY_EXTRA_COLUMNS
    columns = ["Round"] + player_labels([p.name for p in players], reserved) + HISTORY_EXTRA_COLUMNS
    rows: List[list] = []
    for r in ledger.rounds:
        rows.append(
            [r.id]
            + [r.score_for(p.id) for p in players]
            + [ledger.player_name(r.ace_holder), ledger.player_name(r.winner)]
        )
    return pd.DataFrame(rows, columns=columns)


def history_csv(ledger: GameLedger) -> str:
    """Round history as CSV text (comma-joined, newline-separated, no trailing newline)."""
    df = round_history_df(ledger)
    # plain player names in the header, as typed
    header = _history_header(ledger.players)
    return df.to_csv(index=False, header=header, lineterminator="\n").rstrip("\n")


def leaderboard_df(ledger: GameLedger) -> pd.DataFrame:
    cols = ["rank", "player", "total", "wins", "aces", "leader"]
    players = ledger.players
    if not players:
        return pd.DataFrame(columns=["player_id"] + cols)

    totals = ledger.totals()
    leader_id = ledger.leader() if ledger.rounds else None
    rounds = ledger.rounds
    rows = []
    for p in players:
        rows.append({
            "player_id": p.id,
            "player": p.name,
            "total": totals[p.id],
            "wins": sum(1 for r in rounds if r.winner == p.id),
            "aces": sum(1 for r in rounds if r.ace_holder == p.id),
            "leader": p.id == leader_id,
        })
    df = pd.DataFrame(rows)
    # stable sort keeps join order on ties
    df = df.sort_values(by="total", ascending=False, kind="stable").reset_index(drop=True)
    df["rank"] = range(1, len(df) + 1)
    return df[["player_id"] + cols]


def running_totals_df(ledger: GameLedger) -> pd.DataFrame:
    """Long format (round, player, total) for the score progression chart."""
    players = ledger.players
    rounds = ledger.rounds
    if not players or not rounds:
        return pd.DataFrame(columns=["round", "player", "total"])

    per_round = pd.DataFrame(
        [[r.score_for(p.id) for p in players] for r in rounds],
        columns=[p.id for p in players],
    )
    per_round.index = [r.id for r in rounds]
    cumulative = per_round.cumsum()
    cumulative.index.name = "round"
    long_df = cumulative.reset_index().melt(id_vars="round", var_name="player_id", value_name="total")
    labels = player_labels([p.name for p in players])
    long_df["player"] = long_df["player_id"].map({p.id: label for p, label in zip(players, labels)})
    return long_df[["round", "player", "total"]]
