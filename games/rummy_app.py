# /games/rummy_app.py
import streamlit as st
import altair as alt

from exceptions import (
    InvalidPlayerName,
    LedgerError,
    MaxPlayersReached,
    NoWinnerSelected,
)
from ledger import EventKind, GameLedger, LedgerEvent, parse_score
from models import ACE_BONUS, MAX_NAME_LENGTH, MAX_PLAYERS
from storage import store_from_config
from utils_stats import history_csv, leaderboard_df, round_history_df, running_totals_df

# ---- Session keys (namespaced) ----
if "rummy_toasts" not in st.session_state:
    st.session_state.rummy_toasts = []
if "rummy_round_form" not in st.session_state:
    st.session_state.rummy_round_form = 0  # bumped to clear the new-round inputs


def _event_message(event: LedgerEvent, ledger: GameLedger) -> str:
    kind = event.kind
    if kind == EventKind.PLAYER_JOINED:
        spots = MAX_PLAYERS - len(ledger.players)
        return f"{event.player.name} joined the game! {spots} spots remaining"
    if kind == EventKind.PLAYER_LEFT:
        return f"{event.player.name} left the game"
    if kind == EventKind.ROUND_ADDED:
        r = event.round
        msg = f"Round {r.id} recorded."
        if r.winner:
            msg += f" {ledger.player_name(r.winner)} won!"
        if r.ace_holder:
            msg += f" {ledger.player_name(r.ace_holder)} got the Ace bonus!"
        return msg
    if kind == EventKind.ROUND_UPDATED:
        return f"Round #{event.round.id} updated"
    if kind == EventKind.ROUND_DELETED:
        return f"Round #{event.round.id} deleted"
    if kind == EventKind.LEDGER_RESET:
        return "Game reset. Starting fresh!"
    if kind == EventKind.MAX_PLAYERS_REJECTED:
        return f"Maximum players reached: Rummy supports up to {MAX_PLAYERS} players"
    if kind == EventKind.NO_WINNER_REJECTED:
        return "Select a winner to continue"
    return kind.value


def _get_ledger() -> GameLedger:
    if "rummy_ledger" not in st.session_state:
        store = store_from_config()
        ledger = store.load()
        store.attach(ledger)
        ledger.subscribe(lambda event: st.session_state.rummy_toasts.append(_event_message(event, ledger)))
        st.session_state.rummy_ledger = ledger
    return st.session_state.rummy_ledger


def _flush_toasts():
    for msg in st.session_state.rummy_toasts:
        st.toast(msg)
    st.session_state.rummy_toasts = []


def _badge(player) -> str:
    return (
        f'<span style="display:inline-block;width:28px;height:28px;border-radius:8px;'
        f'background:{player.color};color:white;text-align:center;font-weight:700;'
        f'line-height:28px;margin-right:8px">{player.name[:1].upper()}</span>'
    )


def _pretty_line(chart):
    return (
        chart.properties(height=260)
        .configure(background="transparent")
        .configure_axis(labelColor="#e6f4ea", titleColor="#e6f4ea", labelFontSize=12, titleFontSize=14)
        .configure_legend(labelColor="#e6f4ea", titleColor="#e6f4ea")
        .configure_view(strokeWidth=0)
    )


def _player_selector(label, ledger, key, default=None):
    options = [None] + [p.id for p in ledger.players]
    index = options.index(default) if default in options else 0
    return st.selectbox(
        label,
        options=options,
        index=index,
        format_func=lambda pid: "(none)" if pid is None else ledger.player_name(pid),
        key=key,
    )


def _score_inputs(ledger, key_prefix, current=None):
    current = current or {}
    raw = {}
    players = ledger.players
    cols = st.columns(len(players))
    for i, p in enumerate(players):
        with cols[i]:
            value = current.get(p.id)
            raw[p.id] = st.text_input(
                p.name,
                value="" if value is None else str(value),
                placeholder="0",
                key=f"{key_prefix}_{p.id}",
            )
    return {pid: parse_score(text) for pid, text in raw.items()}


def _render_players(ledger: GameLedger):
    st.header(f"Players ({len(ledger.players)}/{MAX_PLAYERS})")
    with st.form("rummy_add_player_form", clear_on_submit=True):
        name = st.text_input(
            "Player name", placeholder="Enter player name...", max_chars=MAX_NAME_LENGTH
        )
        submitted = st.form_submit_button("Add Player", disabled=ledger.is_full)
    if submitted and name.strip():
        try:
            ledger.add_player(name)
        except MaxPlayersReached:
            pass  # toast queued by the rejection event
        except InvalidPlayerName as exc:
            st.error(str(exc))

    standings = ledger.standings()
    if not standings:
        return
    totals = ledger.totals()
    leader_id = ledger.leader() if ledger.rounds else None
    cols = st.columns(MAX_PLAYERS)
    for i, p in enumerate(standings):
        with cols[i]:
            with st.container(border=True):
                crown = " 👑" if p.id == leader_id else ""
                st.markdown(f"{_badge(p)}**{p.name}**{crown}", unsafe_allow_html=True)
                st.metric("Total", totals[p.id])
                if st.button("Remove", key=f"rummy_remove_{p.id}", use_container_width=True):
                    ledger.remove_player(p.id)
                    st.rerun()


def _render_new_round(ledger: GameLedger):
    st.header("New Round")
    form_id = st.session_state.rummy_round_form
    with st.form(f"rummy_new_round_{form_id}"):
        scores = _score_inputs(ledger, f"rummy_new_{form_id}")
        c1, c2 = st.columns(2)
        with c1:
            ace = _player_selector(f"Ace holder (+{ACE_BONUS})", ledger, f"rummy_new_ace_{form_id}")
        with c2:
            winner = _player_selector("Round winner", ledger, f"rummy_new_winner_{form_id}")
        submitted = st.form_submit_button("Add Round", type="primary")
    if submitted:
        try:
            ledger.add_round(scores, ace_holder=ace, winner=winner)
        except NoWinnerSelected:
            pass  # toast queued by the rejection event
        else:
            st.session_state.rummy_round_form += 1
            st.rerun()


def _render_history(ledger: GameLedger):
    st.header("Round History")
    if not ledger.rounds:
        st.caption("No rounds yet. Add scores above to start tracking.")
        return

    st.dataframe(round_history_df(ledger), use_container_width=True, hide_index=True)

    csv = history_csv(ledger)
    st.download_button("Download CSV", data=csv, file_name="rummy-rounds.csv", mime="text/csv")
    with st.expander("Copy CSV"):
        st.code(csv, language=None)

    st.subheader("Score Progression")
    progress = running_totals_df(ledger)
    chart = (
        alt.Chart(progress)
        .mark_line(point=True)
        .encode(
            x=alt.X("round:O", title="Round"),
            y=alt.Y("total:Q", title="Running total"),
            color=alt.Color("player:N", title="Player"),
            tooltip=["round", "player", "total"],
        )
    )
    st.altair_chart(_pretty_line(chart), use_container_width=True)

    st.subheader("Leaderboard")
    board = leaderboard_df(ledger).drop(columns=["player_id"])
    st.dataframe(board, use_container_width=True, hide_index=True)

    st.subheader("Edit a Round")
    round_ids = [r.id for r in ledger.rounds]
    round_id = st.selectbox("Round", options=round_ids, index=len(round_ids) - 1)
    rnd = ledger.get_round(round_id)
    with st.form(f"rummy_edit_round_{round_id}"):
        scores = _score_inputs(ledger, f"rummy_edit_{round_id}", current=rnd.scores)
        c1, c2 = st.columns(2)
        with c1:
            ace = _player_selector(f"Ace holder (+{ACE_BONUS})", ledger, f"rummy_edit_ace_{round_id}", rnd.ace_holder)
        with c2:
            winner = _player_selector("Round winner", ledger, f"rummy_edit_winner_{round_id}", rnd.winner)
        b1, b2 = st.columns(2)
        with b1:
            save = st.form_submit_button("Save Changes", type="primary")
        with b2:
            delete = st.form_submit_button("Delete Round")
    if save or delete:
        try:
            if delete:
                ledger.delete_round(round_id)
            else:
                ledger.edit_round(round_id, scores, ace_holder=ace, winner=winner)
        except LedgerError as exc:
            st.error(str(exc))
        else:
            st.rerun()


def render():
    st.title("Rummy Scores")
    ledger = _get_ledger()

    if ledger.players or ledger.rounds:
        if st.sidebar.button("Reset Game", use_container_width=True):
            ledger.reset_all()
            st.rerun()

    _render_players(ledger)

    if len(ledger.players) < 2:
        with st.container(border=True):
            st.markdown("### Ready to Play?")
            st.write("Add at least 2 players to start tracking scores")
    else:
        st.divider()
        _render_new_round(ledger)
        st.divider()
        _render_history(ledger)

    st.caption(f"Ace bonus: +{ACE_BONUS} points per round")
    _flush_toasts()
