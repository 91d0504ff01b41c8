"""
Ledger exceptions

All of these are recoverable: the ledger is left unchanged when one is raised.
"""


class LedgerError(Exception):
    """Base class for score ledger errors"""
    pass


class MaxPlayersReached(LedgerError):
    """The roster already holds the maximum number of players"""
    def __init__(self, limit):
        self.limit = limit
        super().__init__(f"Rummy supports up to {limit} players")


class InvalidPlayerName(LedgerError):
    """Name is empty after trimming or too long"""
    pass


class NoWinnerSelected(LedgerError):
    """A new round was submitted without a winner"""
    def __init__(self):
        super().__init__("Select a winner before adding the round")


class PlayerNotFound(LedgerError):
    def __init__(self, player_id):
        self.player_id = player_id
        super().__init__(f"Player {player_id} not found")


class RoundNotFound(LedgerError):
    def __init__(self, round_id):
        self.round_id = round_id
        super().__init__(f"Round {round_id} not found")


class MalformedPersistedState(LedgerError):
    """Stored ledger blob could not be decoded; stores degrade to an empty ledger"""
    pass
