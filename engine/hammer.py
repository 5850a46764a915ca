"""
Hammer Allocator - who shoots last.

The hammer swaps after every completed round, and the start of each new
game goes to the team that did not start the previous one with it.
"""

from dataclasses import dataclass
from typing import Optional

from models.match import Side
from engine.team import TeamPair


@dataclass
class HammerAllocator:
    """
    Hammer possession across rounds, games, and matches.

    `holder` is None until a starting team has been selected.
    """
    holder: Optional[Side] = None
    game_start_holder: Optional[Side] = None
    previous_game_start_holder: Optional[Side] = None

    @property
    def needs_selection(self) -> bool:
        return self.holder is None

    def select_starting_team(self, shoots_first: Side) -> Side:
        """
        The team that shoots first does not get the hammer.

        Returns the side now holding it.
        """
        self.holder = shoots_first.other
        self.game_start_holder = self.holder
        self.previous_game_start_holder = self.holder
        return self.holder

    def swap(self) -> Optional[Side]:
        """Pass the hammer after a completed round."""
        if self.holder is not None:
            self.holder = self.holder.other
        return self.holder

    def start_new_game(self) -> Optional[Side]:
        """
        Give the new game's hammer to whoever did not start the last
        game with it, and remember who starts this one.
        """
        if self.game_start_holder is None:
            return self.holder
        self.previous_game_start_holder = self.game_start_holder
        self.holder = self.previous_game_start_holder.other
        self.game_start_holder = self.holder
        return self.holder

    def clear(self) -> None:
        self.holder = None
        self.game_start_holder = None
        self.previous_game_start_holder = None

    def apply_to(self, teams: TeamPair) -> None:
        """Mirror possession onto the team records."""
        for side, team in teams.items():
            team.has_hammer = self.holder is side
