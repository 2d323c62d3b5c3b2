"""Session Namer

Derives the id of a new terminal and formats it into a window title and a
tmux session name. Two strategies are available:

- sequential: smallest positive number not used by a terminal of the workspace
- random: pronounceable consonant/vowel token, workspace independent

The random strategy takes an injected ``random.Random`` so callers (and
tests) control the source.
"""

import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from . import config
from .adapters.i3.models import Terminal
from .core.ids import make_session_name, substitute


@dataclass(frozen=True)
class Identity:
    """Identity of a new terminal.

    Attributes:
        id: Terminal id ("3", "kabefomuxi")
        title: Window title
        session: tmux session name
    """

    id: str
    title: str
    session: str


class NamingStrategy(ABC):
    """Terminal id strategy."""

    name: str = ""

    @abstractmethod
    def new_id(self, terminals: list[Terminal], workspace: str) -> str:
        """Derive an id for a new terminal on a workspace.

        Args:
            terminals: Terminals already present
            workspace: Workspace name
        """


class SequentialStrategy(NamingStrategy):
    """Smallest positive integer not taken on the workspace."""

    name = "sequential"

    def __init__(self, width: int = config.NUMBER_WIDTH):
        """
        Args:
            width: Zero padding width, 0 disables padding
        """
        self._width = width

    def new_id(self, terminals: list[Terminal], workspace: str) -> str:
        taken = {t.number for t in terminals if t.workspace == workspace}

        number = 1
        while number in taken:
            number += 1

        return str(number).zfill(self._width)


class RandomStrategy(NamingStrategy):
    """Random token of alternating consonants and vowels.

    Collisions are not checked for: 20 consonants x 6 vowels over 5 pairs
    gives 120**5 tokens.
    """

    name = "random"

    def __init__(
        self,
        rng: random.Random | None = None,
        pairs: int = config.TOKEN_PAIRS,
        consonants: str = config.TOKEN_CONSONANTS,
        vowels: str = config.TOKEN_VOWELS,
    ):
        self._rng = rng if rng is not None else random.Random(time.time_ns())
        self._pairs = pairs
        self._consonants = consonants
        self._vowels = vowels

    def new_id(self, terminals: list[Terminal], workspace: str) -> str:
        chars = []
        for _ in range(self._pairs):
            chars.append(self._rng.choice(self._consonants))
            chars.append(self._rng.choice(self._vowels))
        return "".join(chars)


STRATEGIES: dict[str, type[NamingStrategy]] = {
    SequentialStrategy.name: SequentialStrategy,
    RandomStrategy.name: RandomStrategy,
}


def create_strategy(
    name: str | None = None,
    rng: random.Random | None = None,
    width: int = config.NUMBER_WIDTH,
) -> NamingStrategy:
    """Create a naming strategy.

    Args:
        name: "sequential" or "random". Default from config.
        rng: Random source for the random strategy
        width: Zero padding width for the sequential strategy

    Raises:
        ValueError: Unknown strategy name
    """
    if name is None:
        name = config.NAMING_STRATEGY

    if name not in STRATEGIES:
        raise ValueError(f"Unknown naming strategy: {name}")

    if name == RandomStrategy.name:
        return RandomStrategy(rng=rng)

    return STRATEGIES[name](width=width)


def derive_identity(
    strategy: NamingStrategy,
    terminals: list[Terminal],
    workspace: str,
    title_template: str = config.TITLE_TEMPLATE,
    session_template: str = config.SESSION_NAME_TEMPLATE,
) -> Identity:
    """Derive id, title and session name of a new terminal."""
    ident = strategy.new_id(terminals, workspace)
    return Identity(
        id=ident,
        title=substitute(title_template, workspace, ident),
        session=make_session_name(workspace, ident, session_template),
    )
