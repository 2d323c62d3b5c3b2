"""Session Namer 测试"""

import random

import pytest

from marvex import config
from marvex.adapters.i3.models import Terminal
from marvex.naming import (
    STRATEGIES,
    Identity,
    RandomStrategy,
    SequentialStrategy,
    create_strategy,
    derive_identity,
)


def _terminals(workspace: str, *numbers: int) -> list[Terminal]:
    return [Terminal(workspace=workspace, number=n) for n in numbers]


class TestSequentialStrategy:
    """顺序编号：最小的未占用正整数"""

    @pytest.mark.parametrize(
        "numbers,expected",
        [
            ((), "1"),
            ((1, 2, 4), "3"),
            ((2, 3), "1"),
            ((1, 2, 3), "4"),
            ((0, 1), "2"),
        ],
    )
    def test_smallest_missing(self, numbers, expected):
        strategy = SequentialStrategy()
        assert strategy.new_id(_terminals("3", *numbers), "3") == expected

    def test_other_workspaces_ignored(self):
        terminals = _terminals("1", 1, 2) + _terminals("3", 1)
        assert SequentialStrategy().new_id(terminals, "3") == "2"

    def test_zero_padding(self):
        assert SequentialStrategy(width=2).new_id(_terminals("3", 1), "3") == "02"


class TestRandomStrategy:
    """随机 token：辅音/元音交替"""

    def test_shape(self):
        token = RandomStrategy(rng=random.Random(1)).new_id([], "3")
        assert len(token) == 10
        for i, char in enumerate(token):
            alphabet = config.TOKEN_CONSONANTS if i % 2 == 0 else config.TOKEN_VOWELS
            assert char in alphabet

    def test_injected_source_is_deterministic(self):
        first = RandomStrategy(rng=random.Random(42)).new_id([], "3")
        second = RandomStrategy(rng=random.Random(42)).new_id([], "3")
        assert first == second

    def test_independent_of_workspace_and_terminals(self):
        a = RandomStrategy(rng=random.Random(7)).new_id(_terminals("3", 1, 2), "3")
        b = RandomStrategy(rng=random.Random(7)).new_id([], "web")
        assert a == b

    def test_does_not_use_global_random(self):
        random.seed(0)
        before = random.random()
        random.seed(0)
        RandomStrategy(rng=random.Random(3)).new_id([], "3")
        assert random.random() == before

    def test_default_source(self):
        assert len(RandomStrategy().new_id([], "3")) == 10


class TestCreateStrategy:
    """策略工厂"""

    def test_sequential(self):
        assert isinstance(create_strategy("sequential"), SequentialStrategy)

    def test_random(self):
        assert isinstance(create_strategy("random", rng=random.Random(0)), RandomStrategy)

    def test_default_from_config(self):
        assert create_strategy().name == config.NAMING_STRATEGY

    @pytest.mark.parametrize("name", sorted(STRATEGIES))
    def test_registry(self, name):
        strategy = create_strategy(name, rng=random.Random(0))
        assert isinstance(strategy, STRATEGIES[name])
        assert strategy.name == name

    def test_unknown(self):
        with pytest.raises(ValueError):
            create_strategy("uuid")


class TestDeriveIdentity:
    """身份派生"""

    def test_sequential_identity(self):
        identity = derive_identity(
            SequentialStrategy(), _terminals("3", 1, 2), "3", title_template="marvex-%w-%n"
        )
        assert identity == Identity(id="3", title="marvex-3-3", session="marvex-3-3")

    def test_custom_title_template(self):
        identity = derive_identity(SequentialStrategy(), [], "web", title_template="term %n on %w")
        assert identity.title == "term 1 on web"
        assert identity.session == "marvex-web-1"

    def test_random_identity(self):
        identity = derive_identity(RandomStrategy(rng=random.Random(5)), [], "3")
        assert identity.session == f"marvex-3-{identity.id}"
        assert identity.title == f"marvex-3-{identity.id}"
