"""Orchestrator 测试

i3 用 AsyncMock 模拟，tmux 用内存 FakeTmux，终端启动与 execvp 用 MagicMock 捕获。
"""

import fcntl
import os
import random
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import ValidationError

from marvex import config
from marvex.adapters.i3.models import WindowNode, Workspace
from marvex.errors import NotFoundError, WaitTimeout
from marvex.naming import RandomStrategy
from marvex.orchestrator import LaunchOptions, Orchestrator, self_argv
from marvex.pool import EnsureOutcome
from marvex.split import SplitDirection, SplitMode

SESSION = "marvex-3-3"


@pytest.fixture
def i3(i3_tree, workspace):
    client = MagicMock()
    client.get_workspaces = AsyncMock(
        return_value=[Workspace(name="1", output="eDP-1", focused=False, num=1), workspace]
    )
    client.get_tree = AsyncMock(return_value=i3_tree)
    client.command = AsyncMock()
    return client


@pytest.fixture
def lock_file(tmp_path):
    return str(tmp_path / "marvex.lock")


def _options(lock_file: str, **kwargs) -> LaunchOptions:
    return LaunchOptions(terminal_path="/usr/bin/urxvt", lock_file=lock_file, **kwargs)


def _orchestrator(options, i3, tmux, **kwargs) -> Orchestrator:
    kwargs.setdefault("environ", {"TMUX": "/tmp/tmux-1000/default,1,0", "HOME": "/home/u"})
    kwargs.setdefault("spawn", MagicMock())
    kwargs.setdefault("echo", MagicMock())
    kwargs.setdefault("execvp", MagicMock())
    return Orchestrator(options, i3, tmux, **kwargs)


def _tree_with(workspace: Workspace, *windows: WindowNode) -> WindowNode:
    ws = WindowNode(id=10, name=workspace.name, nodes=windows)
    content = WindowNode(id=11, name="content", nodes=(ws,))
    output = WindowNode(id=12, name=workspace.output, nodes=(content,))
    return WindowNode(id=13, name="root", nodes=(output,))


def _lock_is_free(path: str) -> bool:
    fd = os.open(path, os.O_WRONLY)
    try:
        fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except BlockingIOError:
        return False
    finally:
        os.close(fd)
    return True


class TestLaunchOptions:
    """选项校验"""

    def test_defaults(self):
        options = LaunchOptions()
        assert options.split_mode is SplitMode.NONE
        assert options.reserve == config.RESERVE_COUNT
        assert options.naming == config.NAMING_STRATEGY

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"reserve": -1},
            {"number_width": -2},
            {"clear_re": "(unclosed"},
            {"title_template": ""},
            {"terminal_template": "  "},
            {"naming": "uuid"},
            {"unparsable_number": "maybe"},
            {"attach_timeout": 0},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValidationError):
            LaunchOptions(**kwargs)

    def test_self_argv(self):
        with patch("marvex.orchestrator.sys.argv", ["marvex", "-d", "-s"]):
            argv = self_argv()
        assert argv[1:] == ["-m", "marvex", "-d", "-s"]


class TestTerminalLaunch:
    """普通模式完整流程"""

    @pytest.mark.asyncio
    async def test_full_flow(self, i3, fake_tmux, lock_file):
        tmux = fake_tmux(["work", "marvex-reserve-1", "marvex-reserve-2"])
        spawn = MagicMock()
        echo = MagicMock()

        result = await _orchestrator(_options(lock_file), i3, tmux, spawn=spawn, echo=echo).run()

        assert result.session == SESSION
        assert result.identity.title == SESSION
        assert result.outcome is EnsureOutcome.REUSED
        assert result.split is SplitDirection.NONE

        argv, env = spawn.call_args.args
        assert argv == [
            "/usr/bin/urxvt",
            "-name",
            "",
            "-title",
            SESSION,
            "-e",
            "tmux",
            "attach",
            "-t",
            SESSION,
        ]
        assert "TMUX" not in env
        assert env["HOME"] == "/home/u"

        echo.assert_called_once_with(SESSION)
        reserved = [s for s in tmux.sessions if s.startswith(config.RESERVE_PREFIX)]
        assert len(reserved) == 2
        assert SESSION in tmux.sessions
        assert _lock_is_free(lock_file)

    @pytest.mark.asyncio
    async def test_session_created_before_spawn(self, i3, fake_tmux, lock_file):
        tmux = fake_tmux(["work"])
        seen = []
        spawn = MagicMock(side_effect=lambda argv, env: seen.append(list(tmux.sessions)))

        result = await _orchestrator(_options(lock_file), i3, tmux, spawn=spawn).run()

        assert result.outcome is EnsureOutcome.CREATED
        assert SESSION in seen[0]

    @pytest.mark.asyncio
    async def test_quiet(self, i3, fake_tmux, lock_file):
        echo = MagicMock()
        await _orchestrator(_options(lock_file, quiet=True), i3, fake_tmux(["work"]), echo=echo).run()
        echo.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_reserve(self, i3, fake_tmux, lock_file):
        tmux = fake_tmux(["work"])
        await _orchestrator(_options(lock_file, reserve=0), i3, tmux).run()
        assert tmux.sessions == ["work", SESSION]

    @pytest.mark.asyncio
    async def test_smart_split(self, i3, fake_tmux, lock_file):
        options = _options(lock_file, split_mode=SplitMode.SMART)

        result = await _orchestrator(options, i3, fake_tmux(["work"])).run()

        assert result.split is SplitDirection.HORIZONTAL
        i3.command.assert_called_once_with("split horizontal")

    @pytest.mark.asyncio
    async def test_clear_and_command(self, i3, fake_tmux, lock_file):
        tmux = fake_tmux(["work"])
        tmux.statuses = [f"{SESSION}:X:132x43:zsh\n"]
        options = _options(lock_file, clear_screen=True, command="htop")

        result = await _orchestrator(options, i3, tmux).run()

        assert result.cleared is True
        assert tmux.calls_of("send-keys") == [("send-keys", "-R", "-t", SESSION, "C-l")]
        assert tmux.calls_of("send") == [("send", "-t", SESSION, "htop\n")]

    @pytest.mark.asyncio
    async def test_random_naming_skips_tree(self, i3, fake_tmux, lock_file):
        tmux = fake_tmux(["work"])
        strategy = RandomStrategy(rng=random.Random(9))

        result = await _orchestrator(_options(lock_file), i3, tmux, strategy=strategy).run()

        i3.get_tree.assert_not_called()
        assert result.session == f"marvex-3-{result.identity.id}"
        assert len(result.identity.id) == 10

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["Mail", "1:web", "web-dev"])
    async def test_named_workspace_gets_next_number(self, i3, fake_tmux, lock_file, name):
        """An existing terminal on a named workspace keeps its number taken."""
        ws = Workspace(name=name, output="eDP-1", focused=True)
        i3.get_workspaces = AsyncMock(return_value=[ws])
        i3.get_tree = AsyncMock(return_value=_tree_with(ws, WindowNode(id=2, name=f"marvex-{name}-1")))
        tmux = fake_tmux([f"marvex-{name}-1"])

        result = await _orchestrator(_options(lock_file, reserve=0), i3, tmux).run()

        assert result.session == f"marvex-{name}-2"
        assert result.outcome is EnsureOutcome.CREATED
        assert tmux.sessions == [f"marvex-{name}-1", f"marvex-{name}-2"]

    @pytest.mark.asyncio
    async def test_attach_timeout_releases_lock(self, i3, fake_tmux, lock_file):
        tmux = fake_tmux(["work"])
        tmux.statuses = [f"{SESSION}::80x24:zsh\n"]
        options = _options(lock_file, clear_screen=True, attach_timeout=0.05)

        with pytest.raises(WaitTimeout):
            await _orchestrator(options, i3, tmux).run()

        assert _lock_is_free(lock_file)

    @pytest.mark.asyncio
    async def test_missing_terminal_releases_lock(self, i3, fake_tmux, lock_file):
        options = LaunchOptions(terminal_path="no-such-terminal", lock_file=lock_file)

        with patch("marvex.launcher.shutil.which", return_value=None):
            with pytest.raises(NotFoundError):
                await _orchestrator(options, i3, fake_tmux(["work"])).run()

        assert _lock_is_free(lock_file)

    @pytest.mark.asyncio
    async def test_no_focused_workspace(self, i3, fake_tmux, lock_file):
        i3.get_workspaces = AsyncMock(return_value=[])

        with pytest.raises(NotFoundError):
            await _orchestrator(_options(lock_file), i3, fake_tmux(["work"])).run()


class TestDummyMode:
    """Dummy 模式"""

    @pytest.mark.asyncio
    async def test_parent_spawns_self(self, i3, fake_tmux, lock_file):
        tmux = fake_tmux(["work", "marvex-reserve-1"])
        spawn = MagicMock()

        result = await _orchestrator(
            _options(lock_file, dummy=True),
            i3,
            tmux,
            spawn=spawn,
            reexec_argv=lambda: ["/usr/bin/python3", "-m", "marvex", "-d"],
        ).run()

        assert result.session == SESSION
        argv, env = spawn.call_args.args
        assert argv[-4:] == ["/usr/bin/python3", "-m", "marvex", "-d"]
        assert env[config.DUMMY_SESSION_ENV] == SESSION
        assert "TMUX" not in env
        assert tmux.sessions == ["work", "marvex-reserve-1"]
        assert _lock_is_free(lock_file)

    @pytest.mark.asyncio
    async def test_child_converts_on_enter(self, i3, fake_tmux, lock_file):
        tmux = fake_tmux(["marvex-reserve-1"])
        execvp = MagicMock()

        result = await _orchestrator(
            _options(lock_file, dummy=True),
            i3,
            tmux,
            environ={config.DUMMY_SESSION_ENV: SESSION},
            placeholder=lambda session: True,
            execvp=execvp,
        ).run()

        assert result.outcome is EnsureOutcome.REUSED
        execvp.assert_called_once_with("tmux", ["tmux", "attach", "-t", SESSION])
        i3.get_workspaces.assert_not_called()
        reserved = [s for s in tmux.sessions if s.startswith(config.RESERVE_PREFIX)]
        assert len(reserved) == 2
        assert _lock_is_free(lock_file)

    @pytest.mark.asyncio
    async def test_child_cancelled(self, i3, fake_tmux, lock_file):
        tmux = fake_tmux(["marvex-reserve-1"])
        execvp = MagicMock()

        result = await _orchestrator(
            _options(lock_file, dummy=True),
            i3,
            tmux,
            environ={config.DUMMY_SESSION_ENV: SESSION},
            placeholder=lambda session: False,
            execvp=execvp,
        ).run()

        assert result is None
        assert tmux.calls == []
        execvp.assert_not_called()

    @pytest.mark.asyncio
    async def test_env_ignored_without_dummy_flag(self, i3, fake_tmux, lock_file):
        placeholder = MagicMock()

        result = await _orchestrator(
            _options(lock_file),
            i3,
            fake_tmux(["work"]),
            environ={config.DUMMY_SESSION_ENV: "marvex-9-9"},
            placeholder=placeholder,
        ).run()

        placeholder.assert_not_called()
        assert result.session == SESSION
