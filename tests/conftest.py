"""Pytest 配置"""

import pytest

from marvex.adapters.i3.models import Rect, WindowNode, Workspace
from marvex.adapters.tmux.client import SESSION_STATUS_FORMAT, TmuxClient
from marvex.errors import ExternalCommandError
from marvex.telemetry import metrics


@pytest.fixture
def anyio_backend():
    """指定 anyio 只使用 asyncio backend"""
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_metrics():
    """每个测试前重置指标"""
    metrics.reset()
    yield
    metrics.reset()


class FakeTmux(TmuxClient):
    """内存中的 tmux server

    只模拟 marvex 使用的子命令，其余逻辑（解析、错误降级）走真实 TmuxClient。

    Attributes:
        sessions: 存活 session 名称（tmux 列表顺序）
        statuses: list-sessions 状态格式的逐次输出；最后一条保持不变
        rename_error: rename-session 成功后仍返回的错误信息
        calls: 所有调用的参数
    """

    def __init__(self, sessions: list[str] | None = None, **kwargs):
        super().__init__(**kwargs)
        self.sessions = list(sessions or [])
        self.statuses: list[str] = []
        self.rename_error: str | None = None
        self.fail_new_session: str | None = None
        self.calls: list[tuple[str, ...]] = []

    def _error(self, args: tuple[str, ...], message: str) -> ExternalCommandError:
        return ExternalCommandError(["tmux", *args], 1, message)

    def calls_of(self, command: str) -> list[tuple[str, ...]]:
        return [call for call in self.calls if call[0] == command]

    async def run(self, *args: str) -> str:
        self.calls.append(args)
        command = args[0]

        if command == "list-sessions":
            if not self.sessions and not self.statuses:
                raise self._error(args, "no server running on /tmp/tmux-1000/default")
            if args[2] == SESSION_STATUS_FORMAT:
                output = self.statuses[0] if len(self.statuses) == 1 else self.statuses.pop(0)
                return output
            return "".join(f"{name}\n" for name in self.sessions)

        if command == "new-session":
            name = args[3]
            if self.fail_new_session:
                raise self._error(args, self.fail_new_session)
            if name in self.sessions:
                raise self._error(args, f"duplicate session: {name}")
            self.sessions.append(name)
            return ""

        if command == "rename-session":
            old, new = args[2], args[3]
            if old not in self.sessions:
                raise self._error(args, f"can't find session: {old}")
            self.sessions[self.sessions.index(old)] = new
            if self.rename_error:
                raise self._error(args, self.rename_error)
            return ""

        if command in ("send", "send-keys"):
            return ""

        raise self._error(args, f"unknown command: {command}")


@pytest.fixture
def fake_tmux():
    """FakeTmux 工厂"""
    return FakeTmux


def window(id: int, name: str, width: int, height: int, focused: bool = False) -> WindowNode:
    return WindowNode(id=id, name=name, focused=focused, rect=Rect(0, 0, width, height))


@pytest.fixture
def workspace():
    """焦点 workspace "3"（输出 eDP-1）"""
    return Workspace(name="3", output="eDP-1", focused=True, num=3)


@pytest.fixture
def i3_tree():
    """i3 布局树

    root
    ├── __i3
    └── eDP-1
        ├── topdock
        └── content
            ├── 1: [htop]
            └── 3 (splith)
                ├── marvex-3-1        960x1080
                └── con (splitv)
                    ├── marvex-3-2    960x540
                    └── firefox       960x540 (focused)
    """
    right = WindowNode(
        id=30,
        layout="splitv",
        rect=Rect(960, 0, 960, 1080),
        nodes=(
            window(31, "marvex-3-2", 960, 540),
            window(32, "firefox", 960, 540, focused=True),
        ),
    )
    ws3 = WindowNode(
        id=3,
        name="3",
        type="workspace",
        layout="splith",
        rect=Rect(0, 0, 1920, 1080),
        nodes=(window(21, "marvex-3-1", 960, 1080), right),
    )
    ws1 = WindowNode(
        id=1,
        name="1",
        type="workspace",
        layout="splith",
        nodes=(window(11, "htop", 1920, 1080),),
    )
    content = WindowNode(id=100, name="content", type="con", nodes=(ws1, ws3))
    output = WindowNode(
        id=200,
        name="eDP-1",
        type="output",
        layout="output",
        nodes=(WindowNode(id=201, name="topdock", type="dockarea"), content),
    )
    return WindowNode(
        id=1000,
        name="root",
        type="root",
        layout="splith",
        nodes=(WindowNode(id=300, name="__i3", type="output"), output),
    )
