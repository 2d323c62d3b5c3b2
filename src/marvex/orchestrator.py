"""Orchestrator - 终端启动流程

职责：
- 在跨进程锁内：读取 workspace → 派生终端身份 → 占用预留 session
- 按 split 模式切分窗口并启动终端（attach 到 session）
- 可选：等待 attach 后清屏、向 session 发送命令
- 补足预留池

Dummy 模式分两段：
- 父进程：派生身份后释放锁，启动运行 marvex 自身的终端，
  通过 MARVEX_DUMMY_SESSION 传递 session 名称
- 子进程：显示占位界面，Enter 后在锁内占用 session 并 exec tmux attach
"""

import asyncio
import os
import re
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, field_validator

from . import config
from .adapters.i3.layout import UnparsableNumber, active_terminals, focused_workspace
from .adapters.i3.models import Workspace
from .dummy import run_placeholder
from .launcher import build_argv, clean_environ, resolve_binary, spawn_terminal
from .lock import acquire_lock
from .naming import (
    STRATEGIES,
    Identity,
    NamingStrategy,
    SequentialStrategy,
    create_strategy,
    derive_identity,
)
from .pool import EnsureOutcome, SessionPool
from .split import SplitDirection, SplitMode, apply_split
from .telemetry import get_logger
from .watcher import clear_screen, send_command

if TYPE_CHECKING:
    from .adapters.i3.client import I3Client
    from .adapters.tmux.client import TmuxClient

logger = get_logger(__name__)


class LaunchOptions(BaseModel):
    """启动选项（CLI 参数校验后的结果）"""

    command: str | None = None
    terminal_path: str = config.TERMINAL_PATH
    terminal_template: str = config.TERMINAL_TEMPLATE
    title_template: str = config.TITLE_TEMPLATE
    class_name: str = config.TERMINAL_CLASS
    clear_screen: bool = False
    clear_re: str = config.CLEAR_REGEXP
    split_mode: SplitMode = SplitMode.NONE
    dummy: bool = False
    quiet: bool = False
    reserve: int = Field(default=config.RESERVE_COUNT, ge=0)
    attach_timeout: float | None = Field(default=config.ATTACH_TIMEOUT, gt=0)
    lock_file: str = config.LOCK_FILE
    tmux_socket: str | None = None
    naming: str = config.NAMING_STRATEGY
    number_width: int = Field(default=config.NUMBER_WIDTH, ge=0)
    unparsable_number: UnparsableNumber = UnparsableNumber(config.UNPARSABLE_NUMBER)
    verbose: bool = False

    @field_validator("title_template", "terminal_template", "lock_file")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("clear_re")
    @classmethod
    def _valid_regexp(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid regular expression: {e}") from e
        return value

    @field_validator("naming")
    @classmethod
    def _known_strategy(cls, value: str) -> str:
        if value not in STRATEGIES:
            raise ValueError(f"unknown naming strategy: {value}")
        return value


@dataclass
class LaunchResult:
    """一次启动的结果"""

    session: str
    identity: Identity | None = None
    outcome: EnsureOutcome | None = None
    split: SplitDirection = SplitDirection.NONE
    cleared: bool = False


def self_argv() -> list[str]:
    """重新执行 marvex 自身的命令行（dummy 子进程）"""
    return [sys.executable, "-m", "marvex", *sys.argv[1:]]


class Orchestrator:
    """终端启动流程

    Args:
        options: 启动选项
        i3: 已连接的 I3Client
        tmux: TmuxClient
        strategy: 命名策略，None 按 options.naming 创建
        environ: 进程环境变量
        spawn: 终端启动函数
        execvp: 替换当前进程的函数（dummy 子进程 attach）
        placeholder: 占位界面函数
        echo: 输出 session 名称
    """

    def __init__(
        self,
        options: LaunchOptions,
        i3: "I3Client",
        tmux: "TmuxClient",
        strategy: NamingStrategy | None = None,
        environ: Mapping[str, str] | None = None,
        spawn: Callable = spawn_terminal,
        execvp: Callable = os.execvp,
        placeholder: Callable[[str], bool] = run_placeholder,
        echo: Callable[[str], None] = print,
        reexec_argv: Callable[[], list[str]] = self_argv,
    ):
        self.options = options
        self._i3 = i3
        self._tmux = tmux
        self._strategy = strategy or create_strategy(options.naming, width=options.number_width)
        self._environ = dict(os.environ if environ is None else environ)
        self._spawn = spawn
        self._execvp = execvp
        self._placeholder = placeholder
        self._echo = echo
        self._reexec_argv = reexec_argv
        self._pool = SessionPool(tmux)

    async def run(self) -> LaunchResult | None:
        """执行一次启动

        Returns:
            LaunchResult；dummy 占位界面被取消时返回 None
        """
        dummy_session = self._environ.get(config.DUMMY_SESSION_ENV)
        if self.options.dummy and dummy_session:
            return await self._run_dummy_child(dummy_session)

        lock = await asyncio.to_thread(acquire_lock, self.options.lock_file)
        try:
            workspace, identity = await self.derive_identity()
            logger.info(f"New terminal {identity.title!r} -> session {identity.session}")

            if self.options.dummy:
                # 子进程在用户确认后才占用 session，这里无需持锁
                lock.release()
                return await self._run_dummy_parent(workspace, identity)

            return await self._run_terminal(workspace, identity)
        finally:
            lock.release()

    async def derive_identity(self) -> tuple[Workspace, Identity]:
        """读取焦点 workspace，派生新终端的身份"""
        workspace = focused_workspace(await self._i3.get_workspaces())

        terminals = []
        if isinstance(self._strategy, SequentialStrategy):
            tree = await self._i3.get_tree()
            terminals = active_terminals(
                self.options.title_template,
                tree,
                workspace,
                unparsable=self.options.unparsable_number,
            )
            logger.debug(f"Workspace {workspace.name!r} has terminals {terminals}")

        identity = derive_identity(
            self._strategy,
            terminals,
            workspace.name,
            title_template=self.options.title_template,
        )
        return workspace, identity

    async def _launch(
        self,
        workspace: Workspace,
        title: str,
        command: list[str],
        env: dict[str, str],
    ) -> SplitDirection:
        """切分窗口并启动终端"""
        opts = self.options
        split = await apply_split(self._i3, opts.split_mode, workspace)
        argv = build_argv(
            opts.terminal_template,
            resolve_binary(opts.terminal_path),
            title,
            opts.class_name,
            command,
        )
        self._spawn(argv, env)
        return split

    async def _run_terminal(self, workspace: Workspace, identity: Identity) -> LaunchResult:
        opts = self.options
        session = identity.session

        outcome = await self._pool.ensure_session(session)
        split = await self._launch(
            workspace,
            identity.title,
            self._tmux.attach_argv(session),
            clean_environ(self._environ),
        )

        cleared = False
        if opts.clear_screen:
            cleared = await clear_screen(
                self._tmux, session, opts.clear_re, timeout=opts.attach_timeout
            )

        if opts.command:
            await send_command(self._tmux, session, opts.command, timeout=opts.attach_timeout)

        if not opts.quiet:
            self._echo(session)

        await self._pool.reserve_up_to(opts.reserve)

        return LaunchResult(
            session=session,
            identity=identity,
            outcome=outcome,
            split=split,
            cleared=cleared,
        )

    async def _run_dummy_parent(self, workspace: Workspace, identity: Identity) -> LaunchResult:
        env = clean_environ(self._environ)
        env[config.DUMMY_SESSION_ENV] = identity.session

        split = await self._launch(workspace, identity.title, self._reexec_argv(), env)
        return LaunchResult(session=identity.session, identity=identity, split=split)

    async def _run_dummy_child(self, session: str) -> LaunchResult | None:
        opts = self.options

        if not self._placeholder(session):
            logger.debug(f"Placeholder for {session} closed")
            return None

        with await asyncio.to_thread(acquire_lock, opts.lock_file):
            outcome = await self._pool.ensure_session(session)
            await self._pool.reserve_up_to(opts.reserve)

        if opts.command:
            await send_command(self._tmux, session, opts.command, timeout=opts.attach_timeout)

        argv = self._tmux.attach_argv(session)
        self._execvp(argv[0], argv)

        # 仅在 execvp 被替换（测试）时到达
        return LaunchResult(session=session, outcome=outcome)
