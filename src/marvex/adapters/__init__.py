"""Adapters 模块

外部协作方的适配器：
- i3: 窗口管理器 IPC（布局树、workspace、命令）
- tmux: 终端复用器会话控制
"""

from .i3 import I3Client
from .tmux import TmuxClient

__all__ = ["I3Client", "TmuxClient"]
