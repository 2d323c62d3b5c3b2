"""Marvex 配置

配置分为以下几类：
- 命名配置：标题模板、session 名称模板、命名策略
- 预留池配置：预留 session 前缀与数量
- 终端配置：终端路径、启动命令模板
- 轮询配置：attach 检测与 session 等待间隔
- 锁配置：跨进程锁文件路径
- 日志配置
"""

import os

# === 命名配置 ===
TITLE_TEMPLATE = "marvex-%w-%n"  # 窗口标题模板（%w=workspace, %n=id）
SESSION_NAME_TEMPLATE = "marvex-%w-%n"  # tmux session 名称模板
NAMING_STRATEGY = "sequential"  # sequential | random
NUMBER_WIDTH = 0  # sequential id 补零宽度，0 表示不补零
TOKEN_PAIRS = 5  # random id 的辅音/元音对数量
TOKEN_CONSONANTS = "bcdfghjklmnpqrstvwxz"
TOKEN_VOWELS = "aeiouy"
TITLE_GROUP_PATTERN = "[0-9a-z]+"  # 从窗口标题反解 %w/%n 的捕获模式
UNPARSABLE_NUMBER = "zero"  # 无法解析的编号：zero=记为 0，skip=不算终端

# === 预留池配置 ===
RESERVE_PREFIX = "marvex-reserve-"  # 预留 session 名称前缀
RESERVE_COUNT = 2  # 每次启动后补足的预留数量

# === 终端配置 ===
TERMINAL_PATH = "/usr/bin/urxvt"
TERMINAL_TEMPLATE = '@path -name "@class" -title "@title" -e "@command"'
TERMINAL_CLASS = ""

# === tmux 配置 ===
TMUX_BINARY = "tmux"
# tmux 未 attach 时上报的窗口尺寸，attach 后需等待其变为真实尺寸
PLACEHOLDER_GEOMETRY = "80x24"
NO_CURRENT_CLIENT = "no current client"  # rename-session 的良性失败
NO_SERVER_MESSAGES = ("no server running", "error connecting to")

# === 轮询配置 ===
ATTACH_POLL_INTERVAL = 0.05  # attach 检测间隔（秒）
SESSION_POLL_INTERVAL = 0.05  # session 存在性等待间隔（秒）
ATTACH_TIMEOUT: float | None = None  # attach / session 等待上限（秒），None 不设上限

# === 清屏配置 ===
CLEAR_REGEXP = r"^\w+sh$"  # 仅当前台命令像 shell 时发送 C-l
CLEAR_KEYS = "C-l"

# === Dummy 模式配置 ===
DUMMY_SESSION_ENV = "MARVEX_DUMMY_SESSION"

# === 锁配置 ===
_RUNTIME_DIR = os.environ.get("XDG_RUNTIME_DIR") or f"/var/run/user/{os.getuid()}"
LOCK_FILE = os.path.join(_RUNTIME_DIR, "marvex.lock")

# === 日志配置 ===
LOG_LEVEL = os.environ.get("MARVEX_LOG_LEVEL", "WARNING")  # 日志级别

# === 指标配置 ===
METRICS_ENABLED = True
