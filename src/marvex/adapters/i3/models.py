"""i3 布局数据模型

窗口树相关的 DTO：Rect, WindowNode, Workspace, Terminal。
WindowNode 是 i3 布局树的只读快照，查询期间不会被修改。
"""

from dataclasses import dataclass, field, replace

# i3 容器布局
LAYOUT_SPLITH = "splith"
LAYOUT_SPLITV = "splitv"


@dataclass(frozen=True)
class Rect:
    """矩形区域（像素）"""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class WindowNode:
    """i3 容器节点

    Attributes:
        id: i3 容器 ID（con_id）
        name: 显示名称（X 窗口标题；容器节点通常为空）
        focused: 是否为焦点
        rect: 位置和尺寸
        layout: 布局（splith, splitv, stacked, tabbed, output, ...）
        type: 节点类型（root, output, con, workspace, dockarea）
        nodes: 子节点
    """

    id: int
    name: str = ""
    focused: bool = False
    rect: Rect = field(default_factory=Rect)
    layout: str = ""
    type: str = "con"
    nodes: tuple["WindowNode", ...] = ()

    def with_layout(self, layout: str) -> "WindowNode":
        """返回布局替换后的副本（用于携带父节点的布局）"""
        return replace(self, layout=layout)


@dataclass(frozen=True)
class Workspace:
    """i3 workspace 信息"""

    name: str
    output: str
    focused: bool = False
    num: int = -1


@dataclass(frozen=True)
class Terminal:
    """已在运行的 marvex 终端（由窗口标题反解得到）"""

    workspace: str
    number: int
