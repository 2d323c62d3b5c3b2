"""i3 布局树遍历

从 i3 布局树中读取：
- 当前焦点 workspace / 焦点窗口
- workspace 节点（root → output → content → workspace）
- 已运行的 marvex 终端（按标题模板反解 workspace 与编号）
- 面积最大的窗口（biggest split 模式）

所有函数都是对只读快照的纯查询，不修改树。
"""

import re
from enum import Enum

from ... import config
from ...core.ids import ID_PLACEHOLDER, WORKSPACE_PLACEHOLDER
from ...errors import NotFoundError
from ...telemetry import get_logger
from .models import Terminal, WindowNode, Workspace

logger = get_logger(__name__)

CONTENT_NODE_NAME = "content"

_PLACEHOLDER_RE = re.compile(f"({re.escape(WORKSPACE_PLACEHOLDER)}|{re.escape(ID_PLACEHOLDER)})")
_GROUP_NAMES = {WORKSPACE_PLACEHOLDER: "w", ID_PLACEHOLDER: "n"}


class UnparsableNumber(Enum):
    """窗口标题中 %n 捕获无法解析为整数时的处理方式

    - ZERO: 仍视为终端，编号记为 0（不会占用任何正整数编号）
    - SKIP: 不视为终端
    """

    ZERO = "zero"
    SKIP = "skip"


def focused_workspace(workspaces: list[Workspace]) -> Workspace:
    """获取焦点 workspace

    Raises:
        NotFoundError: 没有焦点 workspace
    """
    for workspace in workspaces:
        if workspace.focused:
            return workspace

    raise NotFoundError("focused workspace", detail=f"{len(workspaces)} workspaces listed")


def focused_window(tree: WindowNode) -> WindowNode:
    """获取焦点窗口

    深度优先查找 focused 节点，返回的节点携带其父节点的 layout
    （split 判断依据的是窗口所在容器的方向）。
    没有焦点节点时返回树根本身。
    """

    def walk(node: WindowNode) -> WindowNode | None:
        for child in node.nodes:
            if child.focused:
                return child.with_layout(node.layout)

            found = walk(child)
            if found is not None:
                return found

        return None

    found = walk(tree)
    return found if found is not None else tree


def _find_child(nodes: tuple[WindowNode, ...], name: str, level: str) -> WindowNode:
    for node in nodes:
        if node.name == name:
            return node

    candidates = ", ".join(repr(node.name) for node in nodes)
    raise NotFoundError(level, name, detail=f"candidates = [{candidates}]")


def workspace_node(tree: WindowNode, workspace: Workspace) -> WindowNode:
    """定位 workspace 节点：root → output → content → workspace

    Raises:
        NotFoundError: 任一层级缺失，level 标明缺失的层级
    """
    output_node = _find_child(tree.nodes, workspace.output, "output")
    content_node = _find_child(output_node.nodes, CONTENT_NODE_NAME, "content")
    return _find_child(content_node.nodes, workspace.name, "workspace")


def title_pattern(
    template: str,
    group: str = config.TITLE_GROUP_PATTERN,
    workspace: str | None = None,
) -> re.Pattern:
    """将标题模板转换为正则

    %w / %n 替换为捕获组，模板中的其余文本按字面匹配。
    同一占位符多次出现时，后续出现必须与第一次捕获相同。

    Args:
        template: 标题模板
        group: 捕获组的默认模式
        workspace: 给定时 %w 只匹配该 workspace 名称（按字面），
            如 "Mail"、"1:web" 这类不符合 group 的名称
    """
    patterns = {"w": group, "n": group}
    if workspace is not None:
        patterns["w"] = re.escape(workspace)

    parts = []
    seen: set[str] = set()
    for piece in _PLACEHOLDER_RE.split(template):
        if piece in _GROUP_NAMES:
            name = _GROUP_NAMES[piece]
            if name in seen:
                parts.append(f"(?P={name})")
            else:
                parts.append(f"(?P<{name}>{patterns[name]})")
                seen.add(name)
        elif piece:
            parts.append(re.escape(piece))

    return re.compile("".join(parts))


def _match_terminal(
    name: str,
    pattern: re.Pattern,
    default_workspace: str,
    unparsable: UnparsableNumber,
) -> Terminal | None:
    match = pattern.search(name)
    if match is None:
        return None

    groups = match.groupdict()
    workspace = groups.get("w") or default_workspace
    try:
        number = int(groups.get("n") or "")
    except ValueError:
        if unparsable is UnparsableNumber.SKIP:
            logger.debug(f"Skipping {name!r}: unparsable terminal number")
            return None
        number = 0

    return Terminal(workspace=workspace, number=number)


def search_terminals(
    nodes: tuple[WindowNode, ...],
    pattern: re.Pattern,
    default_workspace: str = "",
    unparsable: UnparsableNumber = UnparsableNumber.ZERO,
) -> list[Terminal]:
    """递归查找名称匹配的节点；匹配的节点不再向下遍历"""
    terminals = []
    for node in nodes:
        terminal = _match_terminal(node.name, pattern, default_workspace, unparsable)
        if terminal is not None:
            terminals.append(terminal)
            continue

        if node.nodes:
            terminals.extend(search_terminals(node.nodes, pattern, default_workspace, unparsable))

    return terminals


def active_terminals(
    template: str,
    tree: WindowNode,
    workspace: Workspace,
    unparsable: UnparsableNumber = UnparsableNumber.ZERO,
) -> list[Terminal]:
    """获取 workspace 中已运行的 marvex 终端

    Args:
        template: 标题模板（如 "marvex-%w-%n"）
        tree: i3 布局树快照
        workspace: 目标 workspace
        unparsable: 编号无法解析时的处理方式

    Raises:
        NotFoundError: output/content/workspace 节点缺失
    """
    node = workspace_node(tree, workspace)
    pattern = title_pattern(template, workspace=workspace.name)
    return search_terminals(node.nodes, pattern, workspace.name, unparsable)


def biggest_window(node: WindowNode) -> WindowNode | None:
    """获取面积最大的具名窗口

    深度优先遍历，保持当前最大值（严格大于才替换，面积相同时先出现者胜出）。
    返回的节点携带其父节点的 layout。
    """
    biggest, _ = _biggest(node)
    return biggest


def _biggest(node: WindowNode) -> tuple[WindowNode | None, int]:
    big_node: WindowNode | None = None
    big_area = 0

    for child in node.nodes:
        if child.name:
            area = child.rect.area
            logger.debug(
                f"node: {child.id} | {child.name!r} | "
                f"{child.rect.height} x {child.rect.width} = {area}"
            )
            if area > big_area:
                big_node = child.with_layout(node.layout)
                big_area = area

        sub_node, sub_area = _biggest(child)
        if sub_area > big_area:
            big_node = sub_node
            big_area = sub_area

    return big_node, big_area
