"""
内存文档结构 - PillowHost 内部使用的图层树与文档状态

约定：
- 图层列表按绘制顺序排列（底 → 顶）
- 所有像素图层的 offset 使用文档绝对坐标
- 画板 bounds 为 (left, top, right, bottom)
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field

from PIL import Image

from ..models import ColorMode, LayerInfo, LayerKind

GROUP_KINDS = (LayerKind.GROUP, LayerKind.ARTBOARD, LayerKind.PLACED)


def new_layer_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass
class Layer:
    """图层节点"""
    name: str
    kind: LayerKind = LayerKind.PIXEL
    image: Image.Image | None = None
    offset: tuple[int, int] = (0, 0)
    children: list[Layer] = field(default_factory=list)
    bounds: tuple[int, int, int, int] | None = None
    locked: bool = False
    visible: bool = True
    layer_id: str = field(default_factory=new_layer_id)

    @property
    def is_group(self) -> bool:
        return self.kind in GROUP_KINDS

    def clone(self) -> Layer:
        """深拷贝（保留layer_id）"""
        return Layer(
            name=self.name,
            kind=self.kind,
            image=self.image.copy() if self.image is not None else None,
            offset=self.offset,
            children=[c.clone() for c in self.children],
            bounds=self.bounds,
            locked=self.locked,
            visible=self.visible,
            layer_id=self.layer_id,
        )

    def translated(self, dx: int, dy: int) -> Layer:
        """平移后的拷贝"""
        layer = self.clone()
        layer.translate(dx, dy)
        return layer

    def translate(self, dx: int, dy: int) -> None:
        self.offset = (self.offset[0] + dx, self.offset[1] + dy)
        if self.bounds is not None:
            left, top, right, bottom = self.bounds
            self.bounds = (left + dx, top + dy, right + dx, bottom + dy)
        for child in self.children:
            child.translate(dx, dy)

    def iter_pixels(self):
        """按绘制顺序遍历可见像素图层"""
        if not self.visible:
            return
        if self.image is not None and not self.is_group:
            yield self
        for child in self.children:
            yield from child.iter_pixels()

    def to_info(self) -> LayerInfo:
        return LayerInfo(
            name=self.name,
            kind=self.kind,
            locked=self.locked,
            children=[c.to_info() for c in self.children],
        )


@dataclass
class DocumentState:
    """可回滚的文档状态"""
    width: int
    height: int
    mode: ColorMode
    bits_per_channel: int
    layers: list[Layer] = field(default_factory=list)
    icc_profile: bytes | None = None
    xmp: dict[str, dict[str, str]] = field(default_factory=dict)
    exif: dict[str, str] = field(default_factory=dict)
    selected: list[str] = field(default_factory=list)

    def clone(self) -> DocumentState:
        return DocumentState(
            width=self.width,
            height=self.height,
            mode=self.mode,
            bits_per_channel=self.bits_per_channel,
            layers=[layer.clone() for layer in self.layers],
            icc_profile=self.icc_profile,
            xmp=copy.deepcopy(self.xmp),
            exif=dict(self.exif),
            selected=list(self.selected),
        )

    def iter_pixels(self):
        for layer in self.layers:
            yield from layer.iter_pixels()

    def find_top_level(self, layer_id: str) -> int | None:
        for i, layer in enumerate(self.layers):
            if layer.layer_id == layer_id:
                return i
        return None


@dataclass
class HistoryState:
    """历史记录条目（操作后的状态）"""
    label: str
    state: DocumentState


@dataclass
class HostDocument:
    """宿主文档"""
    doc_id: str
    name: str
    state: DocumentState
    history: list[HistoryState] = field(default_factory=list)

    def commit(self, label: str) -> None:
        """记录一条历史"""
        self.history.append(HistoryState(label=label, state=self.state.clone()))
