"""
文档清单加载器 - 从 YAML 清单构建宿主文档

清单示例：
    name: campaign.psd
    size: [2400, 1400]
    mode: rgb
    bits_per_channel: 8
    metadata:
      xmp:
        "http://ns.adobe.com/photoshop/1.0/":
          DocumentAncestors: "xmp.did:0001"
      exif:
        Artist: Studio
    artboards:
      - name: Hero
        bounds: [0, 0, 1200, 628]
        layers:
          - name: Background
            fill: "#ffcc00"
          - name: Logo
            image: assets/logo.png
            offset: [40, 40]
          - name: Copy
            locked: true
            layers:
              - name: Headline
                image: assets/headline.png
                offset: [40, 300]

图层坐标相对于所属画板左上角；fill 图层缺省铺满画板。

测试要点：
- test_load_manifest_layers: 图层树与偏移
- test_invalid_manifest: 校验失败抛 PreconditionError
"""

from __future__ import annotations

from pathlib import Path

import yaml
from PIL import Image, ImageColor, UnidentifiedImageError
from pydantic import BaseModel, Field, ValidationError, model_validator

from ..interfaces import PreconditionError
from ..models import ColorMode, LayerKind
from .layers import DocumentState, Layer
from .metadata import exif_tag
from .pixels import to_pixel_mode


class ManifestLayer(BaseModel):
    """清单图层（image/fill/layers 三选一）"""
    name: str
    image: Path | None = None
    fill: str | None = None
    box: tuple[int, int, int, int] | None = None
    offset: tuple[int, int] = (0, 0)
    layers: list[ManifestLayer] | None = None
    locked: bool = False
    visible: bool = True

    @model_validator(mode="after")
    def _check_source(self) -> ManifestLayer:
        sources = [s for s in (self.image, self.fill, self.layers) if s is not None]
        if len(sources) != 1:
            raise ValueError(f"图层 {self.name!r} 必须且只能指定 image/fill/layers 之一")
        return self


class ManifestArtboard(BaseModel):
    """清单画板"""
    name: str
    bounds: tuple[int, int, int, int]
    layers: list[ManifestLayer] = Field(default_factory=list)
    locked: bool = False

    @model_validator(mode="after")
    def _check_bounds(self) -> ManifestArtboard:
        left, top, right, bottom = self.bounds
        if right <= left or bottom <= top:
            raise ValueError(f"画板 {self.name!r} 范围无效: {self.bounds}")
        return self


class ManifestMetadata(BaseModel):
    xmp: dict[str, dict[str, str]] = Field(default_factory=dict)
    exif: dict[str, str] = Field(default_factory=dict)


class DocumentManifest(BaseModel):
    """文档清单"""
    name: str
    size: tuple[int, int]
    mode: ColorMode = ColorMode.RGB
    bits_per_channel: int = 8
    icc_profile: Path | None = None
    metadata: ManifestMetadata = Field(default_factory=ManifestMetadata)
    artboards: list[ManifestArtboard] = Field(default_factory=list)
    layers: list[ManifestLayer] = Field(default_factory=list, description="画板之外的顶层图层")

    @model_validator(mode="after")
    def _check_document(self) -> DocumentManifest:
        if self.bits_per_channel not in (8, 16, 32):
            raise ValueError(f"不支持的位深: {self.bits_per_channel}")
        for name in self.metadata.exif:
            exif_tag(name)
        return self


def load_manifest(manifest_path: str | Path) -> DocumentManifest:
    """读取并校验清单"""
    path = Path(manifest_path)
    if not path.exists():
        raise PreconditionError(f"文档清单不存在: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise PreconditionError(f"文档清单无效: {path}: {e}") from e

    try:
        return DocumentManifest(**(data or {}))
    except (ValidationError, TypeError) as e:
        raise PreconditionError(f"文档清单无效: {path}: {e}") from e


def load_document(manifest_path: str | Path) -> tuple[str, DocumentState]:
    """读取清单并构建文档状态"""
    path = Path(manifest_path)
    manifest = load_manifest(path)
    builder = _DocumentBuilder(manifest, base_dir=path.parent)
    return manifest.name, builder.build()


class _DocumentBuilder:
    def __init__(self, manifest: DocumentManifest, base_dir: Path):
        self.manifest = manifest
        self.base_dir = base_dir

    def build(self) -> DocumentState:
        m = self.manifest
        width, height = m.size
        layers = [self._layer(spec, (0, 0), (0, 0, width, height)) for spec in m.layers]
        for artboard in m.artboards:
            left, top, right, bottom = artboard.bounds
            layers.append(
                Layer(
                    name=artboard.name,
                    kind=LayerKind.ARTBOARD,
                    children=[self._layer(spec, (left, top), artboard.bounds) for spec in artboard.layers],
                    bounds=artboard.bounds,
                    locked=artboard.locked,
                )
            )

        return DocumentState(
            width=width,
            height=height,
            mode=m.mode,
            bits_per_channel=m.bits_per_channel,
            layers=layers,
            icc_profile=self._read_bytes(m.icc_profile) if m.icc_profile else None,
            xmp={ns: dict(props) for ns, props in m.metadata.xmp.items()},
            exif=dict(m.metadata.exif),
        )

    def _layer(self, spec: ManifestLayer, origin: tuple[int, int], area: tuple[int, int, int, int]) -> Layer:
        ox, oy = origin
        if spec.layers is not None:
            return Layer(
                name=spec.name,
                kind=LayerKind.GROUP,
                children=[self._layer(child, origin, area) for child in spec.layers],
                locked=spec.locked,
                visible=spec.visible,
            )

        if spec.fill is not None:
            left, top, right, bottom = spec.box or (0, 0, area[2] - area[0], area[3] - area[1])
            try:
                color = ImageColor.getcolor(spec.fill, "RGBA")
            except ValueError as e:
                raise PreconditionError(f"图层 {spec.name!r} 颜色无效: {spec.fill}") from e
            image = Image.new("RGBA", (right - left, bottom - top), color)
            offset = (ox + left, oy + top)
        else:
            image = self._read_image(spec.image)
            offset = (ox + spec.offset[0], oy + spec.offset[1])

        return Layer(
            name=spec.name,
            image=self._to_document_mode(image),
            offset=offset,
            locked=spec.locked,
            visible=spec.visible,
        )

    def _to_document_mode(self, image: Image.Image) -> Image.Image:
        m = self.manifest
        # 16位灰度数据原样保留，由位深转换处理
        if m.mode == ColorMode.GRAYSCALE and m.bits_per_channel > 8 and image.mode.startswith("I"):
            return image
        return to_pixel_mode(image, m.mode)

    def _read_image(self, relative: Path) -> Image.Image:
        path = relative if relative.is_absolute() else self.base_dir / relative
        try:
            with Image.open(path) as im:
                im.load()
                return im.copy()
        except (OSError, UnidentifiedImageError) as e:
            raise PreconditionError(f"图层图像无法读取: {path}: {e}") from e

    def _read_bytes(self, relative: Path) -> bytes:
        path = relative if relative.is_absolute() else self.base_dir / relative
        try:
            return path.read_bytes()
        except OSError as e:
            raise PreconditionError(f"ICC配置文件无法读取: {path}: {e}") from e
