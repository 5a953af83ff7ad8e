"""
Pillow 宿主 - 内存分层文档的宿主能力实现

职责：
1. 管理打开的文档与历史记录（检查点/回滚）
2. 画板枚举、选择、转嵌入内容、解组、自动裁切
3. 颜色配置文件转换/模式/位深
4. 元数据清理与 WebP/JPEG 写出

依赖：
- Pillow: 合成、ImageCms 配置文件转换、WebP/JPEG 编码

测试要点：
- test_checkpoint_restore: 回滚后图层结构与历史长度一致
- test_edit_contents_isolated: 内容文档独立于主文档
- test_ungroup_locked_group: 锁定编组解组失败
- test_autocrop_trims_transparent: 裁切透明边
"""

from __future__ import annotations

import io
import logging
from dataclasses import replace
from functools import lru_cache
from pathlib import Path

from PIL import ImageCms

from ..interfaces import HostError, IImageHost
from ..models import (
    CANONICAL_PROFILE,
    ArtboardHandle,
    CheckpointToken,
    ColorConversionOptions,
    ColorMode,
    DocumentHandle,
    DocumentInfo,
    JPEGExportOptions,
    LayerKind,
    MetadataKind,
    WebPExportOptions,
)
from .layers import DocumentState, HostDocument, Layer
from .manifest import load_document
from .metadata import (
    DOCUMENT_ANCESTORS,
    NS_CAMERA_RAW,
    NS_PHOTOSHOP,
    build_exif,
    serialize_xmp,
)
from .pixels import HIGH_BIT_MODES, as_rgba, composite, flatten_on_white, to_eight_bit, to_pixel_mode

logger = logging.getLogger(__name__)

# LittleCMS cmsFLAGS_BLACKPOINTCOMPENSATION
_LCMS_BLACKPOINT = 0x2000

# 宿主 JPEG 质量刻度上限
JPEG_HOST_QUALITY_MAX = 12


@lru_cache(maxsize=1)
def _srgb_profile() -> ImageCms.ImageCmsProfile:
    return ImageCms.ImageCmsProfile(ImageCms.createProfile("sRGB"))


def _profile_description(data: bytes | None) -> str | None:
    if not data:
        return None
    try:
        profile = ImageCms.ImageCmsProfile(io.BytesIO(data))
        return ImageCms.getProfileDescription(profile).strip() or None
    except (OSError, ImageCms.PyCMSError):
        return None


def pil_jpeg_quality(host_quality: int) -> int:
    """宿主 0-12 刻度 → Pillow 1-95"""
    host_quality = max(0, min(JPEG_HOST_QUALITY_MAX, host_quality))
    return round(1 + host_quality * 94 / JPEG_HOST_QUALITY_MAX)


class PillowHost(IImageHost):
    """基于 Pillow 的内存宿主"""

    def __init__(self, version: str = "25.0.0", metadata_available: bool = True):
        self._version = version
        self._metadata_available = metadata_available
        self._documents: dict[str, HostDocument] = {}
        self._active: str | None = None
        self._counter = 0

    @property
    def version(self) -> str:
        return self._version

    @property
    def metadata_available(self) -> bool:
        return self._metadata_available

    # ------------------------------------------------------------------
    # 文档管理
    # ------------------------------------------------------------------

    def open_document(self, name: str, state: DocumentState, label: str = "Open") -> DocumentHandle:
        """注册文档并设为当前文档"""
        self._counter += 1
        doc_id = f"doc-{self._counter}"
        document = HostDocument(doc_id=doc_id, name=name, state=state)
        document.commit(label)
        self._documents[doc_id] = document
        self._active = doc_id
        logger.debug(f"打开文档: {name} ({doc_id})")
        return DocumentHandle(doc_id=doc_id)

    def open_file(self, manifest_path: str | Path) -> DocumentHandle:
        """从文档清单打开"""
        name, state = load_document(manifest_path)
        return self.open_document(name, state)

    def active_document(self) -> DocumentHandle | None:
        if self._active is None:
            return None
        return DocumentHandle(doc_id=self._active)

    def has_open_documents(self) -> bool:
        return bool(self._documents)

    def is_open(self, document: DocumentHandle) -> bool:
        return document.doc_id in self._documents

    @property
    def open_documents(self) -> list[DocumentHandle]:
        return [DocumentHandle(doc_id=doc_id) for doc_id in self._documents]

    def _get(self, document: DocumentHandle) -> HostDocument:
        try:
            return self._documents[document.doc_id]
        except KeyError:
            raise HostError(f"文档未打开: {document.doc_id}") from None

    def get_document_info(self, document: DocumentHandle) -> DocumentInfo:
        doc = self._get(document)
        state = doc.state
        return DocumentInfo(
            doc_id=doc.doc_id,
            name=doc.name,
            mode=state.mode,
            bits_per_channel=state.bits_per_channel,
            width=state.width,
            height=state.height,
            icc_profile_name=_profile_description(state.icc_profile),
            layers=[layer.to_info() for layer in state.layers],
            history_length=len(doc.history),
        )

    def composite_image(self, document: DocumentHandle):
        """当前合成结果（RGBA）"""
        state = self._get(document).state
        return composite(
            (state.width, state.height),
            ((layer.image, layer.offset) for layer in state.iter_pixels()),
        )

    def duplicate_document(self, document: DocumentHandle, name: str) -> DocumentHandle:
        doc = self._get(document)
        return self.open_document(name, doc.state.clone(), label="Duplicate")

    def close_without_saving(self, document: DocumentHandle) -> None:
        doc = self._get(document)
        del self._documents[doc.doc_id]
        if self._active == doc.doc_id:
            self._active = next(reversed(self._documents), None)
        logger.debug(f"关闭文档（不保存）: {doc.name} ({doc.doc_id})")

    # ------------------------------------------------------------------
    # 历史记录
    # ------------------------------------------------------------------

    def begin_checkpoint(self, document: DocumentHandle, label: str = "") -> CheckpointToken:
        doc = self._get(document)
        return CheckpointToken(doc_id=doc.doc_id, history_index=len(doc.history) - 1, label=label)

    def restore(self, token: CheckpointToken) -> None:
        doc = self._get(DocumentHandle(doc_id=token.doc_id))
        if token.history_index >= len(doc.history):
            raise HostError(f"检查点已失效: {token.label or token.history_index}")
        doc.state = doc.history[token.history_index].state.clone()
        del doc.history[token.history_index + 1:]

    # ------------------------------------------------------------------
    # 画板与图层
    # ------------------------------------------------------------------

    def enumerate_artboards(self, document: DocumentHandle) -> tuple[ArtboardHandle, ...]:
        state = self._get(document).state
        return tuple(
            ArtboardHandle(index=i, name=layer.name, layer_id=layer.layer_id)
            for i, layer in enumerate(state.layers)
            if layer.kind == LayerKind.ARTBOARD
        )

    def select_artboard(self, document: DocumentHandle, artboard: ArtboardHandle) -> None:
        doc = self._get(document)
        layers = doc.state.layers
        if artboard.index >= len(layers) or layers[artboard.index].layer_id != artboard.layer_id:
            raise HostError(f"画板索引已失效: {artboard.name} @ {artboard.index}")
        if layers[artboard.index].kind != LayerKind.ARTBOARD:
            raise HostError(f"图层不是画板: {artboard.name}")
        doc.state.selected = [artboard.layer_id]
        doc.commit("Select")

    def duplicate_and_edit_contents(self, document: DocumentHandle) -> DocumentHandle:
        doc = self._get(document)
        state = doc.state
        if len(state.selected) != 1:
            raise HostError("转换嵌入内容需要恰好一个选中图层")
        index = state.find_top_level(state.selected[0])
        if index is None:
            raise HostError("选中图层不在顶层")

        source = state.layers[index]
        left, top, right, bottom = source.bounds or (0, 0, state.width, state.height)
        if right <= left or bottom <= top:
            raise HostError(f"图层范围为空: {source.name}")

        placed = Layer(name=source.name, kind=LayerKind.PLACED, children=[source], bounds=source.bounds)
        state.layers[index] = placed
        state.selected = [placed.layer_id]
        doc.commit("Convert to Smart Object")

        contents = source.translated(-left, -top)
        unit_state = DocumentState(
            width=right - left,
            height=bottom - top,
            mode=state.mode,
            bits_per_channel=state.bits_per_channel,
            layers=[contents],
            icc_profile=state.icc_profile,
            xmp={ns: dict(props) for ns, props in state.xmp.items()},
            exif=dict(state.exif),
            selected=[contents.layer_id],
        )
        return self.open_document(f"{source.name}.psb", unit_state, label="Edit Contents")

    def select_all(self, document: DocumentHandle) -> None:
        doc = self._get(document)
        doc.state.selected = [layer.layer_id for layer in doc.state.layers]
        doc.commit("Select All")

    def ungroup(self, document: DocumentHandle) -> None:
        doc = self._get(document)
        state = doc.state
        selected = set(state.selected)
        targets = [layer for layer in state.layers if layer.layer_id in selected]
        if not any(layer.is_group for layer in targets):
            raise HostError("选中内容中没有可解散的编组")

        flat: list[Layer] = []
        for layer in state.layers:
            if layer.layer_id in selected:
                flat.extend(self._dissolve(layer))
            else:
                flat.append(layer)

        state.layers = flat
        state.selected = [layer.layer_id for layer in flat]
        doc.commit("Ungroup Layers")

    def _dissolve(self, layer: Layer, visible: bool = True) -> list[Layer]:
        """递归解散编组，隐藏编组的子图层保持隐藏"""
        visible = visible and layer.visible
        if not layer.is_group:
            return [layer if visible == layer.visible else replace(layer, visible=visible)]
        if layer.locked:
            raise HostError(f"编组已锁定: {layer.name}")
        flat: list[Layer] = []
        for child in layer.children:
            flat.extend(self._dissolve(child, visible))
        return flat

    def autocrop(self, document: DocumentHandle) -> None:
        doc = self._get(document)
        state = doc.state
        bbox = self.composite_image(document).getchannel("A").getbbox()
        if bbox is None:
            logger.debug(f"无可见内容，跳过裁切: {doc.name}")
            return
        if bbox == (0, 0, state.width, state.height):
            return

        left, top, right, bottom = bbox
        for layer in state.layers:
            layer.translate(-left, -top)
        state.width, state.height = right - left, bottom - top
        doc.commit("Crop")

    # ------------------------------------------------------------------
    # 颜色
    # ------------------------------------------------------------------

    def convert_color_profile(self, document: DocumentHandle, options: ColorConversionOptions) -> None:
        doc = self._get(document)
        state = doc.state
        if options.profile != CANONICAL_PROFILE:
            raise HostError(f"不支持的目标配置文件: {options.profile}")
        if options.dither:
            logger.debug("LittleCMS 8位转换不做抖动，忽略 dither")

        source_profile = None
        if state.icc_profile:
            try:
                source_profile = ImageCms.ImageCmsProfile(io.BytesIO(state.icc_profile))
            except (OSError, ImageCms.PyCMSError) as e:
                logger.warning(f"源配置文件无法解析，按默认转换: {e}")

        flags = _LCMS_BLACKPOINT if options.black_point_compensation else 0
        try:
            for layer in self._walk(state.layers):
                layer.image = self._to_srgb(layer.image, source_profile, options.intent.lcms_value, flags)
        except ImageCms.PyCMSError as e:
            raise HostError(f"配置文件转换失败: {e}") from e

        state.mode = ColorMode.RGB
        state.icc_profile = _srgb_profile().tobytes()
        doc.commit("Convert to Profile")

    @staticmethod
    def _to_srgb(image, source_profile, intent: int, flags: int):
        if image.mode in HIGH_BIT_MODES:
            image = to_eight_bit(image)
        if image.mode == "P":
            image = image.convert("RGBA")

        alpha = None
        if image.mode in ("RGBA", "LA", "PA"):
            alpha = image.getchannel("A")
            image = image.convert("L" if image.mode == "LA" else "RGB")

        if image.mode == "CMYK" and source_profile is not None:
            rgb = ImageCms.profileToProfile(
                image,
                source_profile,
                _srgb_profile(),
                renderingIntent=intent,
                outputMode="RGB",
                flags=flags,
            )
        else:
            rgb = image.convert("RGB")

        result = rgb.convert("RGBA")
        if alpha is not None:
            result.putalpha(alpha)
        return result

    def set_mode(self, document: DocumentHandle, mode: ColorMode) -> None:
        doc = self._get(document)
        state = doc.state
        if mode != ColorMode.RGB:
            raise HostError(f"不支持转换到颜色模式: {mode.value}")

        changed = state.mode != mode
        for layer in self._walk(state.layers):
            if layer.image.mode != "RGBA":
                layer.image = as_rgba(layer.image)
                changed = True
        state.mode = mode
        if changed:
            doc.commit("RGB Color")

    def set_bit_depth(self, document: DocumentHandle, bits_per_channel: int) -> None:
        doc = self._get(document)
        state = doc.state
        if bits_per_channel != 8:
            raise HostError(f"不支持的目标位深: {bits_per_channel}")

        changed = state.bits_per_channel != bits_per_channel
        for layer in self._walk(state.layers):
            if layer.image.mode in HIGH_BIT_MODES:
                layer.image = to_pixel_mode(to_eight_bit(layer.image), state.mode)
                changed = True
        state.bits_per_channel = bits_per_channel
        if changed:
            doc.commit("8 Bits/Channel")

    @staticmethod
    def _walk(layers: list[Layer]):
        """遍历全部带像素的图层（含隐藏）"""
        for layer in layers:
            if layer.image is not None:
                yield layer
            yield from PillowHost._walk(layer.children)

    # ------------------------------------------------------------------
    # 元数据
    # ------------------------------------------------------------------

    def strip_metadata(self, document: DocumentHandle, kind: MetadataKind) -> None:
        if not self._metadata_available:
            raise HostError("元数据子系统不可用")
        doc = self._get(document)
        xmp = doc.state.xmp

        if kind == MetadataKind.ALL_XMP:
            xmp.clear()
        elif kind == MetadataKind.CAMERA_RAW:
            xmp.pop(NS_CAMERA_RAW, None)
        elif kind == MetadataKind.DOCUMENT_ANCESTORS:
            xmp.get(NS_PHOTOSHOP, {}).pop(DOCUMENT_ANCESTORS, None)

        for namespace in [ns for ns, props in xmp.items() if not props]:
            del xmp[namespace]
        doc.commit(f"Delete Metadata: {kind.value}")

    # ------------------------------------------------------------------
    # 写出
    # ------------------------------------------------------------------

    def export_webp(self, document: DocumentHandle, path: Path, options: WebPExportOptions) -> Path:
        state = self._get(document).state
        target = Path(path).with_suffix(Path(path).suffix.lower())
        params: dict = {"lossless": not options.lossy, "quality": options.quality}

        try:
            if options.include_exif and state.exif:
                params["exif"] = build_exif(state.exif)
            if options.include_xmp and state.xmp:
                params["xmp"] = serialize_xmp(state.xmp)
            if state.icc_profile:
                params["icc_profile"] = state.icc_profile
            # Pillow 不写宿主私有扩展块，include_extras 无对应数据
            self.composite_image(document).save(target, "WEBP", **params)
        except (OSError, ValueError) as e:
            raise HostError(f"WebP写出失败: {target}: {e}") from e
        return target

    def export_jpeg(self, document: DocumentHandle, path: Path, options: JPEGExportOptions) -> Path:
        state = self._get(document).state
        target = Path(path).with_suffix(Path(path).suffix.lower())
        params: dict = {
            "quality": pil_jpeg_quality(options.quality),
            "progressive": not options.baseline,
            "optimize": False,
        }

        try:
            if options.embed_color_profile and state.icc_profile:
                params["icc_profile"] = state.icc_profile
            if options.include_metadata and state.exif:
                params["exif"] = build_exif(state.exif)
            flatten_on_white(self.composite_image(document)).save(target, "JPEG", **params)
        except (OSError, ValueError) as e:
            raise HostError(f"JPEG写出失败: {target}: {e}") from e
        return target
