"""
单画板处理组件单元测试

运行：pytest tests/unit/test_components.py -v
"""

from pathlib import Path

import pytest
from PIL import Image

from artboard_export.config import ExportErrorPolicy
from artboard_export.core import (
    ArtboardEnumerator,
    ColorNormalizer,
    Exporter,
    LayerIsolator,
    MetadataSanitizer,
)
from artboard_export.host import PillowHost
from artboard_export.interfaces import EnumerationError, IsolationError
from artboard_export.models import Codec, ColorMode, ExportFormatSpec, MetadataKind


def _isolate(host, document, index: int):
    artboard = host.enumerate_artboards(document)[index]
    return LayerIsolator(host).isolate(document, artboard)


class TestArtboardEnumerator:
    """画板枚举测试"""

    def test_enumerate_order(self, host, sample_document):
        """顺序与图层栈一致"""
        artboards = ArtboardEnumerator(host).enumerate(sample_document)
        assert [ab.index for ab in artboards] == [0, 1, 2]
        assert artboards[1].name == "Banner: Wide"

    def test_enumerate_no_artboards(self, host, write_manifest):
        """无画板返回空（不是错误）"""
        doc = host.open_file(write_manifest({"name": "flat.psd", "size": [10, 10]}))
        assert ArtboardEnumerator(host).enumerate(doc) == ()

    def test_enumerate_failure(self, host, sample_document):
        """查询失败抛 EnumerationError，附带出错位置"""
        host.fail_enumeration = True
        with pytest.raises(EnumerationError, match=r"conftest\.py:\d+"):
            ArtboardEnumerator(host).enumerate(sample_document)


class TestLayerIsolator:
    """图层隔离测试"""

    def test_isolate_flat_unit(self, host, sample_document):
        unit = _isolate(host, sample_document, 2)
        info = host.get_document_info(unit)
        assert (info.width, info.height) == (40, 20)
        assert info.layer_count == 1

    def test_isolation_failure_closes_unit(self, host, sample_data, write_manifest):
        """解组失败时内容文档不保存关闭"""
        sample_data["artboards"][0]["locked"] = True
        doc = host.open_file(write_manifest(sample_data))
        artboard = host.enumerate_artboards(doc)[0]
        with pytest.raises(IsolationError, match="Hero"):
            LayerIsolator(host).isolate(doc, artboard)
        assert host.open_documents == [doc]

    def test_stale_artboard(self, host, sample_document):
        artboard = host.enumerate_artboards(sample_document)[0]
        with pytest.raises(IsolationError):
            LayerIsolator(host).isolate(sample_document, artboard.model_copy(update={"index": 7}))


class TestMetadataSanitizer:
    """元数据清理测试"""

    def test_sanitize_all(self, host, sample_document):
        removed = MetadataSanitizer(host).sanitize(sample_document)
        assert removed == [
            MetadataKind.DOCUMENT_ANCESTORS,
            MetadataKind.CAMERA_RAW,
            MetadataKind.ALL_XMP,
        ]
        assert host._get(sample_document).state.xmp == {}

    def test_sanitize_unavailable(self, sample_manifest):
        """元数据子系统不可用时为空操作"""
        host = PillowHost(metadata_available=False)
        doc = host.open_file(sample_manifest)
        sanitizer = MetadataSanitizer(host)
        assert sanitizer.sanitize(doc) == []
        assert sanitizer.errors == []

    def test_sanitize_no_documents(self, host, sample_document):
        host.close_without_saving(sample_document)
        assert MetadataSanitizer(host).sanitize(sample_document) == []

    def test_sanitize_best_effort(self, host, sample_document, sample_manifest):
        """单项失败只记录，不抛出"""
        host.open_file(sample_manifest)
        host.close_without_saving(sample_document)
        sanitizer = MetadataSanitizer(host)
        assert sanitizer.sanitize(sample_document) == []
        assert len(sanitizer.errors) == 3


class TestColorNormalizer:
    """颜色规范化测试"""

    def test_indexed_to_rgb8(self, host, indexed_manifest):
        """索引色 → RGB 8位，配置文件转换恰好一次"""
        doc = host.open_file(indexed_manifest)
        unit = _isolate(host, doc, 1)
        assert ColorNormalizer(host).normalize(unit) is True
        info = host.get_document_info(unit)
        assert info.mode == ColorMode.RGB
        assert info.bits_per_channel == 8
        assert host.conversions == [unit.doc_id]
        assert host.composite_image(unit).getpixel((5, 5))[:3] == (0, 128, 64)

    def test_rgb_skips_profile_conversion(self, host, sample_document):
        """RGB 来源不做配置文件转换"""
        unit = _isolate(host, sample_document, 0)
        assert ColorNormalizer(host).normalize(unit) is False
        assert host.conversions == []
        assert host.get_document_info(unit).mode == ColorMode.RGB

    def test_sixteen_bit_grayscale(self, host, tmp_path: Path, write_manifest):
        """16位灰度 → RGB 8位"""
        Image.new("I;16", (8, 8), 32896).save(tmp_path / "gray16.png")
        doc = host.open_file(
            write_manifest(
                {
                    "name": "scan.tif",
                    "size": [8, 8],
                    "mode": "grayscale",
                    "bits_per_channel": 16,
                    "artboards": [
                        {"name": "Scan", "bounds": [0, 0, 8, 8], "layers": [{"name": "Px", "image": "gray16.png"}]}
                    ],
                },
                filename="gray.yaml",
            )
        )
        unit = _isolate(host, doc, 0)
        normalizer = ColorNormalizer(host)
        assert normalizer.normalize(unit) is True
        info = host.get_document_info(unit)
        assert (info.mode, info.bits_per_channel) == (ColorMode.RGB, 8)
        assert normalizer.errors == []

    def test_failure_is_recorded(self, host, sample_document):
        """不可用的单元只记录降级"""
        unit = _isolate(host, sample_document, 0)
        host.close_without_saving(unit)
        normalizer = ColorNormalizer(host)
        assert normalizer.normalize(unit) is False
        assert len(normalizer.errors) == 1


class TestExporter:
    """导出器测试"""

    def test_export_both_codecs(self, host, sample_document, output_dir: Path):
        """WebP + JPEG 均写出"""
        unit = _isolate(host, sample_document, 0)
        results = Exporter(host).export(unit, output_dir, "campaign_Hero", [Codec.JPEG, Codec.WEBP])
        assert [r.ok for r in results] == [True, True]
        assert sorted(p.name for p in output_dir.iterdir()) == ["campaign_Hero.jpg", "campaign_Hero.webp"]

    def test_existing_file_overwritten(self, host, sample_document, output_dir: Path):
        (output_dir / "Hero.webp").write_bytes(b"stale")
        unit = _isolate(host, sample_document, 0)
        Exporter(host).export(unit, output_dir, "Hero", [Codec.WEBP])
        with Image.open(output_dir / "Hero.webp") as im:
            assert im.size == (200, 100)

    def test_codec_failure_best_effort(self, host, sample_document, output_dir: Path):
        """一种编码失败仍尝试另一种"""
        host.fail_codecs = {"jpeg"}
        unit = _isolate(host, sample_document, 0)
        results = Exporter(host).export(unit, output_dir, "Hero", [Codec.JPEG, Codec.WEBP])
        assert [r.ok for r in results] == [False, True]
        assert "磁盘已满" in results[0].error
        assert [p.name for p in output_dir.iterdir()] == ["Hero.webp"]

    def test_codec_failure_abort_artboard(self, host, sample_document, output_dir: Path):
        """失败后跳过剩余编码"""
        host.fail_codecs = {"jpeg"}
        unit = _isolate(host, sample_document, 0)
        exporter = Exporter(host, error_policy=ExportErrorPolicy.ABORT_ARTBOARD)
        results = exporter.export(unit, output_dir, "Hero", [Codec.JPEG, Codec.WEBP])
        assert [(r.ok, r.skipped) for r in results] == [(False, False), (False, True)]
        assert list(output_dir.iterdir()) == []

    def test_jpeg_without_options(self, host, sample_document, output_dir: Path):
        """未配置JPEG选项：JPEG记为失败，WebP照常写出"""
        unit = _isolate(host, sample_document, 0)
        results = Exporter(host, ExportFormatSpec()).export(unit, output_dir, "Hero", [Codec.JPEG, Codec.WEBP])
        assert [r.ok for r in results] == [False, True]
        assert "未配置JPEG选项" in results[0].error
        assert [p.name for p in output_dir.iterdir()] == ["Hero.webp"]
