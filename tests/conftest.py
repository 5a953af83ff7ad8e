"""
pytest 配置与公共 fixtures

使用方式：
    def test_something(host, sample_manifest):
        document = host.open_file(sample_manifest)
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml
from PIL import Image

from artboard_export.config import RuntimeConfig, VariantSpec, load_variants
from artboard_export.host import PillowHost
from artboard_export.host.metadata import NS_CAMERA_RAW, NS_DC, NS_PHOTOSHOP
from artboard_export.interfaces import HostError
from artboard_export.models import DocumentHandle, DocumentInfo
from artboard_export.ui import PresetUI


# ============================================================================
# 配置 Fixtures
# ============================================================================

@pytest.fixture
def runtime_config() -> RuntimeConfig:
    """运行期配置（默认值）"""
    return RuntimeConfig()


@pytest.fixture(scope="session")
def variants() -> VariantSpec:
    """导出变体预设（会话级别缓存）"""
    return load_variants()


# ============================================================================
# 宿主 Fixtures
# ============================================================================

class RecordingHost(PillowHost):
    """记录检查点回滚与颜色转换的宿主"""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.restored: list[DocumentInfo] = []
        self.conversions: list[str] = []
        self.fail_codecs: set[str] = set()
        self.fail_enumeration = False

    def restore(self, token):
        super().restore(token)
        self.restored.append(self.get_document_info(DocumentHandle(doc_id=token.doc_id)))

    def convert_color_profile(self, document, options):
        self.conversions.append(document.doc_id)
        super().convert_color_profile(document, options)

    def enumerate_artboards(self, document):
        if self.fail_enumeration:
            raise HostError("画板查询不可用")
        return super().enumerate_artboards(document)

    def export_jpeg(self, document, path, options):
        if "jpeg" in self.fail_codecs:
            raise HostError("磁盘已满")
        return super().export_jpeg(document, path, options)

    def export_webp(self, document, path, options):
        if "webp" in self.fail_codecs:
            raise HostError("磁盘已满")
        return super().export_webp(document, path, options)


@pytest.fixture
def host() -> RecordingHost:
    return RecordingHost()


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """输出目录"""
    path = tmp_path / "out"
    path.mkdir()
    return path


@pytest.fixture
def preset_ui(output_dir: Path) -> PresetUI:
    """非交互UI：输出到 output_dir，前缀取默认值"""
    return PresetUI(output_dir)


# ============================================================================
# 文档清单 Fixtures
# ============================================================================

def write_png(path: Path, size: tuple[int, int], color: Any, mode: str = "RGBA") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new(mode, size, color).save(path)
    return path


@pytest.fixture
def write_manifest(tmp_path: Path) -> Callable[..., Path]:
    """把清单字典写成 YAML，返回路径"""
    def _write(data: dict[str, Any], filename: str = "document.yaml") -> Path:
        path = tmp_path / filename
        path.write_text(yaml.safe_dump(data, allow_unicode=True, sort_keys=False), encoding="utf-8")
        return path

    return _write


def sample_document_data() -> dict[str, Any]:
    """三个画板的RGB文档，带出处元数据"""
    return {
        "name": "campaign.psd",
        "size": [600, 200],
        "mode": "rgb",
        "metadata": {
            "xmp": {
                NS_PHOTOSHOP: {"DocumentAncestors": "xmp.did:0001", "ColorMode": "3"},
                NS_CAMERA_RAW: {"Exposure2012": "+0.50"},
                NS_DC: {"format": "image/vnd.adobe.photoshop"},
            },
            "exif": {"Artist": "Studio"},
        },
        "artboards": [
            {
                "name": "Hero",
                "bounds": [0, 0, 200, 100],
                "layers": [
                    {"name": "Background", "fill": "#ffcc00"},
                    {
                        "name": "Copy",
                        "layers": [
                            {"name": "Logo", "image": "assets/logo.png", "offset": [10, 10]},
                        ],
                    },
                ],
            },
            {
                "name": "Banner: Wide",
                "bounds": [200, 0, 400, 100],
                "layers": [{"name": "Background", "fill": "#0066cc"}],
            },
            {
                "name": "Square/Alt",
                "bounds": [400, 0, 600, 200],
                "layers": [{"name": "Logo", "image": "assets/logo.png", "offset": [50, 50]}],
            },
        ],
    }


@pytest.fixture
def sample_data(tmp_path: Path) -> dict[str, Any]:
    """示例清单数据（已写好引用的图像）"""
    write_png(tmp_path / "assets" / "logo.png", (40, 20), (255, 0, 0, 255))
    return sample_document_data()


@pytest.fixture
def sample_manifest(sample_data: dict[str, Any], write_manifest) -> Path:
    return write_manifest(sample_data)


@pytest.fixture
def sample_document(host: RecordingHost, sample_manifest: Path) -> DocumentHandle:
    """已打开的示例文档"""
    return host.open_file(sample_manifest)


@pytest.fixture
def indexed_manifest(tmp_path: Path, write_manifest) -> Path:
    """索引色文档（两个画板）"""
    write_png(tmp_path / "assets" / "swatch.png", (30, 30), (0, 128, 64), mode="RGB")
    return write_manifest(
        {
            "name": "palette.gif",
            "size": [200, 100],
            "mode": "indexed",
            "artboards": [
                {"name": "A", "bounds": [0, 0, 100, 100], "layers": [{"name": "Fill", "fill": "#336699"}]},
                {
                    "name": "B",
                    "bounds": [100, 0, 200, 100],
                    "layers": [{"name": "Swatch", "image": "assets/swatch.png", "offset": [0, 0]}],
                },
            ],
        },
        filename="indexed.yaml",
    )
