"""
配置加载单元测试

运行：pytest tests/unit/test_config.py -v
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from artboard_export.config import (
    CollisionPolicy,
    ExportErrorPolicy,
    RuntimeConfig,
    VariantLoader,
    VariantPreset,
    VariantSpec,
)
from artboard_export.models import Codec, RenderingIntent

REPO_ROOT = Path(__file__).resolve().parents[2]


class TestVariantLoader:
    """变体预设加载测试"""

    def test_load_variants(self, variants: VariantSpec):
        """测试加载内置变体"""
        assert variants.schema_version == "1.0"
        assert set(variants.names) == {"webp", "webp_jpeg"}

    def test_variant_names_assigned(self, variants: VariantSpec):
        """变体名由键名填充"""
        assert variants.get_variant("webp").name == "webp"
        assert variants.get_variant("webp_jpeg").name == "webp_jpeg"

    def test_webp_variant(self, variants: VariantSpec):
        """测试简单变体：仅WebP，直接处理会话文档"""
        webp = variants.get_variant("webp")
        assert webp.codecs == [Codec.WEBP]
        assert not webp.scratch_duplicate
        assert not webp.sanitize_metadata
        assert not webp.normalize_color
        assert not webp.prompt_prefix
        assert webp.substitute_char == "-"
        assert webp.name_joiner == " - "

    def test_webp_jpeg_variant(self, variants: VariantSpec):
        """测试完整变体：JPEG + WebP，临时副本，清理与规范化"""
        rich = variants.get_variant("webp_jpeg")
        assert rich.codecs == [Codec.JPEG, Codec.WEBP]
        assert rich.scratch_duplicate
        assert rich.sanitize_metadata
        assert rich.normalize_color
        assert rich.prompt_prefix
        assert rich.substitute_char == "_"
        assert rich.beep_on_finish

    def test_unknown_variant(self, variants: VariantSpec):
        with pytest.raises(KeyError):
            variants.get_variant("png")

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            VariantLoader.reload(tmp_path / "missing.yaml")
        VariantLoader.load.cache_clear()

    @pytest.mark.parametrize("substitute", ["", "--", ":", "."])
    def test_invalid_substitute(self, substitute: str):
        """替换字符必须是单个合法字符"""
        with pytest.raises(ValidationError):
            VariantPreset(title="bad", substitute_char=substitute)

    def test_webp_required(self):
        """WebP 为必选编码"""
        with pytest.raises(ValidationError):
            VariantPreset(title="jpeg only", codecs=[Codec.JPEG])


class TestRuntimeConfig:
    """运行期配置测试"""

    def test_default_config(self, runtime_config: RuntimeConfig):
        """测试默认配置"""
        assert runtime_config.host.min_version == 23
        assert runtime_config.webp.quality == 100
        assert runtime_config.webp.lossy
        assert runtime_config.jpeg.quality == 12
        assert runtime_config.color.rendering_intent == RenderingIntent.RELATIVE_COLORIMETRIC
        assert not runtime_config.color.black_point_compensation
        assert runtime_config.naming.collision_policy == CollisionPolicy.OVERWRITE
        assert runtime_config.error_policy.export_error_policy == ExportErrorPolicy.BEST_EFFORT

    def test_from_yaml(self):
        """测试读取仓库内的运行期配置"""
        path = REPO_ROOT / "documents" / "export_runtime.yaml"
        config = RuntimeConfig.from_yaml(path)
        assert config.host.min_version == 23
        assert config.color.canonical_profile == "sRGB IEC61966-2.1"
        assert Path(config.logging.log_file).is_absolute()
        assert Path(config.logging.log_file).parent == path.parent.resolve()

    def test_from_yaml_missing(self, tmp_path: Path):
        """配置文件不存在时使用默认值"""
        config = RuntimeConfig.from_yaml(tmp_path / "missing.yaml")
        assert config.jpeg.quality == 12

    def test_from_yaml_overrides(self, tmp_path: Path):
        """{default: } 叶子与普通值都可读取"""
        path = tmp_path / "runtime.yaml"
        path.write_text(
            "runtime_options:\n"
            "  jpeg:\n"
            "    quality: {default: 8, desc: test}\n"
            "  naming:\n"
            "    collision_policy: suffix\n",
            encoding="utf-8",
        )
        config = RuntimeConfig.from_yaml(path)
        assert config.jpeg.quality == 8
        assert config.naming.collision_policy == CollisionPolicy.SUFFIX

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch):
        """环境变量覆盖"""
        monkeypatch.setenv("ARTBOARD_EXPORT_JPEG__QUALITY", "10")
        assert RuntimeConfig().jpeg.quality == 10

    def test_env_override_through_yaml(self, monkeypatch: pytest.MonkeyPatch):
        """环境变量优先于YAML文件中的值，其余字段仍取YAML"""
        monkeypatch.setenv("ARTBOARD_EXPORT_JPEG__QUALITY", "10")
        config = RuntimeConfig.from_yaml(REPO_ROOT / "documents" / "export_runtime.yaml")
        assert config.jpeg.quality == 10
        assert config.jpeg.embed_color_profile
        assert config.host.min_version == 23

    def test_format_spec(self, runtime_config: RuntimeConfig):
        """变体编码组合 → 导出选项"""
        assert runtime_config.format_spec([Codec.WEBP]).jpeg is None
        spec = runtime_config.format_spec([Codec.JPEG, Codec.WEBP])
        assert spec.codecs == (Codec.JPEG, Codec.WEBP)
        assert spec.jpeg.quality == 12

    def test_option_builders(self, runtime_config: RuntimeConfig):
        """配置 → 封闭导出选项"""
        webp = runtime_config.webp_options()
        jpeg = runtime_config.jpeg_options()
        color = runtime_config.color_options()
        assert webp.quality == 100
        assert jpeg.baseline
        assert jpeg.matte is None
        assert not jpeg.include_metadata
        assert color.profile == "sRGB IEC61966-2.1"
        assert not color.dither
