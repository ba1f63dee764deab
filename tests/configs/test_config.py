from pathlib import Path

import pytest

from sitedesign.configs.config import (
    CacheMode,
    DesignConfig,
    load_config,
    save_config,
)
from sitedesign.utils.exception import DesignConfigError


def test_load_missing_config(tmp_path: Path) -> None:
    """
    测试配置文件不存在时使用默认配置
    """
    config = load_config(tmp_path / "config.yaml")
    assert config == DesignConfig()
    assert config.cache_mode == CacheMode.MEMORY
    assert config.max_history == 10
    assert config.preview_expire == 1800
    assert config.currency.symbol == "R$"


def test_save_and_load_config(tmp_path: Path) -> None:
    """
    测试保存后重新读取配置
    """
    path = tmp_path / "data" / "config.yaml"
    config = DesignConfig(
        framework_mode=True,
        bootstrap_version="5.2.3",
        timezone="America/Sao_Paulo",
        themes_dir=tmp_path / "themes",
    )
    save_config(config, path)
    assert path.exists()
    loaded = load_config(path)
    assert loaded.framework_mode
    assert loaded.bootstrap_version == "5.2.3"
    assert loaded.timezone == "America/Sao_Paulo"
    assert loaded.themes_dir == tmp_path / "themes"


@pytest.mark.parametrize(
    "content",
    ["key: [unclosed", "- a\n- b\n", "max_history: many\n"],
)
def test_invalid_config(tmp_path: Path, content: str) -> None:
    """
    测试格式错误的配置文件
    """
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(DesignConfigError):
        load_config(path)
