from pathlib import Path

# 资源根路径
RESOURCE_PATH = Path() / "resources"
# 主题文档路径
THEMES_PATH = RESOURCE_PATH / "themes"
# 模板源码路径
TEMPLATES_PATH = RESOURCE_PATH / "templates"
# 组件源码路径
COMPONENTS_PATH = RESOURCE_PATH / "components"
# 数据路径
DATA_PATH = Path() / "data"
# 预览数据路径
PREVIEW_PATH = DATA_PATH / "previews"
# 日志路径
LOG_PATH = Path() / "log"
# 配置文件路径
CONFIG_PATH = DATA_PATH / "config.yaml"


def ensure_paths(*paths: Path):
    """确保目录存在

    参数:
        paths: 需要创建的目录
    """
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)
