from typing import Any


class DesignError(Exception):
    """
    设计服务异常基类
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class NotFoundError(DesignError):
    """
    未发现
    """

    pass


class ThemeNotFoundError(NotFoundError):
    """主题不存在"""

    def __init__(self, theme_id: str):
        super().__init__(f"主题不存在: {theme_id}", theme_id=theme_id)


class TemplateNotFoundError(NotFoundError):
    """模板不存在"""

    def __init__(self, template_id: str, path: str | None = None):
        message = f"模板不存在: {template_id}"
        if path:
            message += f" ({path})"
        super().__init__(message, template_id=template_id, path=path)


class ComponentNotFoundError(NotFoundError):
    """组件不存在"""

    def __init__(self, component_id: str, path: str | None = None):
        message = f"组件不存在: {component_id}"
        if path:
            message += f" ({path})"
        super().__init__(message, component_id=component_id, path=path)


class VersionNotFoundError(NotFoundError):
    """主题历史版本不存在"""

    def __init__(self, theme_id: str, version: str):
        super().__init__(
            f"版本 {version} 不存在于主题 {theme_id}",
            theme_id=theme_id,
            version=version,
        )


class PreviewNotFoundError(NotFoundError):
    """预览不存在"""

    def __init__(self, preview_id: str, message: str | None = None):
        super().__init__(message or f"预览不存在: {preview_id}", preview_id=preview_id)


class PreviewExpiredError(PreviewNotFoundError):
    """
    预览已过期
    继承自 PreviewNotFoundError，过期的预览对调用方而言等同于不存在。
    """

    def __init__(self, preview_id: str):
        super().__init__(preview_id, f"预览已过期: {preview_id}")


class DesignValidationError(DesignError):
    """
    参数或数据校验失败
    """

    pass


class TemplateSyntaxError(DesignValidationError):
    """模板指令语法错误"""

    def __init__(self, message: str, lineno: int | None = None):
        self.lineno = lineno
        if lineno is not None:
            message = f"{message} (第 {lineno} 行)"
        super().__init__(message, lineno=lineno)


class StorageError(DesignError):
    """
    存储读写失败
    """

    pass


class DesignConfigError(DesignError):
    """
    配置错误
    """

    pass
