"""
缓存系统配置
"""

# 日志标识
LOG_COMMAND = "DesignCache"

# 默认缓存过期时间（秒）
DEFAULT_EXPIRE = 600

# 缓存键前缀
CACHE_KEY_PREFIX = "SITEDESIGN"

# 缓存键分隔符
CACHE_KEY_SEPARATOR = ":"
