"""
Configuration module for wskeeper.

Provides typed configuration models, environment loading and logging setup.

### Usage Examples:

```python
from wskeeper.config import load_env_file, get_config
load_env_file()
config = get_config()
print(f"Endpoint: {config.transport.endpoint}")

from wskeeper.config.logging_config import configure_logging
logger = configure_logging()
logger.info("Application started")
```
"""

from .env_loader import load_env_file
from .models import (
    ApplicationConfig,
    LoggingConfig,
    LogLevel,
    RetryConfig,
    SentinelConfig,
    TransportConfig,
)
from .settings import (
    get_config,
    logging_config,
    reload_config,
    retry_config,
    sentinel_config,
    set_config,
    transport_config,
)

__all__ = [
    "ApplicationConfig",
    "LoggingConfig",
    "LogLevel",
    "RetryConfig",
    "SentinelConfig",
    "TransportConfig",
    "get_config",
    "load_env_file",
    "logging_config",
    "reload_config",
    "retry_config",
    "sentinel_config",
    "set_config",
    "transport_config",
]
