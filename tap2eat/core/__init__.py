from .asyncio_utils import cancel_task_safely, create_logged_task
from .config_manager import ConfigManager, get_config_manager
from .logging_config import configure_logging
from .logging_utils import StructuredLogger, get_module_logger

__all__ = [
    'ConfigManager',
    'StructuredLogger',
    'cancel_task_safely',
    'configure_logging',
    'create_logged_task',
    'get_config_manager',
    'get_module_logger',
]
