"""
PyRedux：單一寫入者、同步的狀態容器。

狀態只能透過 reducer 處理 dispatch 的 action 來改變，
每次變更後依序通知所有訂閱者。
"""

from .errors import (
    PyReduxError, ConfigurationError, ValidationError, StoreError, InvalidOperationError
)
from .actions import Action, ActionTypes, create_action, get_action_type, is_plain_record
from .config import Settings, get_settings, is_production
from .middleware import (
    BaseMiddleware, DevToolsMiddleware, LoggerMiddleware, MiddlewareAPI, ThunkMiddleware,
    apply_middleware, compose
)
from .reducers import combine_reducers, create_reducer, on
from .store import Store, create_store
from .immutable_utils import to_immutable, to_dict

__all__ = [
    # Errors
    "PyReduxError", "ConfigurationError", "ValidationError", "StoreError",
    "InvalidOperationError",

    # Actions
    "Action", "ActionTypes", "create_action", "get_action_type", "is_plain_record",

    # Config
    "Settings", "get_settings", "is_production",

    # Middleware
    "BaseMiddleware", "DevToolsMiddleware", "LoggerMiddleware", "MiddlewareAPI",
    "ThunkMiddleware", "apply_middleware", "compose",

    # Reducers
    "combine_reducers", "create_reducer", "on",

    # Store
    "Store", "create_store",

    # Immutable Utils
    "to_immutable", "to_dict",
]
