"""
PyRedux 錯誤處理模組。

定義 Store、Reducer 組合與中介軟體管線會拋出的所有異常類型。
所有異常都在出錯的呼叫點同步拋出，庫內部不會捕獲或重試。
"""

import traceback
from typing import Any, Dict, Optional


class PyReduxError(Exception):
    """所有 PyRedux 異常的基礎類。"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Args:
            message: 錯誤訊息
            details: 附加的結構化錯誤資訊
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.traceback = "".join(traceback.format_stack()[:-1])

    def to_dict(self) -> Dict[str, Any]:
        """將錯誤轉換為字典，便於記錄或上報。"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": dict(self.details),
            "traceback": self.traceback,
        }

    def __str__(self) -> str:
        return self.message


class ConfigurationError(PyReduxError):
    """
    配置相關的錯誤。

    例如 reducer、enhancer 或 listener 不是可呼叫物件，
    或 reducer 在不允許的情況下回傳 None。
    """

    def __init__(self, message: str, component: str, config_key: Optional[str] = None, **kwargs: Any):
        details = {"component": component, **kwargs}
        if config_key is not None:
            details["config_key"] = config_key
        super().__init__(message, details)
        self.component = component
        self.config_key = config_key


class ValidationError(PyReduxError):
    """資料驗證錯誤，用於格式不正確的 Action。"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        expected_type: Optional[str] = None,
        **kwargs: Any
    ):
        details = {"field": field, "value": repr(value), "expected_type": expected_type, **kwargs}
        super().__init__(message, details)
        self.field = field
        self.value = value
        self.expected_type = expected_type


class StoreError(PyReduxError):
    """與 Store 相關的錯誤。"""

    def __init__(self, message: str, operation: str, **kwargs: Any):
        super().__init__(message, {"operation": operation, **kwargs})
        self.operation = operation


class InvalidOperationError(StoreError):
    """在 reducer 執行期間呼叫 get_state、subscribe、unsubscribe 或 dispatch。"""
