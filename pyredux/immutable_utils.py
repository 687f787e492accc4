"""
action 負載與狀態快照的不可變轉換。

create_action 以 to_immutable 凍結字典負載，LoggerMiddleware 以 to_dict
把 Map 狀態展開成可讀的普通結構再寫入日誌。
"""

from typing import Any

from immutables import Map
from pydantic import BaseModel

_MAPPINGS = (dict, Map)


def to_immutable(obj: Any) -> Any:
    """
    遞迴凍結一個值。

    字典與 pydantic 模型 (包含 Action 的附加欄位) 轉為 Map，list 與 tuple
    轉為 tuple，set 轉為 frozenset。已是 Map 的值也會向下凍結其內容。

    Args:
        obj: 任意值

    Returns:
        不可變的對應值；無法凍結的值原樣回傳。
    """
    if isinstance(obj, BaseModel):
        obj = obj.model_dump()
    if isinstance(obj, _MAPPINGS):
        return Map((key, to_immutable(value)) for key, value in obj.items())
    if isinstance(obj, (list, tuple)):
        return tuple(to_immutable(item) for item in obj)
    if isinstance(obj, (set, frozenset)):
        return frozenset(to_immutable(item) for item in obj)
    return obj


def to_dict(obj: Any) -> Any:
    """把 to_immutable 的結果展開回 dict、list 與 set。"""
    if isinstance(obj, BaseModel):
        obj = obj.model_dump()
    if isinstance(obj, _MAPPINGS):
        return {key: to_dict(value) for key, value in obj.items()}
    if isinstance(obj, tuple):
        return [to_dict(item) for item in obj]
    if isinstance(obj, frozenset):
        return {to_dict(item) for item in obj}
    return obj
