"""
基於 PyRedux 的 Action 定義模組。

此模組提供 Action 類別、保留的 Action 類型以及創建 Action 的功能。
Actions 是描述狀態變更意圖的不可變記錄，必須帶有已定義的 type 欄位。
"""
import uuid
from typing import Any, Callable, Dict, Optional, Union

from immutables import Map
from pydantic import BaseModel, ConfigDict

from .immutable_utils import to_immutable


class Action(BaseModel):
    """
    表示一個有類型、可選負載與任意附加欄位的動作。

    屬性:
        type: 動作的類型識別
        payload: 動作的負載數據（可選）

    其他關鍵字參數會成為附加欄位，例如 ``Action(type="add", amount=3).amount``。
    建立後不可修改。
    """
    model_config = ConfigDict(frozen=True, extra="allow")

    type: Any
    payload: Any = None

    def __repr__(self) -> str:
        extra = "".join(f", {k}={v!r}" for k, v in (self.model_extra or {}).items())
        return f"Action(type={self.type!r}, payload={self.payload!r}{extra})"


class ActionTypes:
    """
    PyRedux 保留的私有 Action 類型。

    不要在 reducer 中處理這些類型；對任何未知的類型，
    reducer 都必須回傳目前狀態，若目前狀態為 None 則回傳初始狀態。
    """
    INIT = "@@pyredux/INIT"
    PROBE_UNKNOWN_ACTION_PREFIX = "@@pyredux/PROBE_UNKNOWN_ACTION_"

    @classmethod
    def probe_unknown_action(cls) -> str:
        """產生一個無法被猜中的隨機 Action 類型，用於檢查 reducer 是否正確忽略未知動作。"""
        return cls.PROBE_UNKNOWN_ACTION_PREFIX + ".".join(uuid.uuid4().hex[:7])


def is_plain_record(obj: Any) -> bool:
    """
    判斷物件是否為單純的結構化記錄。

    只接受 dict（不含子類）、immutables.Map 與 Action；
    序列、字串、None 與其他類別實例都不算。
    """
    return type(obj) is dict or isinstance(obj, (Map, Action))


def get_action_type(action: Any) -> Any:
    """
    讀取 action 的類型，缺少或為 None 時回傳 None。

    Args:
        action: dict、Map 或 Action

    Returns:
        Action 的類型，若無法取得則為 None。
    """
    if isinstance(action, Action):
        return action.type
    if isinstance(action, (dict, Map)):
        return action.get("type")
    return getattr(action, "type", None)


def _process_payload(payload: Any) -> Any:
    """
    處理 payload，將字典轉換為不可變結構。

    Args:
        payload: 原始 payload

    Returns:
        處理後的 payload
    """
    if isinstance(payload, dict):
        return to_immutable(payload)
    return payload


def create_action(action_type: str, prepare_fn: Optional[Callable[..., Any]] = None) -> Callable[..., Action]:
    """
    創建一個 Action 生成器函數。

    Args:
        action_type: Action 的類型標識符
        prepare_fn: 可選的預處理函數，用於在創建 Action 前處理輸入參數

    Returns:
        一個可調用的函數，用於生成指定類型的 Action

    範例:
        >>> increment = create_action("[Counter] Increment")
        >>> increment()  # 返回 Action(type="[Counter] Increment", payload=None)
        >>>
        >>> add = create_action("[Counter] Add", lambda amount: amount)
        >>> add(5)  # 返回 Action(type="[Counter] Add", payload=5)
    """
    def action_creator(*args: Any, **kwargs: Any) -> Action:
        if prepare_fn:
            payload = prepare_fn(*args, **kwargs)
            return Action(type=action_type, payload=_process_payload(payload))
        elif len(args) == 1 and not kwargs:
            return Action(type=action_type, payload=_process_payload(args[0]))
        elif args or kwargs:
            payload: Dict[Union[int, str], Any] = dict(zip(range(len(args)), args))
            payload.update(kwargs)
            return Action(type=action_type, payload=_process_payload(payload))

        # 無參數，無負載
        return Action(type=action_type)

    # 添加 type 屬性以便於識別
    action_creator.type = action_type  # type: ignore

    return action_creator


# 根 Actions
init_store = create_action(ActionTypes.INIT)
