import logging
from typing import Any, Dict, Mapping, Optional, Set, TypeVar

from immutables import Map

from .actions import Action, ActionTypes, get_action_type, is_plain_record
from .config import is_production
from .errors import ConfigurationError
from .types import ReducerFunction

logger = logging.getLogger(__name__)

S = TypeVar("S")
Reducer = ReducerFunction


def create_reducer(initial_state: S, *handlers) -> Reducer[S]:
    """
    創建一個 reducer 函式，用於處理狀態變更。

    Args:
        initial_state: 初始狀態，收到 None 狀態時使用。
        *handlers: 一系列 (action_type, handler_fn) 元組或使用 on 函式創建的處理器。

    Returns:
        一個 reducer 函式，根據 action 的類型執行對應的處理邏輯。
    """
    action_handlers = {}  # 儲存 action 類型與處理函式的對應關係

    for handler in handlers:
        if isinstance(handler, tuple) and len(handler) == 2:
            action_type, handler_fn = handler
            action_handlers[action_type] = handler_fn
        else:
            action_handlers.update(handler)

    def reducer(state: Optional[S] = None, action: Any = None) -> S:
        """
        Reducer 函式，根據 action 處理狀態變更。

        Args:
            state: 當前狀態，None 代表尚未初始化。
            action: 要處理的 action。

        Returns:
            新的狀態，如果沒有對應的處理器則返回原狀態。
        """
        if state is None:
            state = initial_state
        if action is None:
            return state

        handler = action_handlers.get(get_action_type(action))
        if handler:
            return handler(state, action)
        return state

    reducer.initial_state = initial_state
    reducer.handlers = action_handlers

    return reducer


def on(action_creator_or_type, handler):
    """
    創建一個 action 類型與處理函式的映射。

    Args:
        action_creator_or_type: Action 創建器函式或 Action 類型字串。
        handler: 處理該 Action 的函式，接收 (state, action) 並返回新狀態。

    Returns:
        一個包含 {action_type: handler} 的字典。
    """
    if callable(action_creator_or_type) and hasattr(action_creator_or_type, "type"):
        action_type = action_creator_or_type.type
    else:
        action_type = str(action_creator_or_type)

    return {action_type: handler}


def _undefined_state_error_message(key: str, action: Any) -> str:
    action_type = get_action_type(action)
    action_name = f'"{action_type}"' if action_type is not None else "an action"
    return (
        f'Given action {action_name}, reducer "{key}" returned None. '
        "To ignore an action, you must explicitly return the previous state."
    )


def _unexpected_state_shape_warning(
    input_state: Any,
    reducers: Dict[str, Reducer],
    action: Any,
    unexpected_key_cache: Set[Any],
) -> Optional[str]:
    reducer_keys = list(reducers)
    if get_action_type(action) == ActionTypes.INIT:
        argument_name = "preloaded_state argument passed to create_store"
    else:
        argument_name = "previous state received by the reducer"

    if not reducer_keys:
        return (
            "Store does not have a valid reducer. Make sure the argument passed "
            "to combine_reducers is a mapping whose values are reducers."
        )

    if not is_plain_record(input_state) or isinstance(input_state, Action):
        return (
            f'The {argument_name} has unexpected type of "{type(input_state).__name__}". '
            "Expected argument to be a mapping with the following "
            f'keys: "{", ".join(map(str, reducer_keys))}"'
        )

    unexpected_keys = [
        key for key in input_state
        if key not in reducers and key not in unexpected_key_cache
    ]
    unexpected_key_cache.update(unexpected_keys)

    if unexpected_keys:
        return (
            f'Unexpected {"keys" if len(unexpected_keys) > 1 else "key"} '
            f'"{", ".join(map(str, unexpected_keys))}" found in {argument_name}. '
            "Expected to find one of the known reducer keys instead: "
            f'"{", ".join(map(str, reducer_keys))}". Unexpected keys will be ignored.'
        )
    return None


def _assert_reducer_sanity(reducers: Dict[str, Reducer]) -> None:
    for key, reducer in reducers.items():
        # 以 None 狀態與初始化 action 呼叫，必須得到初始狀態
        initial_state = reducer(None, Action(type=ActionTypes.INIT))
        if initial_state is None:
            raise ConfigurationError(
                f'Reducer "{key}" returned None during initialization. '
                "If the state passed to the reducer is None, you must "
                "explicitly return the initial state. The initial state may "
                "not be None.",
                component="combine_reducers",
                config_key=key,
            )

        # 其他任何未知的 action 類型都必須回傳目前狀態
        probe_type = ActionTypes.probe_unknown_action()
        if reducer(None, Action(type=probe_type)) is None:
            raise ConfigurationError(
                f'Reducer "{key}" returned None when probed with a random type. '
                f'Don\'t try to handle {ActionTypes.INIT} or other actions in "@@pyredux/*" '
                "namespace. They are considered private. Instead, you must return the "
                "current state for any unknown actions, unless it is None, "
                "in which case you must return the initial state, regardless of the "
                "action type. The initial state may not be None.",
                component="combine_reducers",
                config_key=key,
            )


def _get_key(state: Any, key: str) -> Any:
    if isinstance(state, (dict, Map)):
        return state.get(key)
    return None


def combine_reducers(reducers: Mapping[str, Reducer]) -> Reducer:
    """
    將多個 reducer 合併成一個 reducer。

    合併後的 reducer 會以相同的鍵呼叫每個子 reducer，並把結果放回狀態樹對應的位置。
    只有當某個子狀態以同一性比較發生變化時才建立新的狀態樹，否則回傳原本的狀態物件。

    建立時會先對每個子 reducer 做一次健全性檢查；若檢查失敗，
    之後每次呼叫合併後的 reducer 都會再次拋出同一個錯誤。

    Args:
        reducers: 鍵名到 reducer 的映射，非可呼叫的項目會被忽略。

    Returns:
        合併後的 reducer。
    """
    final_reducers: Dict[str, Reducer] = {}
    for key, reducer in reducers.items():
        if not is_production():
            if reducer is None:
                logger.warning('No reducer provided for key "%s"', key)
            elif not callable(reducer):
                logger.warning('Reducer for key "%s" is not callable and will be ignored', key)

        if callable(reducer):
            final_reducers[key] = reducer

    unexpected_key_cache: Set[Any] = set()

    sanity_error: Optional[Exception] = None
    sanity_traceback = None
    try:
        _assert_reducer_sanity(final_reducers)
    except Exception as e:
        sanity_error = e
        sanity_traceback = e.__traceback__

    def combination(state: Any = None, action: Any = None) -> Any:
        if sanity_error is not None:
            # 每次都從建立時的 traceback 重新拋出
            raise sanity_error.with_traceback(sanity_traceback)

        if state is None:
            state = {}

        if not is_production():
            warning_message = _unexpected_state_shape_warning(
                state, final_reducers, action, unexpected_key_cache
            )
            if warning_message:
                logger.warning(warning_message)

        has_changed = False
        next_state = {}
        for key, reducer in final_reducers.items():
            previous_state_for_key = _get_key(state, key)
            next_state_for_key = reducer(previous_state_for_key, action)
            if next_state_for_key is None:
                raise ConfigurationError(
                    _undefined_state_error_message(key, action),
                    component="combine_reducers",
                    config_key=key,
                    action_type=get_action_type(action),
                )
            next_state[key] = next_state_for_key
            # 只做同一性比較，子屬性原地修改不會被視為變更
            has_changed = has_changed or next_state_for_key is not previous_state_for_key

        if not has_changed:
            return state
        if isinstance(state, Map):
            return Map(next_state)
        return next_state

    return combination
