import logging
from typing import Any, Callable, Generic, List, Optional, TypeVar

import reactivex
from reactivex import Observable, operators as ops
from reactivex.disposable import Disposable

from .actions import get_action_type, init_store, is_plain_record
from .errors import ConfigurationError, InvalidOperationError, ValidationError
from .types import Listener, ReducerFunction, StoreEnhancer, Unsubscribe

logger = logging.getLogger(__name__)

S = TypeVar("S")


class Store(Generic[S]):
    """
    狀態容器，持有唯一的狀態值，並只透過 reducer 處理 dispatch 的 action 來改變狀態。
    每次狀態變更後依註冊順序通知所有 listener。

    Store 的所有可變欄位都只屬於該實例，多個 Store 可以同時獨立存在。
    """

    def __init__(self, reducer: ReducerFunction, preloaded_state: Optional[S] = None):
        """
        建立 Store 並立即分發一次初始化 action，讓每個 reducer 填入預設狀態。

        Args:
            reducer: 根據目前狀態與 action 計算下一個狀態的函數
            preloaded_state: 可選的初始狀態
        """
        if not callable(reducer):
            raise ConfigurationError(
                "Expected the reducer to be a function.", component="store", config_key="reducer"
            )

        self._current_reducer = reducer
        self._current_state = preloaded_state
        self._current_listeners: List[Listener] = []
        # 在被修改之前與 _current_listeners 指向同一個列表
        self._next_listeners = self._current_listeners
        self._is_dispatching = False

        # apply_middleware 會覆蓋公開的 dispatch，內部一律使用 _dispatch_core
        self.dispatch: Callable[[Any], Any] = self._dispatch_core

        self._dispatch_core(init_store())

    def _ensure_can_mutate_next_listeners(self) -> None:
        if self._next_listeners is self._current_listeners:
            self._next_listeners = list(self._current_listeners)

    def get_state(self) -> S:
        """
        讀取目前的狀態樹。

        Returns:
            目前的狀態。
        """
        if self._is_dispatching:
            raise InvalidOperationError(
                "You may not call store.get_state() while the reducer is executing. "
                "The reducer has already received the state as an argument. "
                "Pass it down from the top reducer instead of reading it from the store.",
                operation="get_state",
            )
        return self._current_state

    @property
    def state(self) -> S:
        """目前狀態的快照，等同於 get_state()。"""
        return self.get_state()

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """
        註冊一個 listener，每次 dispatch 完成後都會被呼叫。

        每次通知前都會對 listener 列表拍一份快照：通知過程中的訂閱與取消訂閱
        不影響正在進行的通知，但下一次 dispatch 會使用最新的列表。

        Args:
            listener: 無參數的回呼函數

        Returns:
            取消訂閱的函數，重複呼叫不會有任何效果。
        """
        if not callable(listener):
            raise ConfigurationError(
                "Expected listener to be a function.", component="store", config_key="listener"
            )

        if self._is_dispatching:
            raise InvalidOperationError(
                "You may not call store.subscribe() while the reducer is executing. "
                "If you would like to be notified after the store has been updated, "
                "subscribe from outside the reducer and call store.get_state() in the callback.",
                operation="subscribe",
            )

        is_subscribed = True

        self._ensure_can_mutate_next_listeners()
        self._next_listeners.append(listener)

        def unsubscribe() -> None:
            nonlocal is_subscribed
            if not is_subscribed:
                return

            if self._is_dispatching:
                raise InvalidOperationError(
                    "You may not unsubscribe from a store listener while the reducer is executing.",
                    operation="unsubscribe",
                )

            is_subscribed = False

            self._ensure_can_mutate_next_listeners()
            # 以同一性比對，不使用 __eq__
            index = next(i for i, registered in enumerate(self._next_listeners) if registered is listener)
            del self._next_listeners[index]

        return unsubscribe

    def _dispatch_core(self, action: Any) -> Any:
        """
        分發一個 action，觸發狀態更新並通知所有 listener。

        Args:
            action: dict、immutables.Map 或 Action，必須帶有已定義的 type

        Returns:
            傳入的 action。
        """
        if not is_plain_record(action):
            raise ValidationError(
                "Actions must be plain records (dict, immutables.Map or Action). "
                "Use custom middleware for other kinds of actions.",
                value=action,
                expected_type="plain record",
            )

        if get_action_type(action) is None:
            raise ValidationError(
                'Actions may not have an undefined "type" property. '
                "Have you misspelled a constant?",
                field="type",
                value=action,
            )

        if self._is_dispatching:
            raise InvalidOperationError("Reducers may not dispatch actions.", operation="dispatch")

        try:
            self._is_dispatching = True
            self._current_state = self._current_reducer(self._current_state, action)
        finally:
            self._is_dispatching = False

        listeners = self._current_listeners = self._next_listeners
        for listener in listeners:
            listener()

        return action

    def replace_reducer(self, next_reducer: ReducerFunction) -> None:
        """
        替換目前的 reducer，並重新分發初始化 action 讓新加入的子狀態填入預設值。

        Args:
            next_reducer: 新的 reducer
        """
        if not callable(next_reducer):
            raise ConfigurationError(
                "Expected the next_reducer to be a function.",
                component="store",
                config_key="next_reducer",
            )

        logger.debug("Replacing reducer with %r", next_reducer)
        self._current_reducer = next_reducer
        self._dispatch_core(init_store())

    def observable(self) -> Observable:
        """
        提供給響應式程式庫的最小 observable。

        訂閱時立即推送一次目前狀態，之後每次 dispatch 完成都會再推送一次；
        dispose 訂閱即取消對 Store 的訂閱。

        Returns:
            發送狀態的 Observable。
        """
        def subscribe(observer, scheduler=None):
            def observe_state() -> None:
                observer.on_next(self.get_state())

            observe_state()
            return Disposable(self.subscribe(observe_state))

        return reactivex.create(subscribe)

    def select(self, selector: Optional[Callable[[S], Any]] = None) -> Observable:
        """
        選擇狀態的一部分進行觀察。

        只有當選出的值以同一性比較發生變化時才會發送。

        Args:
            selector: 一個函數，接收整個狀態並返回希望觀察的部分。

        Returns:
            一個可觀察對象，發送選定的狀態部分。
        """
        source = self.observable()
        if selector is not None:
            source = source.pipe(ops.map(selector))
        return source.pipe(
            ops.distinct_until_changed(comparer=lambda previous, current: previous is current)
        )


def create_store(
    reducer: ReducerFunction,
    preloaded_state: Any = None,
    enhancer: Optional[StoreEnhancer] = None,
) -> Store:
    """
    創建一個新的 Store。

    只傳入兩個參數且第二個參數可呼叫時，會把它當成 enhancer。

    Args:
        reducer: 根 reducer，通常由 combine_reducers 產生
        preloaded_state: 可選的初始狀態
        enhancer: 可選的 Store 增強器，例如 apply_middleware(...) 的回傳值

    Returns:
        Store: 新創建的 Store 實例。
    """
    if callable(preloaded_state) and enhancer is None:
        enhancer = preloaded_state
        preloaded_state = None

    if enhancer is not None:
        if not callable(enhancer):
            raise ConfigurationError(
                "Expected the enhancer to be a function.", component="store", config_key="enhancer"
            )
        return enhancer(create_store)(reducer, preloaded_state)

    return Store(reducer, preloaded_state)


__all__ = ["Store", "create_store"]
