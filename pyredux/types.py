"""
PyRedux 的型別定義模組。

以具名的函式介面描述 reducer、listener、dispatch、中介軟體與 enhancer 的形狀，
讓各元件之間的契約在型別層面即可檢查。
"""

from typing import Any, Callable, Dict, Optional, Protocol, TypeVar, runtime_checkable

S = TypeVar("S")  # 狀態類型
P = TypeVar("P")  # 負載類型

# (state | None, action) -> state；回傳 None 一律視為違反契約
ReducerFunction = Callable[[Optional[S], Any], S]

# 無參數的訂閱回呼，回傳值會被忽略
Listener = Callable[[], Any]

# 取消訂閱的函式，重複呼叫不會有任何效果
Unsubscribe = Callable[[], None]

DispatchFunction = Callable[[Any], Any]
NextDispatch = DispatchFunction
GetState = Callable[[], Any]

# 中介軟體拿到 next 後回傳的新 dispatch 包裝器
MiddlewareFunction = Callable[[NextDispatch], DispatchFunction]

# thunk 以 (dispatch, get_state) 呼叫
ThunkFunction = Callable[[DispatchFunction, GetState], Any]

# BaseMiddleware.action_context 產出的上下文
ActionContext = Dict[str, Any]


@runtime_checkable
class MiddlewareAPI(Protocol):
    """中介軟體可使用的 Store 能力：讀取狀態與重新分發。"""

    def get_state(self) -> Any: ...

    def dispatch(self, action: Any) -> Any: ...


@runtime_checkable
class Middleware(Protocol):
    """中介軟體：({get_state, dispatch}) -> (next) -> dispatch。"""

    def __call__(self, api: MiddlewareAPI) -> MiddlewareFunction: ...


class StoreCreator(Protocol):
    """建立 Store 的基本函式，即 create_store 本身。"""

    def __call__(self, reducer: ReducerFunction, preloaded_state: Any = None, enhancer: Any = None) -> Any: ...


class EnhancedStoreCreator(Protocol):
    """經 enhancer 包裝後的 Store 建立函式。"""

    def __call__(self, reducer: ReducerFunction, preloaded_state: Any = None) -> Any: ...


# (store_creator) -> (reducer, preloaded_state) -> Store
StoreEnhancer = Callable[[StoreCreator], EnhancedStoreCreator]
