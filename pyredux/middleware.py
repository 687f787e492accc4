"""
基於 PyRedux 的中介軟體定義模組。

此模組提供函數組合工具 compose、Store 增強器 apply_middleware，
以及幾個常用的中介軟體，用於在動作分發過程中插入日誌、thunk 與歷史記錄等邏輯。
"""

import contextlib
import datetime
import logging
from functools import reduce
from typing import Any, Callable, Generator, List, Tuple, cast

from .actions import get_action_type
from .immutable_utils import to_dict
from .types import (
    ActionContext, DispatchFunction, EnhancedStoreCreator, Middleware,
    MiddlewareAPI as MiddlewareAPIProtocol, MiddlewareFunction, NextDispatch,
    StoreCreator, StoreEnhancer, ThunkFunction,
)

logger = logging.getLogger(__name__)


def compose(*funcs: Callable[..., Any]) -> Callable[..., Any]:
    """
    由右至左組合單參數函數。

    compose(f, g, h)(x) 等同於 f(g(h(x)))；compose() 回傳恆等函數，
    compose(f) 直接回傳 f。

    Args:
        *funcs: 要組合的函數。

    Returns:
        組合後的函數。
    """
    if not funcs:
        return lambda arg: arg

    if len(funcs) == 1:
        return funcs[0]

    return reduce(lambda f, g: lambda *args, **kwargs: f(g(*args, **kwargs)), funcs)


class MiddlewareAPI:
    """
    傳給每個中介軟體的 Store 能力。

    dispatch 永遠轉發到目前綁定的 dispatch 函數，中介軟體因此可以在之後
    重新經過整條管線（包括自己）分發 action。
    """

    def __init__(self, get_state: Callable[[], Any], dispatch: DispatchFunction):
        self.get_state = get_state
        self._dispatch = dispatch

    def dispatch(self, action: Any) -> Any:
        return self._dispatch(action)


def apply_middleware(*middlewares: Middleware) -> StoreEnhancer:
    """
    創建一個 Store 增強器，所有 dispatch 的 action 會先經過中介軟體處理。

    第一個傳入的中介軟體位於最外層，去程時最先看到 action，回程時最後返回。

    Args:
        *middlewares: 所有要套用的中介軟體，簽名為 (api) -> (next) -> dispatch。

    Returns:
        Store 增強器。
    """
    def enhancer(create_store: StoreCreator) -> EnhancedStoreCreator:
        def create_enhanced_store(reducer, preloaded_state=None):
            store = create_store(reducer, preloaded_state)
            dispatch = store.dispatch

            middleware_api = MiddlewareAPI(
                get_state=store.get_state,
                dispatch=lambda action: dispatch(action),
            )
            chain = [middleware(middleware_api) for middleware in middlewares]
            dispatch = compose(*chain)(store.dispatch)

            store.dispatch = dispatch
            return store

        return create_enhanced_store

    return enhancer


# ———— Base Middleware ————
class BaseMiddleware:
    """
    基礎中介類，定義所有中介可能實現的鉤子。

    中介軟體可以介入動作分發的流程，在動作到達 Reducer 前、
    動作處理完成後或出現錯誤時執行自定義邏輯。
    """

    def __call__(self, api: MiddlewareAPIProtocol) -> MiddlewareFunction:
        """
        將鉤子接入 dispatch 管線。

        Args:
            api: 提供 get_state 與 dispatch 的 Store 能力

        Returns:
            配置函數，接收 next_dispatch 並返回新的 dispatch 函數
        """
        def middleware(next_dispatch: NextDispatch) -> DispatchFunction:
            def dispatch(action: Any) -> Any:
                with self.action_context(action, api.get_state()) as context:
                    context["result"] = next_dispatch(action)
                    context["next_state"] = api.get_state()
                    return context["result"]
            return dispatch
        return middleware

    def on_next(self, action: Any, prev_state: Any) -> None:
        """
        在 action 發送給 reducer 之前調用。

        Args:
            action: 正在 dispatch 的 Action
            prev_state: dispatch 之前的 store 狀態
        """
        pass

    def on_complete(self, next_state: Any, action: Any) -> None:
        """
        在 reducer 與所有 listener 處理完 action 之後調用。

        Args:
            next_state: dispatch 之後的最新 store 狀態
            action: 剛剛 dispatch 的 Action
        """
        pass

    def on_error(self, error: Exception, action: Any) -> None:
        """
        如果 dispatch 過程中拋出異常，則調用此鉤子。異常會繼續向上拋出。

        Args:
            error: 拋出的異常
            action: 導致異常的 Action
        """
        pass

    @contextlib.contextmanager
    def action_context(self, action: Any, prev_state: Any) -> Generator[ActionContext, None, None]:
        """
        以上下文管理器處理 action 分發的生命週期。

        子類可以覆蓋此方法，但應負責呼叫適當的 hook 方法。

        Args:
            action: 要分發的 Action
            prev_state: 分發前的狀態

        Yields:
            包含上下文數據的字典，可用於在上下文內部與外部之間傳遞數據
        """
        context: ActionContext = {
            "action": action,
            "prev_state": prev_state,
            "next_state": None,
            "result": None,
            "error": None,
        }

        self.on_next(action, prev_state)

        try:
            yield context
        except Exception as err:
            context["error"] = err
            self.on_error(err, action)
            raise

        self.on_complete(context["next_state"], action)


# ———— LoggerMiddleware ————
class LoggerMiddleware(BaseMiddleware):
    """
    日誌中介，記錄每個 action 發送前和發送後的 state。

    使用場景:
    - 偵錯時需要觀察每次 state 的變化。
    - 確保 action 的執行順序正確。
    """

    def __init__(self, logger: logging.Logger = logger, level: int = logging.INFO):
        self.logger = logger
        self.level = level
        # 巢狀 dispatch 各自保有開始時間
        self._started_at: List[datetime.datetime] = []

    def on_next(self, action: Any, prev_state: Any) -> None:
        started_at = datetime.datetime.now()
        self._started_at.append(started_at)
        action_type = get_action_type(action)
        self.logger.log(self.level, "[%s] dispatching %s", started_at, action_type)
        self.logger.log(self.level, "[%s] state before %s: %s", started_at, action_type, to_dict(prev_state))

    def on_complete(self, next_state: Any, action: Any) -> None:
        self.logger.log(
            self.level, "[%s] state after %s: %s", self._started_at.pop(), get_action_type(action), to_dict(next_state)
        )

    def on_error(self, error: Exception, action: Any) -> None:
        self._started_at.pop()
        self.logger.error("error in %s: %s", get_action_type(action), error)


# ———— ThunkMiddleware ————
class ThunkMiddleware:
    """
    支援 dispatch 函數 (thunk)，可以在 thunk 內多次 dispatch 或延後 dispatch。

    範例:
        ```python
        def fetch_user(user_id):
            def thunk(dispatch, get_state):
                dispatch(request_user(user_id))
                try:
                    user = api.fetch_user(user_id)
                    dispatch(request_user_success(user))
                except Exception as e:
                    dispatch(request_user_failure(str(e)))
            return thunk

        store.dispatch(fetch_user("user123"))
        ```
    """

    def __call__(self, api: MiddlewareAPIProtocol) -> MiddlewareFunction:
        def middleware(next_dispatch: NextDispatch) -> DispatchFunction:
            def dispatch(action: Any) -> Any:
                if callable(action):
                    return cast(ThunkFunction, action)(api.dispatch, api.get_state)
                return next_dispatch(action)
            return dispatch
        return middleware


# ———— DevToolsMiddleware ————
class DevToolsMiddleware(BaseMiddleware):
    """
    記錄每次 action 與 state 快照，支援回溯 state 的變化歷史。
    """

    def __init__(self) -> None:
        self.history: List[Tuple[Any, Any, Any]] = []
        self._pending: List[Any] = []

    def on_next(self, action: Any, prev_state: Any) -> None:
        self._pending.append(prev_state)

    def on_complete(self, next_state: Any, action: Any) -> None:
        self.history.append((self._pending.pop(), action, next_state))

    def on_error(self, error: Exception, action: Any) -> None:
        self._pending.pop()

    def get_history(self) -> List[Tuple[Any, Any, Any]]:
        """
        返回整個歷史快照列表。

        Returns:
            歷史快照列表，每項為 (prev_state, action, next_state)
        """
        return list(self.history)
