"""combine_reducers 與 reducer 建構工具測試。"""

import logging
import traceback

import pytest
from immutables import Map

from pyredux import (
    Action,
    ActionTypes,
    ConfigurationError,
    combine_reducers,
    create_action,
    create_reducer,
    create_store,
    get_action_type,
    on,
)

REDUCERS_LOGGER = "pyredux.reducers"


def counter(state=None, action=None):
    if state is None:
        state = 0
    if get_action_type(action) == "INCREMENT":
        return state + 1
    return state


def stack(state=None, action=None):
    if state is None:
        state = ()
    if get_action_type(action) == "PUSH":
        return state + (action.payload,)
    return state


@pytest.fixture
def development(monkeypatch):
    monkeypatch.delenv("PYREDUX_ENV", raising=False)


@pytest.fixture
def production(monkeypatch):
    monkeypatch.setenv("PYREDUX_ENV", "production")


class TestCombineReducers:
    """組合後 reducer 的行為測試."""

    def test_builds_state_from_each_key(self):
        """每個鍵都由對應的 reducer 計算."""
        reducer = combine_reducers({"counter": counter, "stack": stack})
        state = reducer(None, Action(type=ActionTypes.INIT))
        assert state == {"counter": 0, "stack": ()}

        state = reducer(state, Action(type="INCREMENT"))
        state = reducer(state, Action(type="PUSH", payload="a"))
        assert state == {"counter": 1, "stack": ("a",)}

    def test_keeps_insertion_order(self):
        """結果依傳入順序排列."""
        reducer = combine_reducers({"b": counter, "a": stack})
        assert list(reducer(None, Action(type="ANY"))) == ["b", "a"]

    def test_unchanged_state_keeps_reference(self):
        """沒有任何子狀態改變時回傳同一個物件."""
        reducer = combine_reducers({"a": lambda s=None, _=None: 0 if s is None else s})
        state = {"a": 1}
        assert reducer(state, Action(type="ANYTHING")) is state

    def test_changed_state_is_new_object(self):
        """子狀態改變時建立新的狀態樹，未改變的子狀態沿用原物件."""
        reducer = combine_reducers({"counter": counter, "stack": stack})
        state = reducer(None, Action(type=ActionTypes.INIT))
        next_state = reducer(state, Action(type="INCREMENT"))
        assert next_state is not state
        assert next_state["stack"] is state["stack"]

    def test_nested_mutation_is_not_detected(self):
        """只比較同一性，子屬性原地修改不視為變更."""
        def items(state=None, action=None):
            if state is None:
                state = []
            if get_action_type(action) == "APPEND":
                state.append(action.payload)
            return state

        reducer = combine_reducers({"items": items})
        state = reducer(None, Action(type=ActionTypes.INIT))
        assert reducer(state, Action(type="APPEND", payload=1)) is state
        assert state["items"] == [1]

    def test_map_state_stays_map(self):
        """輸入為 immutables.Map 時結果也是 Map."""
        reducer = combine_reducers({"counter": counter})
        state = Map({"counter": 0})
        next_state = reducer(state, Action(type="INCREMENT"))
        assert isinstance(next_state, Map)
        assert next_state["counter"] == 1

    def test_drops_non_callable_entries(self, development):
        """非可呼叫的項目會被忽略."""
        reducer = combine_reducers({"counter": counter, "missing": None, "bogus": 42})
        assert reducer(None, Action(type="ANY")) == {"counter": 0}

    def test_reducer_returning_none_raises(self):
        """reducer 對某個 action 回傳 None 時拋出 ConfigurationError."""
        def picky(state=None, action=None):
            if get_action_type(action) == "FORGET":
                return None
            return state if state is not None else 0

        reducer = combine_reducers({"picky": picky})
        with pytest.raises(ConfigurationError) as exc_info:
            reducer({"picky": 0}, Action(type="FORGET"))
        assert '"picky"' in str(exc_info.value)
        assert '"FORGET"' in str(exc_info.value)
        assert exc_info.value.config_key == "picky"

    def test_works_as_store_reducer(self):
        """組合後的 reducer 可以直接用於 Store."""
        store = create_store(combine_reducers({"counter": counter, "stack": stack}))
        store.dispatch(Action(type="PUSH", payload="x"))
        assert store.get_state() == {"counter": 0, "stack": ("x",)}

    def test_preloaded_state_is_respected(self):
        """預載狀態中的子狀態會傳給對應的 reducer."""
        store = create_store(combine_reducers({"counter": counter}), {"counter": 7})
        store.dispatch(Action(type="INCREMENT"))
        assert store.get_state() == {"counter": 8}


class TestSanityCheck:
    """組合時健全性檢查與延遲拋出測試."""

    def test_init_returning_none_fails_every_call(self):
        """初始化回傳 None 時，每次呼叫都拋出同一個錯誤."""
        def bad(state=None, action=None):
            return state

        reducer = combine_reducers({"counter": counter, "bad": bad})

        with pytest.raises(ConfigurationError) as first:
            reducer(None, Action(type="ANY"))
        with pytest.raises(ConfigurationError) as second:
            reducer({"counter": 0, "bad": 1}, Action(type="OTHER"))

        assert first.value is second.value
        assert '"bad"' in str(first.value)
        assert "initialization" in str(first.value)

    def test_unknown_action_returning_none_fails(self):
        """未知 action 回傳 None 時拋出錯誤."""
        def only_init(state=None, action=None):
            if get_action_type(action) == ActionTypes.INIT:
                return 0
            return None

        reducer = combine_reducers({"only_init": only_init})
        with pytest.raises(ConfigurationError) as exc_info:
            reducer(None, Action(type=ActionTypes.INIT))
        assert "probed with a random type" in str(exc_info.value)

    def test_probe_uses_unguessable_type(self):
        """探測用的 action 類型不是初始化類型，且每次組合都不同."""
        seen = []

        def recording(state=None, action=None):
            seen.append(get_action_type(action))
            return state if state is not None else 0

        combine_reducers({"r": recording})
        combine_reducers({"r": recording})

        assert seen[0] == ActionTypes.INIT
        assert seen[1].startswith(ActionTypes.PROBE_UNKNOWN_ACTION_PREFIX)
        assert seen[1] != ActionTypes.INIT
        assert seen[1] != seen[3]

    def test_reraise_does_not_grow_traceback(self):
        """重複呼叫時 traceback 不會累積."""
        reducer = combine_reducers({"bad": lambda state=None, action=None: None})
        depths = []
        for _ in range(50):
            with pytest.raises(ConfigurationError) as exc_info:
                reducer(None, Action(type="ANY"))
            depths.append(len(traceback.extract_tb(exc_info.value.__traceback__)))
        assert len(set(depths)) == 1

    def test_raising_reducer_is_deferred(self):
        """初始化時拋錯的 reducer 不影響組合本身，之後每次呼叫都拋出同一個錯誤."""
        def explodes(state=None, action=None):
            if get_action_type(action) == ActionTypes.INIT:
                raise RuntimeError("cannot initialize")
            return state

        reducer = combine_reducers({"explodes": explodes})

        with pytest.raises(RuntimeError) as first:
            reducer(None, Action(type="ANY"))
        with pytest.raises(RuntimeError) as second:
            reducer({"explodes": 1}, Action(type="OTHER"))

        assert first.value is second.value
        assert str(first.value) == "cannot initialize"

    def test_only_first_failure_is_kept(self):
        """只保留第一個檢查失敗."""
        reducer = combine_reducers({
            "first": lambda state=None, action=None: None,
            "second": lambda state=None, action=None: None,
        })
        with pytest.raises(ConfigurationError) as exc_info:
            reducer(None, Action(type="ANY"))
        assert exc_info.value.config_key == "first"

    def test_store_creation_surfaces_sanity_error(self):
        """Store 建立時的初始化 dispatch 就會拋出檢查錯誤."""
        reducer = combine_reducers({"bad": lambda state=None, action=None: None})
        with pytest.raises(ConfigurationError):
            create_store(reducer)

    def test_corrected_map_clears_failure(self):
        """重新以正確的 reducer 組合即可恢復."""
        broken = combine_reducers({"bad": lambda state=None, action=None: None})
        with pytest.raises(ConfigurationError):
            broken(None, Action(type="ANY"))

        fixed = combine_reducers({"bad": counter})
        assert fixed(None, Action(type="ANY")) == {"bad": 0}


class TestShapeWarnings:
    """非 production 模式下的形狀提示測試."""

    def test_warns_missing_reducer(self, development, caplog):
        """值為 None 的鍵會被提示."""
        with caplog.at_level(logging.WARNING, logger=REDUCERS_LOGGER):
            combine_reducers({"counter": counter, "missing": None})
        assert 'No reducer provided for key "missing"' in caplog.text

    def test_warns_no_reducers(self, development, caplog):
        """沒有任何 reducer 時提示."""
        reducer = combine_reducers({})
        with caplog.at_level(logging.WARNING, logger=REDUCERS_LOGGER):
            assert reducer(None, Action(type="ANY")) == {}
        assert "does not have a valid reducer" in caplog.text

    def test_warns_unexpected_state_type(self, development, caplog):
        """狀態不是映射時提示."""
        reducer = combine_reducers({"counter": counter})
        with caplog.at_level(logging.WARNING, logger=REDUCERS_LOGGER):
            reducer([1, 2], Action(type="ANY"))
        assert 'unexpected type of "list"' in caplog.text

    def test_warns_unexpected_key_once(self, development, caplog):
        """未知的鍵在同一個組合 reducer 中只提示一次."""
        reducer = combine_reducers({"counter": counter})
        with caplog.at_level(logging.WARNING, logger=REDUCERS_LOGGER):
            state = reducer({"counter": 0, "extra": 1}, Action(type="ANY"))
            reducer({"counter": 0, "extra": 1}, Action(type="ANY"))
        messages = [r.getMessage() for r in caplog.records if "Unexpected key" in r.getMessage()]
        assert len(messages) == 1
        assert '"extra"' in messages[0]
        assert "previous state received by the reducer" in messages[0]
        assert state == {"counter": 0, "extra": 1}

    def test_warning_mentions_preloaded_state_on_init(self, development, caplog):
        """初始化時的提示指向 preloaded_state."""
        reducer = combine_reducers({"counter": counter})
        with caplog.at_level(logging.WARNING, logger=REDUCERS_LOGGER):
            create_store(reducer, {"counter": 0, "stale": True})
        assert "preloaded_state argument passed to create_store" in caplog.text

    def test_each_instance_has_own_seen_set(self, development, caplog):
        """不同的組合 reducer 各自記錄已提示的鍵."""
        first = combine_reducers({"counter": counter})
        second = combine_reducers({"counter": counter})
        with caplog.at_level(logging.WARNING, logger=REDUCERS_LOGGER):
            first({"counter": 0, "extra": 1}, Action(type="ANY"))
            second({"counter": 0, "extra": 1}, Action(type="ANY"))
        assert caplog.text.count('Unexpected key "extra"') == 2

    def test_production_is_silent(self, production, caplog):
        """production 模式不輸出提示，結果不變."""
        with caplog.at_level(logging.WARNING, logger=REDUCERS_LOGGER):
            reducer = combine_reducers({"counter": counter, "missing": None})
            state = reducer({"counter": 0, "extra": 1}, Action(type="INCREMENT"))
        assert caplog.records == []
        assert state == {"counter": 1}


increment = create_action("[Counter] Increment")
add = create_action("[Counter] Add", lambda amount: amount)


class TestCreateReducer:
    """create_reducer 與 on 測試."""

    def test_handlers_by_action_creator_and_type(self):
        """可以用 action 創建器或類型字串註冊處理器."""
        reducer = create_reducer(
            0,
            on(increment, lambda state, action: state + 1),
            on("[Counter] Add", lambda state, action: state + action.payload),
        )
        state = reducer(None, Action(type=ActionTypes.INIT))
        state = reducer(state, increment())
        state = reducer(state, add(5))
        assert state == 6

    def test_tuple_handlers(self):
        """也接受 (類型, 處理器) 元組."""
        reducer = create_reducer(0, ("[Counter] Add", lambda state, action: state + action.payload))
        assert reducer(1, add(2)) == 3

    def test_unknown_action_returns_state(self):
        """未知 action 回傳原狀態，且通過健全性檢查."""
        reducer = create_reducer({"count": 0})
        state = {"count": 3}
        assert reducer(state, Action(type="UNKNOWN")) is state
        assert reducer(None, Action(type=ActionTypes.probe_unknown_action())) == {"count": 0}
        combined = combine_reducers({"counter": reducer})
        assert combined(None, Action(type="ANY")) == {"counter": {"count": 0}}

    def test_attributes(self):
        """reducer 保留初始狀態與處理器映射."""
        reducer = create_reducer(0, on(increment, lambda state, action: state + 1))
        assert reducer.initial_state == 0
        assert list(reducer.handlers) == ["[Counter] Increment"]
