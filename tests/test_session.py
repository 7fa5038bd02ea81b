import pytest

from pixel_crawler.persistence.storage import MemoryStorage
from pixel_crawler.session import GameSession
from pixel_crawler.state import Phase


@pytest.fixture
def port():
    return MemoryStorage()


@pytest.fixture
def make_session(port, clock):
    def _make(seed=1):
        return GameSession(port=port, seed=seed, clock=clock, monotonic=clock)

    return _make


def test_fresh_open_generates_floor_one(make_session):
    session = make_session()
    engine = session.open()
    assert session.is_open
    assert engine.state.floor_level == 1
    assert engine.phase is Phase.NOT_STARTED
    assert session.statistics.record.sessions_count == 1


def test_engine_requires_open_session(make_session):
    with pytest.raises(RuntimeError):
        make_session().engine


def test_close_persists_final_state(make_session):
    session = make_session()
    session.open().start()
    session.engine.merge(currency=3)
    session.close()
    assert not session.is_open

    reopened = make_session(seed=99)
    engine = reopened.open()
    assert engine.state.currency == 3
    assert engine.phase is Phase.STARTED
    assert reopened.statistics.record.sessions_count == 2


def test_new_game_discards_save(make_session):
    session = make_session()
    session.open().start()
    session.engine.merge(currency=3)
    session.close()

    fresh = make_session()
    engine = fresh.open(new_game=True)
    assert engine.state.currency == 0
    assert engine.phase is Phase.NOT_STARTED


def test_corrupt_save_falls_back_to_fresh_floor(make_session, port):
    port.write("game-state", "garbage")
    engine = make_session().open()
    assert engine.state.floor_level == 1
    assert "game-state" not in port


def test_last_write_wins_across_sessions(make_session, clock):
    first = make_session(seed=1)
    first.open().start()
    second = make_session(seed=2)
    second.open()
    assert second.engine.state == first.engine.state

    clock.advance(5)
    first.engine.merge(currency=7)
    assert first.saver.flush()

    assert not first.check_external_change()
    assert second.check_external_change()
    assert second.engine.state.currency == 7
    assert not second.check_external_change()


def test_tick_polls_for_external_changes(make_session, clock):
    first = make_session()
    first.open().start()
    second = make_session()
    second.open()
    # nearby doors may swing open on the first frame and trigger a save
    second.tick(1 / 60)

    clock.advance(5)
    first.engine.merge(currency=11)
    first.saver.flush()

    for _ in range(61):
        second.tick(1 / 60)
    assert second.engine.state.currency == 11


def test_ticks_write_debounced_saves(make_session, clock, port):
    session = make_session()
    engine = session.open()
    engine.start()
    writes = port.writes
    engine.merge(currency=2)
    clock.advance(3)
    session.tick(1 / 60)
    assert port.writes > writes
    assert session.store.load().currency == 2


def test_context_manager_closes(make_session):
    with make_session() as session:
        session.engine.start()
        session.engine.merge(currency=4)
    assert not session.is_open
    assert session.store.load().currency == 4
