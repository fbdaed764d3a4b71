from datetime import timedelta
from decimal import Decimal

import pytest

from warehouse.services.session_service import SessionNotFound, SessionRegistry
from warehouse.services.stock_ledger import StockEntry


def test_sessions_do_not_share_state():
    registry = SessionRegistry(history_limit=3)
    a = registry.create()
    b = registry.create()

    a.cart.add_item(StockEntry(id=1, name="Chair", unit_price=Decimal("10"), available_quantity=5))

    assert a.token != b.token
    assert len(a.cart) == 1
    assert b.cart.is_empty()
    assert a.history is not b.history
    assert a.history.limit == 3


def test_get_and_close():
    registry = SessionRegistry()
    session = registry.create()

    assert registry.get(session.token) is session
    assert registry.close(session.token)
    assert not registry.close(session.token)
    with pytest.raises(SessionNotFound):
        registry.get(session.token)


@pytest.mark.parametrize("token", [None, "", "unknown"])
def test_unknown_token(token):
    with pytest.raises(SessionNotFound):
        SessionRegistry().get(token)


def test_idle_sessions_expire():
    registry = SessionRegistry(idle_timeout=timedelta(minutes=5))
    stale = registry.create()
    fresh = registry.create()
    stale.last_seen_at -= timedelta(minutes=10)

    assert registry.purge_expired() == 1
    assert len(registry) == 1
    assert registry.get(fresh.token) is fresh
    with pytest.raises(SessionNotFound):
        registry.get(stale.token)


def test_expired_session_rejected_on_get():
    registry = SessionRegistry(idle_timeout=timedelta(minutes=5))
    session = registry.create()
    session.last_seen_at -= timedelta(hours=1)

    with pytest.raises(SessionNotFound):
        registry.get(session.token)
    assert len(registry) == 0
