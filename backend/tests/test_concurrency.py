import pytest
from sqlalchemy.exc import OperationalError

from warehouse.services.concurrency import run_with_retry


def test_retries_then_succeeds(app):
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) < 2:
            raise OperationalError("UPDATE products", {}, Exception("database is locked"))
        return "saved"

    with app.app_context():
        assert run_with_retry(flaky, backoff_base=0) == "saved"
    assert len(calls) == 2


def test_gives_up_after_last_attempt(app):
    def locked():
        raise OperationalError("UPDATE products", {}, Exception("database is locked"))

    with app.app_context():
        with pytest.raises(OperationalError):
            run_with_retry(locked, attempts=2, backoff_base=0)


@pytest.mark.parametrize("attempts", [0, -1])
def test_requires_at_least_one_attempt(app, attempts):
    with pytest.raises(ValueError):
        run_with_retry(lambda: "saved", attempts=attempts)
