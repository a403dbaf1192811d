import pytest

from quota.fetcher import QuotaFetcher
from tests.stubs import NOW, StubReportSource, usage_response


@pytest.fixture(name="make_fetcher")
def make_fetcher_fixture():
    def _make(outcomes, **kwargs):
        source = StubReportSource(outcomes)
        kwargs.setdefault("clock", lambda: NOW)
        return QuotaFetcher(source, **kwargs), source

    return _make


@pytest.fixture(name="healthy_fetcher")
def healthy_fetcher_fixture(make_fetcher):
    fetcher, _ = make_fetcher([usage_response(1048576, 524288)])
    return fetcher


@pytest.fixture(name="failing_fetcher")
def failing_fetcher_fixture(make_fetcher):
    fetcher, _ = make_fetcher([None])
    return fetcher
