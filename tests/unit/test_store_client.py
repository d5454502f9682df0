from __future__ import annotations

import logging

import pytest
from fakes import FakeSdbClient, client_error, make_items, make_store, transport_error

from sdbsplits.errors import MalformedResponseError, RemoteRejectedError, TransportFailureError

EXPECTED_ITEMS = 250


def _is_red(item) -> bool:
    return any(attr["Name"] == "color" and attr["Value"] == "red" for attr in item["Attributes"])


class TestSingleCalls:
    def test_count_returns_page_count_and_token(self, fake_client: FakeSdbClient) -> None:
        store = make_store(fake_client)

        result = store.count(None, 100)

        assert result.ok
        assert result.count_value() == 100
        assert result.next_token == FakeSdbClient.token_for(100)
        assert fake_client.calls[0]["SelectExpression"] == "SELECT COUNT(*) FROM events LIMIT 100"

    def test_select_resumes_from_token(self, fake_client: FakeSdbClient) -> None:
        store = make_store(fake_client)

        result = store.select(None, 10, FakeSdbClient.token_for(40))

        assert [record.key for record in result.items][:2] == ["item-00040", "item-00041"]
        assert len(result.items) == 10
        assert fake_client.calls[0]["NextToken"] == FakeSdbClient.token_for(40)

    def test_first_call_sends_no_token(self, fake_client: FakeSdbClient) -> None:
        make_store(fake_client).select(None, 5)

        assert fake_client.calls[0]["NextToken"] is None

    def test_consistent_read_flag_is_forwarded(self, fake_client: FakeSdbClient) -> None:
        make_store(fake_client, {"simpledb.consistent.read": "true"}).count(None)

        assert fake_client.calls[0]["ConsistentRead"] is True

    def test_last_page_has_no_token(self, fake_client: FakeSdbClient) -> None:
        result = make_store(fake_client).select(None, 100, FakeSdbClient.token_for(200))

        assert len(result.items) == 50
        assert result.next_token is None

    def test_rejected_query_is_a_failed_result(self, fake_client: FakeSdbClient, caplog) -> None:
        fake_client.fail_on_call[1] = client_error()
        store = make_store(fake_client)

        with caplog.at_level(logging.ERROR):
            result = store.count("bad where")

        assert not result.ok
        assert result.items == []
        failure = result.failure
        assert failure.kind == "remote_rejected"
        assert failure.error_code == "InvalidQueryExpression"
        assert failure.status_code == 400
        assert failure.request_id == "req-0001"
        assert failure.query == "SELECT COUNT(*) FROM events WHERE bad where"
        assert "InvalidQueryExpression" in caplog.text
        assert "req-0001" in caplog.text

    def test_transport_failure_is_a_failed_result(self, fake_client: FakeSdbClient, caplog) -> None:
        fake_client.fail_on_call[1] = transport_error()

        with caplog.at_level(logging.ERROR):
            result = make_store(fake_client).select(None, 10)

        assert result.failure.kind == "transport_failure"
        assert "Could not reach SimpleDB" in caplog.text
        with pytest.raises(TransportFailureError):
            result.raise_for_failure()


class TestItemCounts:
    def test_total_item_count_uses_domain_metadata(self, fake_client: FakeSdbClient) -> None:
        assert make_store(fake_client).total_item_count() == EXPECTED_ITEMS
        assert fake_client.metadata_calls == 1
        assert fake_client.calls == []

    def test_total_item_count_raises_when_rejected(self) -> None:
        fake = FakeSdbClient(make_items(3), metadata_error=client_error("NoSuchDomain", status=400))

        with pytest.raises(RemoteRejectedError, match="NoSuchDomain"):
            make_store(fake).total_item_count()

    def test_total_item_count_requires_item_count(self, fake_client: FakeSdbClient, monkeypatch) -> None:
        monkeypatch.setattr(fake_client, "domain_metadata", lambda DomainName: {})

        with pytest.raises(MalformedResponseError, match="ItemCount"):
            make_store(fake_client).total_item_count()

    def test_total_count_sums_every_page(self) -> None:
        fake = FakeSdbClient(make_items(250), count_page_cap=60)

        assert make_store(fake).total_count(None) == 250
        assert fake.count_calls() == 5

    def test_total_count_single_page(self, fake_client: FakeSdbClient) -> None:
        assert make_store(fake_client).total_count(None) == EXPECTED_ITEMS
        assert fake_client.count_calls() == 1

    def test_total_count_applies_where_clause(self) -> None:
        fake = FakeSdbClient(make_items(250), where_filter=_is_red, count_page_cap=30)

        assert make_store(fake).total_count("color = 'red'") == 84

    def test_total_count_raises_on_failed_page(self) -> None:
        fake = FakeSdbClient(make_items(250), count_page_cap=60, fail_on_call={3: transport_error()})

        with pytest.raises(TransportFailureError):
            make_store(fake).total_count(None)


class TestItemPaging:
    def test_get_items_returns_limit_records_from_token(self, fake_client: FakeSdbClient) -> None:
        records = make_store(fake_client).get_items(None, FakeSdbClient.token_for(100), 100)

        assert [record.key for record in records] == [f"item-{i:05d}" for i in range(100, 200)]
        assert fake_client.calls[0]["SelectExpression"] == "SELECT * FROM events LIMIT 2500"

    def test_get_items_stops_at_end_of_domain(self, fake_client: FakeSdbClient) -> None:
        records = make_store(fake_client).get_items(None, FakeSdbClient.token_for(200), 100)

        assert len(records) == 50

    def test_get_items_spans_several_pages(self) -> None:
        fake = FakeSdbClient(make_items(6000))

        records = make_store(fake).get_items(None, None, 5200)

        assert len(records) == 5200
        assert records[-1].key == "item-05199"
        assert fake.select_calls() == 3

    def test_iter_items_is_lazy(self) -> None:
        fake = FakeSdbClient(make_items(6000))

        first = next(make_store(fake).iter_items(None, None, 6000))

        assert first.key == "item-00000"
        assert fake.select_calls() == 1

    def test_zero_limit_issues_no_query(self, fake_client: FakeSdbClient) -> None:
        assert make_store(fake_client).get_items(None, None, 0) == []
        assert fake_client.calls == []

    def test_failed_page_raises(self) -> None:
        fake = FakeSdbClient(make_items(6000), fail_on_call={2: client_error("ServiceUnavailable", status=503)})

        with pytest.raises(RemoteRejectedError, match="ServiceUnavailable"):
            make_store(fake).get_items(None, None, 6000)

    def test_unique_values_counts_every_page(self, fake_client: FakeSdbClient) -> None:
        occurrences = make_store(fake_client).unique_values("color")

        assert occurrences == {"red": 84, "green": 83, "blue": 83}
        assert fake_client.select_calls() == 3

    def test_unique_values_skips_items_without_field(self, fake_client: FakeSdbClient) -> None:
        assert make_store(fake_client).unique_values("missing") == {}

    def test_unique_values_with_where_clause(self) -> None:
        fake = FakeSdbClient(make_items(250), where_filter=_is_red)

        occurrences = make_store(fake).unique_values("color", "color = 'red'")

        assert occurrences == {"red": 84}


class TestLifecycle:
    def test_close_is_idempotent(self, fake_client: FakeSdbClient) -> None:
        store = make_store(fake_client)

        store.close()
        store.close()

        assert store.closed
        assert fake_client.close_calls == 1

    def test_context_manager_closes_client(self, fake_client: FakeSdbClient) -> None:
        with make_store(fake_client) as store:
            store.count(None)

        assert fake_client.close_calls == 1

    def test_where_clause_comes_from_config(self, fake_client: FakeSdbClient) -> None:
        store = make_store(fake_client, {"simpledb.wherequery": "color = 'red'"})

        assert store.where_clause == "color = 'red'"
        assert store.domain == "events"
