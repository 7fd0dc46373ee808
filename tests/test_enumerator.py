from __future__ import annotations

import csv
from datetime import datetime, timezone
from pathlib import Path

import pytest

from core.enumerator import SEARCH_ATTRIBUTES, EntryEnumerator
from core.errors import DirectoryQueryError
from core.models import AccountCategory, AttributeBag
from core.report import ReportAssembler

UTC = timezone.utc
FILETIME_EPOCH = datetime(1601, 1, 1, tzinfo=UTC)
NAMESPACE = "DC=example,DC=com"


def ticks(value: datetime) -> str:
    return str(int((value - FILETIME_EPOCH).total_seconds()) * 10_000_000)


ZED_DN = "CN=zed,OU=Staff,DC=example,DC=com"
ANNA_DN = "CN=anna,OU=Staff,DC=example,DC=com"
MIKE_DN = "CN=mike,OU=Staff,DC=example,DC=com"


def _three_user_directory(fake_client_factory, ldap_entry):
    users = [
        # refresh fails, cache has everything but lastLogonTimestamp
        ldap_entry(ZED_DN, "zed", whenCreated="20180301120000.0Z",
                   lastLogon=ticks(datetime(2020, 5, 1, tzinfo=UTC)),
                   pwdLastSet=ticks(datetime(2018, 3, 1, 12, tzinfo=UTC))),
        # only lastLogon in both tiers, no creation or pwdLastSet anywhere
        ldap_entry(ANNA_DN, "anna", lastLogon=ticks(datetime(2021, 1, 1, tzinfo=UTC))),
        # fully populated in both tiers
        ldap_entry(MIKE_DN, "mike", whenCreated="20150101000000.0Z",
                   lastLogonTimestamp=ticks(datetime(2022, 1, 1, tzinfo=UTC)),
                   lastLogon=ticks(datetime(2022, 1, 2, tzinfo=UTC)),
                   pwdLastSet=ticks(datetime(2015, 1, 1, tzinfo=UTC))),
    ]
    refreshed = {
        ANNA_DN: AttributeBag(last_logon=ticks(datetime(2021, 6, 1, tzinfo=UTC))),
        MIKE_DN: AttributeBag(
            when_created="20150101000000.0Z",
            last_logon_timestamp=ticks(datetime(2023, 2, 1, tzinfo=UTC)),
            last_logon=ticks(datetime(2023, 2, 2, tzinfo=UTC)),
            pwd_last_set=ticks(datetime(2016, 1, 1, tzinfo=UTC)),
        ),
    }
    return fake_client_factory(
        entries={AccountCategory.USERS.ldap_filter: users},
        refreshed=refreshed,
        failing_refresh={ZED_DN},
    )


def test_search_request_shape(fake_client_factory) -> None:
    client = fake_client_factory()
    list(EntryEnumerator(client).enumerate_accounts(NAMESPACE, AccountCategory.COMPUTERS))

    assert client.searches == [
        (NAMESPACE, AccountCategory.COMPUTERS.ldap_filter, tuple(SEARCH_ATTRIBUTES), 1000)
    ]


def test_category_filters_select_non_expiring_passwords() -> None:
    assert "1.2.840.113556.1.4.803:=65536" in AccountCategory.USERS.ldap_filter
    assert "(objectCategory=person)" in AccountCategory.USERS.ldap_filter
    assert "1.2.840.113556.1.4.803:=65536" in AccountCategory.COMPUTERS.ldap_filter
    assert "(objectCategory=computer)" in AccountCategory.COMPUTERS.ldap_filter


def test_records_yielded_in_result_order_with_refresh_per_entry(fake_client_factory, make_entry) -> None:
    client = _three_user_directory(fake_client_factory, make_entry)
    records = list(EntryEnumerator(client).enumerate_accounts(NAMESPACE, AccountCategory.USERS))

    assert [record.name for record in records] == ["zed", "anna", "mike"]
    assert client.refresh_calls == [ZED_DN, ANNA_DN, MIKE_DN]


def test_three_user_scenario_end_to_end(fake_client_factory, make_entry, tmp_path: Path) -> None:
    client = _three_user_directory(fake_client_factory, make_entry)
    enumerator = EntryEnumerator(client)

    report = ReportAssembler()
    report.add(enumerator.enumerate_accounts(NAMESPACE, AccountCategory.USERS))
    anna, mike, zed = report.sorted_records()

    assert (anna.name, mike.name, zed.name) == ("anna", "mike", "zed")

    # refresh failed: cache alone
    assert zed.creation == datetime(2018, 3, 1, 12, tzinfo=UTC)
    assert zed.last_logon == datetime(2020, 5, 1, tzinfo=UTC)
    assert zed.pwd_last_set == datetime(2018, 3, 1, 12, tzinfo=UTC)

    # only legacy lastLogon, refreshed tier first
    assert anna.creation is None
    assert anna.last_logon == datetime(2021, 6, 1, tzinfo=UTC)
    assert anna.pwd_last_set is None

    # fully populated, refreshed lastLogonTimestamp wins
    assert mike.creation == datetime(2015, 1, 1, tzinfo=UTC)
    assert mike.last_logon == datetime(2023, 2, 1, tzinfo=UTC)
    assert mike.pwd_last_set == datetime(2016, 1, 1, tzinfo=UTC)
    assert mike.distinguished_name == MIKE_DN

    assert enumerator.last_stats.total_matches == 3
    assert enumerator.last_stats.processed == 3
    assert enumerator.last_stats.refresh_failures == 1

    output = tmp_path / "report.csv"
    assert report.write(str(output)) == 3

    with output.open(newline="", encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))

    assert [row["Name"] for row in rows] == ["anna", "mike", "zed"]
    assert rows[0]["Creation"] == ""
    assert rows[0]["PwdLastSet"] == ""
    assert rows[1]["LastLogon"] == "2023-02-01T00:00:00Z"


def test_progress_reports_n_of_total(fake_client_factory, make_entry) -> None:
    client = _three_user_directory(fake_client_factory, make_entry)
    calls = []

    list(EntryEnumerator(client, progress=lambda n, total: calls.append((n, total)))
         .enumerate_accounts(NAMESPACE, AccountCategory.USERS))

    assert calls == [(1, 3), (2, 3), (3, 3)]


def test_progress_is_logged(fake_client_factory, make_entry, caplog) -> None:
    client = _three_user_directory(fake_client_factory, make_entry)
    caplog.set_level("INFO")

    list(EntryEnumerator(client).enumerate_accounts(NAMESPACE, AccountCategory.USERS))

    assert "3 of 3 processed" in caplog.text


def test_zero_matches_is_a_successful_empty_run(fake_client_factory) -> None:
    enumerator = EntryEnumerator(fake_client_factory())

    assert list(enumerator.enumerate_accounts(NAMESPACE, AccountCategory.USERS)) == []
    assert enumerator.last_stats.total_matches == 0
    assert enumerator.last_stats.completion_rate == 100.0


def test_query_error_yields_no_records(fake_client_factory, query_error) -> None:
    client = fake_client_factory(search_error=query_error)
    records = []

    with pytest.raises(DirectoryQueryError) as excinfo:
        for record in EntryEnumerator(client).enumerate_accounts(NAMESPACE, AccountCategory.USERS):
            records.append(record)

    assert records == []
    assert excinfo.value.category == "users"
    assert excinfo.value.hint == "check the base DN"
    assert client.refresh_calls == []


def test_unexpected_search_failure_becomes_query_error(fake_client_factory) -> None:
    client = fake_client_factory(search_error=ConnectionError("socket closed"))

    with pytest.raises(DirectoryQueryError) as excinfo:
        list(EntryEnumerator(client).enumerate_accounts(NAMESPACE, AccountCategory.COMPUTERS))

    assert excinfo.value.category == "computers"
    assert excinfo.value.hint == "check connectivity"
