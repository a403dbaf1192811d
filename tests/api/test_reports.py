import socket
from datetime import date
from unittest.mock import MagicMock, patch

import httplib2
import pytest
from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError

from api.google.reports import UsageReportClient
from quota.errors import UsageReportError
from quota.fetcher import QUOTA_PARAMETERS

REPORT_DATE = date(2024, 3, 9)


@pytest.fixture(name="service")
def service_fixture():
    service = MagicMock()
    with patch("api.google.reports.build", return_value=service) as build:
        service.build = build
        yield service


@pytest.fixture(name="client")
def client_fixture(service):
    return UsageReportClient(MagicMock(), timeout=3.0, parameters=QUOTA_PARAMETERS)


def execute_mock(service):
    return service.customerUsageReports.return_value.get.return_value.execute


def test_builds_reports_service(service, client):
    service.build.assert_called_once_with(
        "admin", "reports_v1", credentials=client.credentials, cache_discovery=False
    )


def test_requests_date_and_parameters(service, client):
    execute_mock(service).return_value = {"usageReports": []}

    response = client.get_customer_usage(REPORT_DATE)

    assert response == {"usageReports": []}
    service.customerUsageReports.return_value.get.assert_called_once_with(
        date="2024-03-09",
        parameters="accounts:total_quota_in_mb,accounts:used_quota_in_mb",
    )


def test_each_call_uses_its_own_http_with_timeout(service, client):
    execute_mock(service).return_value = {}

    client.get_customer_usage(REPORT_DATE)
    client.get_customer_usage(REPORT_DATE)

    first, second = [call.kwargs["http"] for call in execute_mock(service).call_args_list]
    assert first is not second
    assert first.http.timeout == 3.0


def test_without_parameter_filter(service):
    client = UsageReportClient(MagicMock())
    execute_mock(service).return_value = {}

    client.get_customer_usage(REPORT_DATE)

    service.customerUsageReports.return_value.get.assert_called_once_with(date="2024-03-09")


def test_http_error_is_converted(service, client):
    execute_mock(service).side_effect = HttpError(
        httplib2.Response({"status": 400}),
        b'{"error": {"code": 400, "message": "Data for dates later than 2024-03-07 is not yet available."}}',
    )

    with pytest.raises(UsageReportError) as excinfo:
        client.get_customer_usage(REPORT_DATE)

    assert excinfo.value.status == 400
    assert excinfo.value.report_date == REPORT_DATE


@pytest.mark.parametrize(
    "error",
    [RefreshError("token revoked"), socket.timeout("timed out"), httplib2.ServerNotFoundError("dns")],
)
def test_transport_errors_are_converted(service, client, error):
    execute_mock(service).side_effect = error

    with pytest.raises(UsageReportError) as excinfo:
        client.get_customer_usage(REPORT_DATE)

    assert excinfo.value.status is None
    assert excinfo.value.__cause__ is error
