"""Fakes for the services tests: a requests-style session that never hits the network."""

import pytest


class FakeResponse:
    def __init__(self, status_code=200, payload=None, json_error=None):
        self.status_code = status_code
        self._payload = payload
        self._json_error = json_error

    def json(self):
        if self._json_error is not None:
            raise self._json_error
        return self._payload


class FakeSession:
    """Records GET calls; answers from a url -> response map or raises."""

    def __init__(self, responses=None, error=None):
        self.responses = responses or {}
        self.error = error
        self.headers: dict[str, str] = {}
        self.calls: list[tuple[str, float]] = []
        self.closed = False

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.responses.get(url, FakeResponse(404, None))

    def close(self):
        self.closed = True


NAGER = "https://date.nager.at/api/v3"

CA_2025 = [
    {
        "date": "2025-07-01",
        "localName": "Fête du Canada",
        "name": "Canada Day",
        "countryCode": "CA",
        "global": True,
        "counties": None,
        "types": ["Public"],
    },
    {
        "date": "2025-08-04",
        "localName": "British Columbia Day",
        "name": "British Columbia Day",
        "countryCode": "CA",
        "global": False,
        "counties": ["CA-BC"],
        "types": ["Public"],
    },
    {
        "date": "2025-08-04",
        "localName": "Heritage Day",
        "name": "Heritage Day",
        "countryCode": "CA",
        "global": False,
        "counties": ["CA-AB"],
        "types": ["Public"],
    },
    {
        "date": "2025-06-24",
        "localName": "",
        "name": "Saint-Jean-Baptiste Day",
        "countryCode": "CA",
        "global": False,
        "counties": ["CA-QC"],
        "types": ["Public"],
    },
    {
        "date": "2025-04-21",
        "localName": "Easter Monday",
        "name": "Easter Monday",
        "countryCode": "CA",
        "global": True,
        "counties": None,
        "types": ["Public"],
    },
]


@pytest.fixture
def nager_session():
    """Session answering CA/2025 with CA_2025 and everything else with 404."""
    return FakeSession(
        {f"{NAGER}/PublicHolidays/2025/CA": FakeResponse(200, CA_2025)}
    )
