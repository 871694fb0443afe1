"""Unit tests for license state detection."""

from unittest.mock import AsyncMock, patch

import pytest

from lm_bootstrap.bootstrap import ConnectionTarget, Credential, LicenseDetector, LicenseState
from lm_bootstrap.client import LicenseInfo
from lm_bootstrap.errors import TransportError

TARGET = ConnectionTarget("10.0.1.109")


class TestLicenseDetector:
    """Tests for LicenseDetector."""

    def test_default_config(self):
        """A single attempt unless configured otherwise."""
        detector = LicenseDetector(client=None)
        assert detector.max_attempts == 1
        assert detector.interval_seconds == 2.0

    def test_attempts_floor(self):
        assert LicenseDetector(client=None, max_attempts=0).max_attempts == 1

    @pytest.mark.asyncio
    async def test_detect_unlicensed(self, fleet, client):
        fleet.add_appliance("10.0.1.109")
        detector = LicenseDetector(client)
        assert await detector.detect(TARGET) == LicenseState.UNLICENSED
        assert detector.last_info.status == "Unlicensed"

    @pytest.mark.asyncio
    async def test_detect_licensed(self, fleet, client):
        fleet.add_appliance("10.0.1.109", licensed=True)
        state = await LicenseDetector(client).detect(TARGET, Credential("bal", "1fourall"))
        assert state == LicenseState.LICENSED

    @pytest.mark.asyncio
    async def test_error_is_not_unlicensed(self, fleet, client):
        """A failed query propagates instead of being read as unlicensed."""
        fleet.add_appliance("10.0.1.109", fail_commands={"licenseinfo": 500})
        detector = LicenseDetector(client)
        with pytest.raises(TransportError):
            await detector.detect(TARGET)
        assert detector.last_info is None

    @pytest.mark.asyncio
    async def test_retries_retryable_errors(self):
        """Retryable errors are retried up to max_attempts."""
        client = AsyncMock()
        client.query_license.side_effect = [
            TransportError(message="refused", retryable=True),
            LicenseInfo(status="Permanent"),
        ]
        detector = LicenseDetector(client, max_attempts=3, interval_seconds=0.5)

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            state = await detector.detect(TARGET)

        assert state == LicenseState.LICENSED
        assert client.query_license.await_count == 2
        mock_sleep.assert_awaited_once_with(0.5)

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        client = AsyncMock()
        client.query_license.side_effect = TransportError(message="refused", retryable=True)
        detector = LicenseDetector(client, max_attempts=2, interval_seconds=0)

        with patch("asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(TransportError, match="refused"):
                await detector.detect(TARGET)

        assert client.query_license.await_count == 2

    @pytest.mark.asyncio
    async def test_no_retry_on_auth_failure(self):
        client = AsyncMock()
        client.query_license.side_effect = TransportError(message="denied", retryable=False)
        detector = LicenseDetector(client, max_attempts=5)

        with pytest.raises(TransportError):
            await detector.detect(TARGET)

        assert client.query_license.await_count == 1

    @pytest.mark.asyncio
    async def test_licensed_refuses_wrong_credential(self, fleet, client):
        """Once licensed, the appliance only answers with the current password."""
        fleet.add_appliance("10.0.1.109", licensed=True, password="admin")
        with pytest.raises(TransportError) as exc_info:
            await LicenseDetector(client).detect(TARGET, Credential("bal", "1fourall"))
        assert exc_info.value.auth_failed is True
