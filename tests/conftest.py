"""Pytest configuration and common fixtures."""

import os
import sys
import warnings
from pathlib import Path

from dotenv import load_dotenv

# Try to load test-specific environment file if it exists
test_env_file = Path(__file__).parent / ".env.test"
if test_env_file.exists():
    load_dotenv(test_env_file)

# Bootstrap variables needed before any pikup import; per-test isolation is
# provided by the setup_test_environment fixture.
os.environ.setdefault("ENV", "testing")

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from pikup.core.config import reset_settings
from pikup.core.enums import DeliveryStatus, VehicleType
from pikup.models.booking import Booking, CustomerRef, ItemDetails
from pikup.models.fare import FareBreakdown
from pikup.models.payment import PaymentMethodRef, PaymentRecord
from pikup.models.trip import Coordinates, Location, TripParameters
from pikup.services.api.client import ApiResponse, PikupApiClient


def pytest_configure(config):
    """Configure pytest environment before tests run."""
    # Suppress async mock warnings
    warnings.filterwarnings("ignore", message="coroutine.*was never awaited")
    warnings.filterwarnings("ignore", category=pytest.PytestUnraisableExceptionWarning)


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Automatically set up test environment for all tests."""
    monkeypatch.setenv("ENV", "testing")
    monkeypatch.setenv("API_BASE_URL", "https://test-api.pikup.local")
    monkeypatch.setenv("BOOKING_STORE_URL", "https://test-store.pikup.local")
    monkeypatch.setenv("ALLOW_DEV_PAYMENT_FALLBACK", "false")
    monkeypatch.setenv("INSURANCE_OPT_OUT_ALLOWED", "true")
    monkeypatch.setenv("STATUS_FETCH_RETRY_DELAY_SECONDS", "0")
    monkeypatch.delenv("API_TOKEN", raising=False)

    reset_settings()
    yield
    reset_settings()


def _api_response(data: Optional[Dict[str, Any]] = None, status: int = 200) -> ApiResponse:
    """Build a decoded backend response."""
    return ApiResponse(status=status, data=data or {})


@pytest.fixture
def mock_api():
    """Backend client with every HTTP verb mocked."""
    api = MagicMock(spec=PikupApiClient)
    api.post_json = AsyncMock(return_value=_api_response({"success": True}))
    api.get_json = AsyncMock(return_value=_api_response({"success": True}))
    api.patch_json = AsyncMock(return_value=_api_response({"success": True}))
    return api


@pytest.fixture
def pickup_location():
    """Pickup address in Atlanta."""
    return Location(
        address="123 Peachtree St, Atlanta, GA",
        coordinates=Coordinates(latitude=33.7590, longitude=-84.3880),
    )


@pytest.fixture
def dropoff_location():
    """Dropoff address in Decatur."""
    return Location(
        address="456 Ponce de Leon Ave, Decatur, GA",
        coordinates=Coordinates(latitude=33.7748, longitude=-84.2963),
    )


@pytest.fixture
def trip(pickup_location, dropoff_location):
    """Trip with an already resolved route."""
    return TripParameters(
        pickup=pickup_location,
        dropoff=dropoff_location,
        distance_miles=10.0,
        duration_minutes=25,
        time_of_day=14,
        day_of_week=2,
    )


@pytest.fixture
def customer():
    """Paying customer."""
    return CustomerRef(user_id="user_123", email="jamie@example.com", display_name="Jamie")


@pytest.fixture
def item():
    """Sofa worth 500."""
    return ItemDetails(description="Sofa", value=Decimal("500.00"))


@pytest.fixture
def visa():
    """Saved default card."""
    return PaymentMethodRef(
        id="pm_visa_4242", brand="visa", last4="4242", exp_month=12, exp_year=2030, is_default=True
    )


def _price_entry(base: str, mileage: str, service: str, surge: float = 1.0) -> Dict[str, Any]:
    """One entry of the pricing service ``prices`` map."""
    return {
        "baseFare": base,
        "mileageCharge": mileage,
        "serviceFee": service,
        "surgeMultiplier": surge,
        "total": "999.99",
    }


def _pricing_payload(**overrides: Any) -> Dict[str, Any]:
    """Successful ``calculate-price`` response for both vehicle types."""
    payload = {
        "success": True,
        "prices": {
            "Cargo Van": _price_entry("40.00", "20.00", "5.00"),
            "Pickup Truck": _price_entry("35.00", "18.00", "4.50"),
        },
        "distance": 12.4,
        "estimatedTime": 31,
    }
    payload.update(overrides)
    return payload


def _insurance_payload(premium: str = "12.34", **overrides: Any) -> Dict[str, Any]:
    """Successful insurance quote response."""
    insurance = {
        "offerId": "offer_1",
        "quoteId": "quote_1",
        "premium": premium,
        "currency": "USD",
    }
    insurance.update(overrides)
    return {"success": True, "insurance": insurance}


def _make_booking(
    status: DeliveryStatus = DeliveryStatus.PENDING,
    booking_id: Optional[str] = "pickup_1700000000000_abc123xyz",
    **changes: Any,
) -> Booking:
    """Stored booking whose fare totals 70.20."""
    now = datetime.now(timezone.utc)
    pickup = Location("123 Peachtree St, Atlanta, GA", Coordinates(33.7590, -84.3880))
    dropoff = Location("456 Ponce de Leon Ave, Decatur, GA", Coordinates(33.7748, -84.2963))
    fare = FareBreakdown(
        base_fare=Decimal("40.00"), mileage_charge=Decimal("20.00"), service_fee=Decimal("5.00")
    )
    fields: Dict[str, Any] = dict(
        id=booking_id,
        draft_id="draft_0123456789ab",
        customer=CustomerRef(user_id="user_123", email="jamie@example.com"),
        pickup=pickup,
        dropoff=dropoff,
        item=ItemDetails(description="Sofa", value=Decimal("500.00")),
        vehicle_type=VehicleType.CARGO_VAN,
        fare=fare,
        payment=PaymentRecord(
            intent_id="pi_3Nabcdef123456",
            status="succeeded",
            amount=fare.total,
            currency="usd",
            payment_method_id="pm_visa_4242",
            confirmed_at=now,
        ),
        distance_miles=10.0,
        duration_minutes=25,
        status=status,
        scheduled_at=now + timedelta(days=1),
        created_at=now,
        updated_at=now,
    )
    fields.update(changes)
    return Booking(**fields)


@pytest.fixture
def make_response():
    """Factory for decoded backend responses."""
    return _api_response


@pytest.fixture
def pricing_payload():
    """Factory for successful pricing responses."""
    return _pricing_payload


@pytest.fixture
def insurance_payload():
    """Factory for successful insurance quote responses."""
    return _insurance_payload


@pytest.fixture
def make_booking():
    """Factory for stored bookings."""
    return _make_booking
