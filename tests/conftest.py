import os

# Credential fields have no defaults (services must fail without secrets).
# Provide test values so Settings() can be constructed in tests.
os.environ.setdefault("API_KEY", "test-api-key")
os.environ.setdefault("DISPATCH_PLATFORM_OWNER", "platform")

from collections.abc import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.rate_limit import limiter
from engine import DispatchEngine
from events.bus import NotificationBus
from geo.location import Location
from ledger.funds import InMemoryFundsLedger
from ledger.ride_ledger import RideLedger
from matching.driver_registry import DriverRegistry
from matching.matching_engine import MatchingEngine
from matching.path_cost import PathCostEstimator
from settlement.settlement_service import SettlementService

PLATFORM_OWNER = "platform"
RIDER = "0xA11CE00000000000000000000000000000000001"
DEFAULT_BALANCE = 1_000_000


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> Iterator[None]:
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def rider() -> str:
    """Funded requester identity."""
    return RIDER


@pytest.fixture
def platform_owner() -> str:
    return PLATFORM_OWNER


@pytest.fixture
def notifications() -> NotificationBus:
    return NotificationBus(history_size=100)


@pytest.fixture
def funds() -> InMemoryFundsLedger:
    ledger = InMemoryFundsLedger()
    ledger.deposit(RIDER, DEFAULT_BALANCE)
    return ledger


@pytest.fixture
def registry(notifications: NotificationBus) -> DriverRegistry:
    return DriverRegistry(notifications)


@pytest.fixture
def ride_ledger(
    registry: DriverRegistry, funds: InMemoryFundsLedger, notifications: NotificationBus
) -> RideLedger:
    return RideLedger(registry, funds, notifications)


@pytest.fixture
def matching(
    registry: DriverRegistry, ride_ledger: RideLedger, notifications: NotificationBus
) -> MatchingEngine:
    return MatchingEngine(registry, ride_ledger, notifications)


@pytest.fixture
def path_cost(registry: DriverRegistry) -> PathCostEstimator:
    return PathCostEstimator(registry)


@pytest.fixture
def settlement(
    ride_ledger: RideLedger,
    registry: DriverRegistry,
    funds: InMemoryFundsLedger,
    notifications: NotificationBus,
) -> SettlementService:
    return SettlementService(
        ride_ledger,
        registry,
        funds,
        notifications,
        platform_owner=PLATFORM_OWNER,
        fee_basis_points=250,
    )


@pytest.fixture
def make_driver(registry: DriverRegistry) -> Callable[..., int]:
    """Register a driver owned by ``owner`` at ``location``; returns its id."""

    def _make(
        location: tuple[int, int] = (0, 0),
        owner: str | None = None,
        name: str = "Driver",
    ) -> int:
        index = registry.count() + 1
        return registry.register(
            owner=owner or f"driver-owner-{index}",
            name=f"{name} {index}",
            vehicle_model="Toyota Prius",
            license_plate=f"ABC-{index:04d}",
            location=Location(*location),
        )

    return _make


@pytest.fixture
def make_ride(ride_ledger: RideLedger) -> Callable[..., int]:
    """Submit a ride for ``requester`` (funded by the funds fixture)."""

    def _make(
        pickup: tuple[int, int] = (0, 0),
        destination: tuple[int, int] = (1000, 1000),
        fare: int = 1000,
        requester: str = RIDER,
    ) -> int:
        return ride_ledger.create(requester, Location(*pickup), Location(*destination), fare)

    return _make


@pytest.fixture
def engine() -> DispatchEngine:
    dispatch_engine = DispatchEngine(platform_owner=PLATFORM_OWNER, fee_basis_points=250)
    dispatch_engine.deposit(RIDER, DEFAULT_BALANCE)
    return dispatch_engine


@pytest.fixture
def test_client(engine: DispatchEngine) -> Iterator[TestClient]:
    app = create_app(engine)
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    def _headers(caller: str) -> dict[str, str]:
        return {"X-API-Key": "test-api-key", "X-Caller-Identity": caller}

    return _headers
