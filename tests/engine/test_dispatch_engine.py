import pytest

from core.exceptions import InvalidAmountError, UnauthorizedError
from engine import DispatchEngine, build_engine
from events.schemas import RideCompleted, RideMatched, RideRequested
from geo.location import Location
from ledger.funds import ESCROW_ACCOUNT, InMemoryFundsLedger
from ride import RideStatus
from settings import Settings

from conftest import DEFAULT_BALANCE, PLATFORM_OWNER, RIDER


@pytest.mark.unit
class TestComposition:
    def test_components_share_notifications(self, engine):
        assert engine.registry._notifications is engine.notifications
        assert engine.ledger._notifications is engine.notifications
        assert engine.settlement.platform_owner == PLATFORM_OWNER
        assert engine.settlement.fee_basis_points == 250

    def test_external_funds_ledger(self):
        funds = InMemoryFundsLedger()
        engine = DispatchEngine(platform_owner="owner", funds=funds)
        assert engine.funds is funds

    def test_deposit(self, engine):
        assert engine.deposit("someone", 50) == 50
        assert engine.balance_of("someone") == 50
        with pytest.raises(InvalidAmountError):
            engine.deposit("someone", 0)

    def test_deposit_to_escrow_rejected(self, engine):
        with pytest.raises(UnauthorizedError, match="reserved"):
            engine.deposit(ESCROW_ACCOUNT, 50)
        assert engine.balance_of(ESCROW_ACCOUNT) == 0

    def test_build_engine_from_settings(self, monkeypatch):
        monkeypatch.setenv("DISPATCH_PLATFORM_OWNER", "0xOwner")
        monkeypatch.setenv("DISPATCH_FEE_BASIS_POINTS", "500")
        monkeypatch.setenv("DISPATCH_NOTIFICATION_HISTORY", "50")

        engine = build_engine(Settings())

        assert engine.settlement.platform_owner == "0xOwner"
        assert engine.settlement.fee_basis_points == 500


@pytest.mark.unit
class TestRideLifecycle:
    def test_request_match_start_complete(self, engine):
        driver_id = engine.registry.register(
            owner="driver-owner",
            name="Ana",
            vehicle_model="Civic",
            license_plate="XYZ-1",
            location=Location(40_000_000, -74_000_000),
        )
        ride_id = engine.ledger.create(
            RIDER,
            Location(40_000_100, -74_000_100),
            Location(40_010_000, -74_010_000),
            1000,
        )
        assert engine.balance_of(ESCROW_ACCOUNT) == 1000

        assert engine.matching.match(ride_id, RIDER) == driver_id
        engine.ledger.start(ride_id, "driver-owner")
        settlement = engine.settlement.complete(ride_id, "driver-owner")

        assert settlement.platform_fee == 25
        assert settlement.driver_payment == 975
        assert engine.ledger.get(ride_id).status == RideStatus.COMPLETED
        assert engine.balance_of("driver-owner") == 975
        assert engine.balance_of(PLATFORM_OWNER) == 25
        assert engine.balance_of(ESCROW_ACCOUNT) == 0
        assert engine.balance_of(RIDER) == DEFAULT_BALANCE - 1000

        events = engine.notifications.recent()
        assert [e.event_type for e in events] == [
            "driver.registered",
            "ride.requested",
            "ride.matched",
            "ride.completed",
        ]
        assert [e.sequence for e in events] == [1, 2, 3, 4]
        assert sum(isinstance(e, RideCompleted) for e in events) == 1
        assert all(
            e.correlation_id == f"ride-{ride_id}"
            for e in events
            if isinstance(e, (RideRequested, RideMatched, RideCompleted))
        )

    def test_request_then_cancel_restores_balance(self, engine):
        ride_id = engine.ledger.create(RIDER, Location(0, 0), Location(1, 1), 4000)
        engine.ledger.cancel(ride_id, RIDER)
        assert engine.balance_of(RIDER) == DEFAULT_BALANCE
        assert engine.balance_of(ESCROW_ACCOUNT) == 0
        assert engine.notifications.recent()[-1].event_type == "ride.cancelled"
