"""Per-operation caller identity checks.

Each mutating entry point declares an Operation; the Role table says which
identity class may invoke it. ``authorize`` is a pure function of the
operation, the caller identity and the entity the operation targets, and it
is called before any state is read-modify-written.
"""

from enum import Enum
from typing import TYPE_CHECKING

from core.exceptions import UnauthorizedError

if TYPE_CHECKING:
    from driver import Driver
    from ride import RideRequest

# Holds ride fares between request and settlement; never a caller.
ESCROW_ACCOUNT = "escrow"
RESERVED_IDENTITIES = frozenset({ESCROW_ACCOUNT})


class Role(str, Enum):
    ANYONE = "anyone"
    PLATFORM_OWNER = "platform_owner"
    DRIVER_OWNER = "driver_owner"
    RIDE_REQUESTER = "ride_requester"
    ASSIGNED_DRIVER = "assigned_driver"


class Operation(str, Enum):
    REGISTER_DRIVER = "register_driver"
    UPDATE_DRIVER_LOCATION = "update_driver_location"
    SET_DRIVER_AVAILABILITY = "set_driver_availability"
    REQUEST_RIDE = "request_ride"
    MATCH_RIDE = "match_ride"
    CANCEL_RIDE = "cancel_ride"
    START_RIDE = "start_ride"
    COMPLETE_RIDE = "complete_ride"
    SET_FEE = "set_fee"


OPERATION_ROLES: dict[Operation, Role] = {
    Operation.REGISTER_DRIVER: Role.ANYONE,
    Operation.REQUEST_RIDE: Role.ANYONE,
    # Matching is open to any caller.
    Operation.MATCH_RIDE: Role.ANYONE,
    Operation.UPDATE_DRIVER_LOCATION: Role.DRIVER_OWNER,
    Operation.SET_DRIVER_AVAILABILITY: Role.DRIVER_OWNER,
    Operation.CANCEL_RIDE: Role.RIDE_REQUESTER,
    Operation.START_RIDE: Role.ASSIGNED_DRIVER,
    Operation.COMPLETE_RIDE: Role.ASSIGNED_DRIVER,
    Operation.SET_FEE: Role.PLATFORM_OWNER,
}


def _expected_identity(
    role: Role,
    platform_owner: str | None,
    driver: "Driver | None",
    ride: "RideRequest | None",
    assigned_driver: "Driver | None",
) -> str | None:
    if role is Role.PLATFORM_OWNER:
        return platform_owner
    if role is Role.DRIVER_OWNER:
        return driver.owner if driver is not None else None
    if role is Role.RIDE_REQUESTER:
        return ride.requester if ride is not None else None
    if role is Role.ASSIGNED_DRIVER:
        return assigned_driver.owner if assigned_driver is not None else None
    return None


def authorize(
    operation: Operation,
    identity: str,
    *,
    platform_owner: str | None = None,
    driver: "Driver | None" = None,
    ride: "RideRequest | None" = None,
    assigned_driver: "Driver | None" = None,
) -> None:
    """Raise UnauthorizedError unless ``identity`` may perform ``operation``.

    Args:
        operation: The entry point being invoked
        identity: Verified caller identity
        platform_owner: Platform owner identity (SET_FEE)
        driver: Target driver record (driver owner operations)
        ride: Target ride record (requester operations)
        assigned_driver: Driver assigned to the ride (start/complete)
    """
    if not identity:
        raise UnauthorizedError(
            "Caller identity is required", {"operation": operation.value}
        )
    if identity in RESERVED_IDENTITIES:
        raise UnauthorizedError(
            f"{identity} is a reserved account", {"operation": operation.value}
        )

    role = OPERATION_ROLES[operation]
    if role is Role.ANYONE:
        return

    expected = _expected_identity(role, platform_owner, driver, ride, assigned_driver)
    if expected is None or identity != expected:
        raise UnauthorizedError(
            f"{identity} may not perform {operation.value}",
            {"operation": operation.value, "role": role.value},
        )
