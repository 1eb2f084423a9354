import pytest

from vestledger.core.config import UINT128_MAX
from vestledger.core.vesting_exceptions import (
    ArithmeticOverflowError,
    ArithmeticUnderflowError,
    InvalidInputError,
)
from vestledger.core.vesting_types import (
    Clawbackable,
    SchedulePoint,
    VestingAccount,
    VestingInfo,
    VestingSchedule,
    checked_add,
    checked_sub,
    parse_amount,
)


def test_checked_add_rejects_overflow():
    assert checked_add(UINT128_MAX - 1, 1) == UINT128_MAX
    with pytest.raises(ArithmeticOverflowError):
        checked_add(UINT128_MAX, 1)


def test_checked_sub_rejects_underflow():
    assert checked_sub(5, 5) == 0
    with pytest.raises(ArithmeticUnderflowError):
        checked_sub(4, 5)


@pytest.mark.parametrize("value", [-1, UINT128_MAX + 1, "12a", "-3", 1.5, True, None])
def test_parse_amount_rejects_bad_values(value):
    with pytest.raises(InvalidInputError):
        parse_amount(value)


def test_parse_amount_accepts_decimal_strings():
    assert parse_amount("340282366920938463463374607431768211455") == UINT128_MAX


def test_schedule_point_validates_fields():
    with pytest.raises(InvalidInputError):
        SchedulePoint(time=-1, amount=1)
    with pytest.raises(InvalidInputError):
        SchedulePoint(time=1, amount="10")


@pytest.mark.parametrize(
    "start, end, valid",
    [
        ((100, 0), (200, 10), True),
        ((100, 0), (100, 10), False),
        ((100, 10), (200, 10), False),
        ((200, 0), (100, 10), False),
        ((100, 20), (200, 10), False),
    ],
)
def test_schedule_validity(start, end, valid):
    schedule = VestingSchedule(SchedulePoint(*start), SchedulePoint(*end))
    assert schedule.is_valid() is valid


def test_cliff_schedule_is_valid_and_totals_start_amount():
    schedule = VestingSchedule(SchedulePoint(100, 42))
    assert schedule.is_valid()
    assert schedule.total_amount == 42


def test_clawbackable_flag_semantics():
    assert Clawbackable.from_flag(None) is Clawbackable.UNSPECIFIED
    assert Clawbackable.from_flag(True) is Clawbackable.ALLOWED
    assert Clawbackable.from_flag(False) is Clawbackable.DENIED
    assert Clawbackable.UNSPECIFIED.permits_clawback
    assert Clawbackable.ALLOWED.permits_clawback
    assert not Clawbackable.DENIED.permits_clawback
    assert Clawbackable.UNSPECIFIED.to_flag() is None
    with pytest.raises(InvalidInputError):
        Clawbackable.from_flag("yes")


def test_vesting_info_serializes_amounts_as_strings():
    info = VestingInfo(
        schedules=[
            VestingSchedule(SchedulePoint(1, 0), SchedulePoint(2, UINT128_MAX)),
            VestingSchedule(SchedulePoint(3, 7)),
        ],
        released_amount=5,
        clawbackable=Clawbackable.DENIED,
    )
    data = info.to_dict()
    assert data["released_amount"] == "5"
    assert data["schedules"][0]["end_point"]["amount"] == str(UINT128_MAX)
    assert data["schedules"][1]["end_point"] is None
    assert data["clawbackable"] is False
    assert VestingInfo.from_dict(data) == info


def test_vesting_account_from_dict():
    acct = VestingAccount.from_dict(
        {
            "address": "alice",
            "schedules": [
                {
                    "start_point": {"time": 10, "amount": "0"},
                    "end_point": {"time": 20, "amount": 100},
                }
            ],
        }
    )
    assert acct.address == "alice"
    assert acct.clawbackable is Clawbackable.UNSPECIFIED
    assert acct.schedules[0].total_amount == 100

    with pytest.raises(InvalidInputError):
        VestingAccount.from_dict({"address": "alice"})


def test_vesting_info_round_trips_settled_schedules():
    info = VestingInfo(
        schedules=[VestingSchedule(SchedulePoint(1, 0), SchedulePoint(2, 10))],
        released_amount=10,
        settled_schedules=[0],
    )
    data = info.to_dict()
    assert data["settled_schedules"] == [0]
    assert VestingInfo.from_dict(data) == info
    assert VestingInfo.from_dict({"schedules": []}).settled_schedules == []


@pytest.mark.parametrize("settled", [[1], [-1], ["0"], [True], "0"])
def test_vesting_info_rejects_bad_settled_indexes(settled):
    data = {
        "schedules": [{"start_point": {"time": 1, "amount": "5"}}],
        "settled_schedules": settled,
    }
    with pytest.raises(InvalidInputError):
        VestingInfo.from_dict(data)
