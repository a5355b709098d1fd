"""Tests for state derivation."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from trickle.core.models import (
    AddBucket,
    AppData,
    BucketConfig,
    DeleteBucket,
    DumpBucket,
    SetMonthlyRate,
    SetStartDate,
    Spend,
    UpdateBucket,
    WhenFinished,
)
from trickle.engine.mutations import delete_event
from trickle.engine.state import (
    balance_timeline,
    effective_monthly_rate,
    effective_start_date,
    get_app_state,
    get_balance,
)
from trickle.engine.temporal import SECONDS_PER_MONTH, accrued, per_second

T0 = datetime(2024, 1, 1)


def at(seconds: float) -> datetime:
    return T0 + timedelta(seconds=seconds)


def bucket(
    when_finished: WhenFinished = WhenFinished.WAIT_TO_DUMP,
    recur: float | None = None,
    target: float = 100,
    income: float = 1.0,
) -> BucketConfig:
    return BucketConfig(
        name="Test",
        target_amount=target,
        income=income,
        when_finished=when_finished,
        recur=recur,
    )


def make_data(*events, rate: float = 0.0) -> AppData:
    """App data starting at T0. A zero rate isolates bucket bookkeeping."""
    return AppData(monthly_rate=rate, start_date=T0, events=events)


class TestBalance:
    """Tests for the main balance without buckets."""

    def test_no_events(self) -> None:
        """A month at 3000/month accrues 3000."""
        data = make_data(rate=3000)
        assert get_balance(data, at(SECONDS_PER_MONTH)) == pytest.approx(3000, abs=0.01)

    def test_at_start_date(self) -> None:
        assert get_balance(make_data(rate=3000), T0) == 0

    def test_spends_deducted(self) -> None:
        data = make_data(
            Spend(name="Coffee", amount=3.5, date_added=at(10)),
            Spend(name="Lunch", amount=12, date_added=at(20)),
            rate=3000,
        )
        expected = accrued(per_second(3000), T0, at(100)) - 15.5
        assert get_balance(data, at(100)) == pytest.approx(expected)

    def test_future_events_ignored(self) -> None:
        data = make_data(Spend(name="Later", amount=50, date_added=at(200)))

        assert get_balance(data, at(100)) == 0
        assert get_balance(data, at(200)) == pytest.approx(-50)

    def test_backdated_spend(self) -> None:
        """Log order does not matter, dates do."""
        data = make_data(
            Spend(name="Recent", amount=10, date_added=at(100)),
            Spend(name="Backdated", amount=5, date_added=at(10)),
        )
        assert get_balance(data, at(50)) == pytest.approx(-5)

    def test_balance_can_go_negative(self) -> None:
        data = make_data(Spend(name="Rent", amount=5000, date_added=at(1)), rate=3000)
        assert get_balance(data, at(10)) < 0

    def test_query_is_pure(self) -> None:
        data = make_data(AddBucket(date_added=T0, bucket_to_add=bucket()), rate=3000)
        assert get_app_state(data, at(50)) == get_app_state(data, at(50))


class TestSettingsEvents:
    """Tests for SetMonthlyRate and SetStartDate events."""

    def test_rate_change_applies_from_start(self) -> None:
        """The latest rate in force is used for the whole accrual."""
        data = make_data(SetMonthlyRate(rate=3000, date_added=at(SECONDS_PER_MONTH / 2)))

        assert get_balance(data, at(SECONDS_PER_MONTH / 4)) == 0
        assert get_balance(data, at(SECONDS_PER_MONTH)) == pytest.approx(3000, abs=0.01)

    def test_effective_monthly_rate(self) -> None:
        data = make_data(
            SetMonthlyRate(rate=2000, date_added=at(100)),
            SetMonthlyRate(rate=2500, date_added=at(200)),
            rate=1000,
        )
        assert effective_monthly_rate(data, at(50)) == 1000
        assert effective_monthly_rate(data, at(150)) == 2000
        assert effective_monthly_rate(data, at(250)) == 2500

    def test_start_date_change(self) -> None:
        start = at(SECONDS_PER_MONTH / 2)
        data = make_data(SetStartDate(start_date=start, date_added=at(10)), rate=3000)

        assert effective_start_date(data, at(20)) == start
        assert effective_start_date(data, at(5)) == T0
        assert get_balance(data, at(SECONDS_PER_MONTH)) == pytest.approx(1500, abs=0.01)

    def test_income_rates(self) -> None:
        data = make_data(
            AddBucket(date_added=T0, bucket_to_add=bucket(income=0.25)),
            rate=3000,
        )
        state = get_app_state(data, at(10))

        assert state.total_income_per_second == pytest.approx(per_second(3000))
        assert state.bucket_income_per_second == pytest.approx(0.25)

    def test_full_bucket_draws_no_income(self) -> None:
        data = make_data(AddBucket(date_added=T0, bucket_to_add=bucket()))
        state = get_app_state(data, at(200))

        assert state.bucket_income_per_second == 0
        assert not next(iter(state.buckets.values())).filling


class TestBuckets:
    """Tests for bucket lifecycle in the fold."""

    def test_bucket_diverts_from_main(self) -> None:
        add = AddBucket(date_added=T0, bucket_to_add=bucket())
        state = get_app_state(make_data(add), at(50))

        assert state.balance == pytest.approx(-50)
        assert state.buckets[add.id].amount == pytest.approx(50)
        assert state.bucket_total == pytest.approx(50)

    def test_bucket_not_yet_created(self) -> None:
        add = AddBucket(date_added=at(100), bucket_to_add=bucket())
        assert get_app_state(make_data(add), at(50)).buckets == {}

    def test_auto_dump_monthly_scenario(self) -> None:
        """A bucket taking the whole income auto-dumps half way through the month."""
        config = BucketConfig(
            name="Rent",
            target_amount=1500,
            income=per_second(3000),
            when_finished=WhenFinished.AUTO_DUMP,
            recur=SECONDS_PER_MONTH,
        )
        add = AddBucket(date_added=T0, bucket_to_add=config)
        data = make_data(add, rate=3000)

        before = get_app_state(data, at(SECONDS_PER_MONTH / 2 - 1))
        after = get_app_state(data, at(SECONDS_PER_MONTH / 2 + 1))

        assert before.balance == pytest.approx(0, abs=0.01)
        assert before.buckets[add.id].amount == pytest.approx(1500, abs=0.01)
        assert after.balance == pytest.approx(1500, abs=0.01)
        assert after.buckets[add.id].amount == pytest.approx(0, abs=0.01)

    def test_recurrence_boundary(self) -> None:
        add = AddBucket(date_added=T0, bucket_to_add=bucket(recur=300))
        data = make_data(add)

        assert get_app_state(data, at(299)).buckets[add.id].amount == pytest.approx(100)
        assert get_app_state(data, at(301)).buckets[add.id].amount == pytest.approx(1)
        # Reset returns the full 100; only the new cycle's 50 is held back.
        assert get_balance(data, at(350)) == pytest.approx(-50)

    def test_destroy_removes_bucket(self) -> None:
        add = AddBucket(date_added=T0, bucket_to_add=bucket(WhenFinished.DESTROY))
        data = make_data(add)

        assert add.id in get_app_state(data, at(99)).buckets
        state = get_app_state(data, at(100))
        assert add.id not in state.buckets
        assert state.balance == pytest.approx(-100)
        assert get_balance(data, at(10_000)) == pytest.approx(-100)

    def test_spend_from_destroyed_bucket_hits_main(self) -> None:
        add = AddBucket(date_added=T0, bucket_to_add=bucket(WhenFinished.DESTROY))
        spend = Spend(name="Late", amount=10, date_added=at(200), from_bucket=add.id)

        assert get_balance(make_data(add, spend), at(300)) == pytest.approx(-110)

    def test_update_carries_amount(self) -> None:
        add = AddBucket(date_added=T0, bucket_to_add=bucket())
        update = UpdateBucket(date_added=at(50), bucket_id=add.id, new_config=bucket(income=2.0))
        state = get_app_state(make_data(add, update), at(60))

        assert state.buckets[add.id].amount == pytest.approx(70)
        assert state.buckets[add.id].config.income == 2.0
        assert state.balance == pytest.approx(-70)

    def test_update_restarts_recurrence(self) -> None:
        add = AddBucket(date_added=T0, bucket_to_add=bucket(recur=300))
        update = UpdateBucket(
            date_added=at(200),
            bucket_id=add.id,
            new_config=bucket(recur=300, target=200),
        )
        state = get_app_state(make_data(add, update), at(350))

        # No reset at 300: the cycle now runs from 200 to 500.
        assert state.buckets[add.id].amount == pytest.approx(200)

    def test_update_missing_bucket_ignored(self) -> None:
        update = UpdateBucket(date_added=at(10), bucket_id=uuid4(), new_config=bucket())
        state = get_app_state(make_data(update), at(50))

        assert state.buckets == {}
        assert state.balance == 0

    def test_duplicate_add_ignored(self) -> None:
        bucket_id = uuid4()
        first = AddBucket(id=bucket_id, date_added=T0, bucket_to_add=bucket())
        second = AddBucket(id=bucket_id, date_added=at(10), bucket_to_add=bucket(target=500))
        state = get_app_state(make_data(first, second), at(50))

        assert len(state.buckets) == 1
        assert state.buckets[bucket_id].config.target_amount == 100
        assert state.balance == pytest.approx(-50)


class TestDumpAndDelete:
    """Tests for dumping and deleting buckets."""

    def test_dump_returns_amount(self) -> None:
        add = AddBucket(date_added=T0, bucket_to_add=bucket())
        dump = DumpBucket(date_added=at(200), bucket_to_dump=add.id)
        state = get_app_state(make_data(add, dump), at(300))

        assert state.balance == pytest.approx(0)
        # A one-off bucket is retired once dumped.
        assert add.id not in state.buckets

    def test_dump_is_idempotent(self) -> None:
        add = AddBucket(date_added=T0, bucket_to_add=bucket())
        dump = DumpBucket(date_added=at(200), bucket_to_dump=add.id)
        again = DumpBucket(date_added=at(250), bucket_to_dump=add.id)

        once = get_balance(make_data(add, dump), at(300))
        twice = get_balance(make_data(add, dump, again), at(300))

        assert once == pytest.approx(twice)

    def test_dump_recurring_keeps_bucket(self) -> None:
        add = AddBucket(date_added=T0, bucket_to_add=bucket(recur=300))
        dump = DumpBucket(date_added=at(150), bucket_to_dump=add.id)
        state = get_app_state(make_data(add, dump), at(200))

        assert state.buckets[add.id].amount == pytest.approx(50)
        assert state.balance == pytest.approx(-50)

    def test_delete_returns_remainder(self) -> None:
        add = AddBucket(date_added=T0, bucket_to_add=bucket())
        delete = DeleteBucket(date_added=at(50), bucket_id=add.id)
        data = make_data(add, delete)

        assert add.id in get_app_state(data, at(40)).buckets
        state = get_app_state(data, at(100))
        assert state.buckets == {}
        assert state.balance == pytest.approx(0)

    def test_erase_bucket_history(self) -> None:
        """Erasing a bucket behaves as if it never existed."""
        add = AddBucket(date_added=T0, bucket_to_add=bucket())
        spend = Spend(name="Gift", amount=30, date_added=at(150), from_bucket=add.id)
        data = delete_event(make_data(add, spend, rate=3000), add.id)

        expected = accrued(per_second(3000), T0, at(200)) - 30
        assert get_balance(data, at(200)) == pytest.approx(expected)


class TestBucketSpends:
    """Tests for spends paid out of buckets."""

    def test_bucket_covers_spend(self) -> None:
        add = AddBucket(date_added=T0, bucket_to_add=bucket())
        spend = Spend(name="Gift", amount=40, date_added=at(150), from_bucket=add.id)
        state = get_app_state(make_data(add, spend), at(150))

        assert state.buckets[add.id].amount == pytest.approx(60)
        # Main only paid for filling the bucket.
        assert state.balance == pytest.approx(-100)

    def test_overflow_hits_main(self) -> None:
        add = AddBucket(date_added=T0, bucket_to_add=bucket())
        spend = Spend(name="Gift", amount=150, date_added=at(200), from_bucket=add.id)
        state = get_app_state(make_data(add, spend), at(200))

        assert state.buckets[add.id].amount == pytest.approx(0)
        assert state.balance == pytest.approx(-150)

    def test_unknown_bucket_falls_back_to_main(self) -> None:
        spend = Spend(name="Gift", amount=40, date_added=at(10), from_bucket=uuid4())
        assert get_balance(make_data(spend), at(20)) == pytest.approx(-40)

    def test_reset_subsumes_spend(self) -> None:
        """The next recurrence starts from zero regardless of earlier spends."""
        add = AddBucket(date_added=T0, bucket_to_add=bucket(recur=300))
        spend = Spend(name="Gift", amount=40, date_added=at(150), from_bucket=add.id)
        state = get_app_state(make_data(add, spend), at(350))

        assert state.buckets[add.id].amount == pytest.approx(50)
        assert state.buckets[add.id].anchor_time == at(300)
        assert state.balance == pytest.approx(-90)


class TestConservation:
    """Money is neither created nor destroyed outside destroy buckets."""

    def test_mixed_history(self) -> None:
        wait = AddBucket(date_added=T0, bucket_to_add=bucket(recur=300))
        auto = AddBucket(date_added=at(20), bucket_to_add=bucket(WhenFinished.AUTO_DUMP, income=0.5))
        events = (
            wait,
            auto,
            Spend(name="Coffee", amount=3, date_added=at(30)),
            Spend(name="Gift", amount=25, date_added=at(120), from_bucket=wait.id),
            UpdateBucket(date_added=at(180), bucket_id=auto.id, new_config=bucket(income=2.0)),
            DumpBucket(date_added=at(420), bucket_to_dump=wait.id),
            Spend(name="Dinner", amount=80, date_added=at(500), from_bucket=auto.id),
            DeleteBucket(date_added=at(700), bucket_id=auto.id),
        )
        data = make_data(*events, rate=3000)

        for seconds in (10, 150, 299, 300, 450, 650, 900, 5000):
            when = at(seconds)
            state = get_app_state(data, when)
            spent_so_far = sum(
                e.amount for e in events if isinstance(e, Spend) and e.date_added <= when
            )
            gross = accrued(per_second(3000), T0, when)
            assert state.balance + state.bucket_total + spent_so_far == pytest.approx(gross)


class TestTimeline:
    """Tests for balance_timeline function."""

    def test_monthly_steps(self) -> None:
        points = balance_timeline(make_data(rate=3000), T0, steps=3, step_seconds=SECONDS_PER_MONTH)

        assert [when for when, _ in points] == [T0, at(SECONDS_PER_MONTH), at(2 * SECONDS_PER_MONTH)]
        assert [balance for _, balance in points] == pytest.approx([0, 3000, 6000], abs=0.01)
