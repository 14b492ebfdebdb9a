"""Request validation — structural gate, temporal, duration, affordability,
restrictions and applicability, credit requests, and the validate endpoints.
"""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal

import pytest

from leave_engine.applications.schemas import (
    ApplicantContext,
    CreditRequestCandidate,
    LeaveRequestCandidate,
    RequestRules,
)
from leave_engine.applications.validator import (
    CREDIT_TYPE_MESSAGE,
    count_leave_days,
    format_days,
    validate_credit_request,
    validate_leave_request,
)
from leave_engine.balance.schemas import FlexibleBalance, LeaveBalanceModel, SpecialBalance
from leave_engine.common.constants import LeaveCategory, RequestCategory
from leave_engine.common.exceptions import ProgrammerContractError
from leave_engine.common.results import Accepted, ErrorKind, Rejected
from leave_engine.configuration.schemas import LeaveConfigurationCreate
from leave_engine.configuration.service import LeaveConfigurationService
from tests.conftest import RULES, TODAY, _make_carrier, _make_config, days

REASON = "Attending a family wedding"

# TODAY is Monday 2 March 2026
MON, TUE, WED, THU, FRI, SAT, SUN = (date(2026, 3, d) for d in range(2, 9))


def leave(**overrides) -> LeaveRequestCandidate:
    data = {
        "leave_type_code": "CL",
        "category": RequestCategory.full_day,
        "from_date": MON,
        "to_date": WED,
        "reason": REASON,
    }
    data.update(overrides)
    return LeaveRequestCandidate(**data)


def balance(available=10, consumed=2) -> LeaveBalanceModel:
    return LeaveBalanceModel(available=days(available), consumed=days(consumed))


def check(request, config, ledger=None, **kwargs):
    kwargs.setdefault("today", TODAY)
    kwargs.setdefault("rules", RULES)
    return validate_leave_request(
        request, config, balance() if ledger is None else ledger, **kwargs,
    )


def restricted(**restrictions):
    return _make_config(
        LeaveCategory.accrued, allowRestrictions=True, restrictions=restrictions,
    )


# ═════════════════════════════════════════════════════════════════════
# Day counting
# ═════════════════════════════════════════════════════════════════════


class TestCountLeaveDays:
    def test_weekdays_only(self):
        assert count_leave_days(MON, SUN) == 5

    def test_holidays_excluded(self):
        assert count_leave_days(MON, WED, holidays=[TUE]) == 2

    def test_include_non_working(self):
        assert count_leave_days(FRI, date(2026, 3, 9), include_non_working=True) == 4

    def test_custom_weekend(self):
        assert count_leave_days(MON, SUN, weekend_days=[4, 5]) == 5
        assert count_leave_days(THU, SAT, weekend_days=[4, 5]) == 1

    def test_reversed_range(self):
        assert count_leave_days(WED, MON) == 0


class TestFormatDays:
    def test_trailing_zeros_dropped(self):
        assert format_days(Decimal("10.0")) == "10"
        assert format_days(Decimal("2.50")) == "2.5"
        assert format_days(Decimal("0")) == "0"


# ═════════════════════════════════════════════════════════════════════
# Leave requests
# ═════════════════════════════════════════════════════════════════════


class TestLeaveScenarios:
    def test_accrued_within_balance_accepted(self):
        result = check(leave(), _make_config(LeaveCategory.accrued))
        assert isinstance(result, Accepted)
        payload = result.payload
        assert payload.total_days == Decimal("3")
        assert payload.required_balance == Decimal("3")
        assert (payload.from_date, payload.to_date) == (MON, WED)
        assert payload.reason == REASON
        assert payload.requires_approval is True

    def test_accrued_beyond_balance_rejected(self):
        request = leave(to_date=date(2026, 3, 17))
        result = check(request, _make_config(LeaveCategory.accrued))
        assert isinstance(result, Rejected)
        assert result.messages_for("balance") == ["insufficient balance, 10 available"]
        assert result.errors[0].kind == ErrorKind.policy_violation

    def test_flexible_never_checks_affordability(self):
        config = _make_config(LeaveCategory.flexible, code="CL")
        result = check(leave(to_date=FRI), config, balance(available=0, consumed=0))
        assert isinstance(result, Accepted)
        assert result.payload.total_days == Decimal("5")

    def test_flexible_accepts_narrowed_balance(self):
        config = _make_config(LeaveCategory.flexible, code="CL")
        result = check(leave(to_date=date(2026, 3, 31)), config, FlexibleBalance())
        assert isinstance(result, Accepted)

    def test_zero_balance_accrued_rejected(self):
        result = check(leave(), _make_config(LeaveCategory.accrued), balance(0, 0))
        assert result.messages_for("balance") == ["insufficient balance, 0 available"]

    def test_days_per_leave_multiplies_requirement(self):
        config = _make_config(
            LeaveCategory.accrued,
            leaveProperties={"allowedTypes": ["fullDay"], "numberOfDaysPerOneLeave": "2"},
        )
        result = check(leave(), config, balance(available=5))
        assert isinstance(result, Rejected)
        assert result.messages_for("balance") == ["insufficient balance, 5 available"]

        accepted = check(leave(), config, balance(available=6))
        assert accepted.payload.required_balance == Decimal("6")


class TestStructural:
    def test_all_structural_errors_collected_and_gate_later_stages(self):
        request = leave(from_date=None, to_date=None, reason="short")
        result = check(request, _make_config(LeaveCategory.accrued), balance(0, 0))
        assert isinstance(result, Rejected)
        assert result.fields == {"from_date", "to_date", "reason"}
        assert all(e.kind == ErrorKind.structural for e in result.errors)

    def test_end_before_start(self):
        result = check(leave(to_date=date(2026, 2, 27)), _make_config(LeaveCategory.accrued))
        assert result.fields == {"to_date"}
        assert result.errors[0].kind == ErrorKind.structural

    def test_reason_trimmed_before_length_check(self):
        result = check(leave(reason="   tiny   "), _make_config(LeaveCategory.accrued))
        assert result.messages_for("reason") == ["Reason must be at least 10 characters."]

    def test_reason_too_long(self):
        result = check(leave(reason="x" * 501), _make_config(LeaveCategory.accrued))
        assert result.messages_for("reason") == ["Reason cannot exceed 500 characters."]

    def test_partial_day_needs_selection(self):
        request = leave(category=RequestCategory.partial_day, to_date=None)
        result = check(request, _make_config(LeaveCategory.accrued))
        assert result.fields == {"partial_day_selection"}

    def test_partial_timing_needs_ordered_times(self):
        config = _make_config(
            LeaveCategory.flexible, code="CL",
            leaveProperties={"allowedTypes": ["partialTimings"]},
        )
        missing = check(leave(category=RequestCategory.partial_timing), config)
        assert missing.fields == {"from_time", "to_time"}

        reversed_ = check(
            leave(
                category=RequestCategory.partial_timing,
                from_time=time(14, 0),
                to_time=time(10, 0),
            ),
            config,
        )
        assert reversed_.messages_for("to_time") == ["End time must be after the start time."]


class TestTemporal:
    def test_past_dates_rejected(self):
        request = leave(from_date=date(2026, 2, 23), to_date=date(2026, 2, 24))
        result = check(request, _make_config(LeaveCategory.accrued))
        assert isinstance(result, Rejected)
        assert result.fields == {"from_date"}

    def test_untracked_may_be_in_the_past(self):
        request = leave(from_date=date(2026, 2, 23), to_date=date(2026, 2, 24), untracked=True)
        result = check(request, _make_config(LeaveCategory.accrued))
        assert isinstance(result, Accepted)
        assert result.payload.untracked is True

    def test_errors_accumulate_across_stages(self):
        request = leave(from_date=date(2026, 2, 2), to_date=date(2026, 2, 20))
        result = check(request, restricted(maxConsecutiveDays=5))
        assert result.fields == {"from_date", "balance", "to_date"}


class TestDuration:
    def test_partial_day_uses_fixed_unit(self):
        request = leave(
            category=RequestCategory.partial_day,
            partial_day_selection="firstHalf",
            to_date=FRI,
        )
        result = check(request, _make_config(LeaveCategory.accrued))
        assert isinstance(result, Accepted)
        assert result.payload.total_days == Decimal("0.5")
        assert result.payload.to_date == MON

    def test_partial_unit_from_rules(self):
        request = leave(category=RequestCategory.partial_day, partial_day_selection="secondHalf")
        result = check(
            request,
            _make_config(LeaveCategory.accrued),
            rules=RequestRules(partial_day_unit=Decimal("0.25")),
        )
        assert result.payload.total_days == Decimal("0.25")

    def test_partial_timing_keeps_its_category(self):
        config = _make_config(
            LeaveCategory.flexible, code="CL",
            leaveProperties={"allowedTypes": ["partialTimings"]},
        )
        request = leave(
            category=RequestCategory.partial_timing,
            from_time=time(10, 0),
            to_time=time(12, 30),
        )
        result = check(request, config)
        assert isinstance(result, Accepted)
        assert result.payload.category == RequestCategory.partial_timing
        assert result.payload.from_time == time(10, 0)
        assert result.payload.partial_day_selection is None

    def test_weekend_only_span_rejected(self):
        result = check(leave(from_date=SAT, to_date=SUN), _make_config(LeaveCategory.accrued))
        assert isinstance(result, Rejected)
        assert result.messages_for("to_date") == ["The selected dates contain no working days."]

    def test_holidays_excluded(self):
        result = check(leave(), _make_config(LeaveCategory.accrued), holidays=[TUE])
        assert result.payload.total_days == Decimal("2")

    def test_include_holidays_weekends(self):
        config = restricted(includeHolidaysWeekends=True)
        result = check(leave(from_date=FRI, to_date=date(2026, 3, 9)), config, holidays=[FRI])
        assert result.payload.total_days == Decimal("4")


class TestPolicy:
    def test_exactly_the_consecutive_limit_accepted(self):
        result = check(leave(), restricted(maxConsecutiveDays=3))
        assert isinstance(result, Accepted)

    def test_one_over_the_consecutive_limit_rejected(self):
        result = check(leave(to_date=THU), restricted(maxConsecutiveDays=3))
        assert isinstance(result, Rejected)
        (message,) = result.messages_for("to_date")
        assert "maximum of 3 consecutive days" in message

    def test_restrictions_ignored_while_gate_closed(self):
        config = _make_config(
            LeaveCategory.accrued,
            allowRestrictions=False,
            restrictions={"maxConsecutiveDays": 1},
        )
        assert isinstance(check(leave(), config), Accepted)

    def test_unit_must_be_allowed(self):
        config = _make_config(
            LeaveCategory.accrued, leaveProperties={"allowedTypes": ["fullDay"]},
        )
        request = leave(category=RequestCategory.partial_day, partial_day_selection="firstHalf")
        result = check(request, config)
        assert result.fields == {"category"}

    def test_partial_timings_never_allowed_for_accrued(self):
        request = leave(
            category=RequestCategory.partial_timing, from_time=time(9), to_time=time(11),
        )
        result = check(request, _make_config(LeaveCategory.accrued))
        assert result.fields == {"category"}

    def test_approval_flag_from_restrictions(self):
        result = check(leave(), restricted(approvalRequired=False))
        assert result.payload.requires_approval is False


class TestApplicant:
    def test_gender_applicability(self):
        config = _make_config(
            LeaveCategory.accrued, applicableCategories={"gender": "female"},
        )
        rejected = check(leave(), config, applicant=ApplicantContext(gender="male"))
        assert rejected.fields == {"applicant.gender"}
        assert isinstance(check(leave(), config, applicant=ApplicantContext()), Accepted)

    def test_employee_type_applicability(self):
        config = _make_config(
            LeaveCategory.accrued,
            applicableCategories={"isForAllEmployeeTypes": False, "employeeTypes": ["fullTime"]},
        )
        result = check(leave(), config, applicant=ApplicantContext(employee_type="intern"))
        assert result.fields == {"applicant.employee_type"}

    def test_marital_status_applicability(self):
        config = _make_config(
            LeaveCategory.accrued, applicableCategories={"marriedStatus": "married"},
        )
        result = check(leave(), config, applicant=ApplicantContext(marital_status="single"))
        assert result.fields == {"applicant.marital_status"}

    def test_probation(self):
        applicant = ApplicantContext(on_probation=True)
        blocked = check(leave(), restricted(), applicant=applicant)
        assert blocked.fields == {"applicant.on_probation"}

        allowed = check(
            leave(), restricted(probationRestrictions={"allowed": True}), applicant=applicant,
        )
        assert isinstance(allowed, Accepted)

    def test_yearly_request_limit(self):
        config = restricted(maxRequestsPerYear=4)
        assert isinstance(
            check(leave(), config, applicant=ApplicantContext(requests_this_year=3)), Accepted,
        )
        result = check(leave(), config, applicant=ApplicantContext(requests_this_year=4))
        assert result.messages_for("applicant.requests_this_year") == [
            "yearly limit of 4 requests reached",
        ]

    def test_min_gap_between_leaves(self):
        config = restricted(minGapBetweenLeaves=2)
        too_close = check(
            leave(), config, applicant=ApplicantContext(last_leave_end=date(2026, 2, 28)),
        )
        assert too_close.fields == {"from_date"}
        far_enough = check(
            leave(), config, applicant=ApplicantContext(last_leave_end=date(2026, 2, 27)),
        )
        assert isinstance(far_enough, Accepted)


class TestContract:
    def test_code_mismatch_raises(self):
        with pytest.raises(ProgrammerContractError):
            check(leave(leave_type_code="SL"), _make_config(LeaveCategory.accrued))

    def test_code_compared_case_insensitively(self):
        result = check(leave(leave_type_code=" cl "), _make_config(LeaveCategory.accrued))
        assert isinstance(result, Accepted)
        assert result.payload.leave_type_code == "CL"

    def test_balance_variant_mismatch_raises(self):
        with pytest.raises(ProgrammerContractError):
            check(leave(), _make_config(LeaveCategory.accrued), SpecialBalance())


# ═════════════════════════════════════════════════════════════════════
# Credit requests
# ═════════════════════════════════════════════════════════════════════


def credit(**overrides) -> CreditRequestCandidate:
    data = {"credit_type": "CO", "from_date": MON, "to_date": TUE, "reason": REASON}
    data.update(overrides)
    return CreditRequestCandidate(**data)


class TestCreditRequest:
    def test_special_configuration_accepted(self):
        config = _make_config(LeaveCategory.special, code="CO")
        result = validate_credit_request(credit(), config, today=TODAY, rules=RULES)
        assert isinstance(result, Accepted)
        assert result.payload.total_days == 2
        assert result.payload.credit_type == "CO"

    def test_flexible_configuration_rejected(self):
        config = _make_config(LeaveCategory.flexible, code="CO")
        result = validate_credit_request(credit(), config, today=TODAY, rules=RULES)
        assert isinstance(result, Rejected)
        assert result.messages_for("credit_type") == [CREDIT_TYPE_MESSAGE]
        assert CREDIT_TYPE_MESSAGE == "creditType must reference a special-category configuration"
        assert result.errors[0].kind == ErrorKind.structural

    def test_missing_configuration_rejected(self):
        result = validate_credit_request(credit(), None, today=TODAY, rules=RULES)
        assert result.fields == {"credit_type"}

    def test_structural_errors_collected(self):
        result = validate_credit_request(
            credit(to_date=None, reason=""), None, today=TODAY, rules=RULES,
        )
        assert result.fields == {"credit_type", "to_date", "reason"}

    def test_past_dates_need_untracked(self):
        config = _make_config(LeaveCategory.special, code="CO")
        past = credit(from_date=date(2026, 2, 21), to_date=date(2026, 2, 22))
        rejected = validate_credit_request(past, config, today=TODAY, rules=RULES)
        assert rejected.fields == {"from_date"}
        accepted = validate_credit_request(
            past.model_copy(update={"untracked": True}), config, today=TODAY, rules=RULES,
        )
        assert isinstance(accepted, Accepted)

    def test_code_mismatch_raises(self):
        config = _make_config(LeaveCategory.special, code="ML")
        with pytest.raises(ProgrammerContractError):
            validate_credit_request(credit(), config, today=TODAY, rules=RULES)


class TestRequestRules:
    def test_from_settings_defaults(self):
        rules = RequestRules.from_settings()
        assert rules.partial_day_unit == Decimal("0.5")
        assert rules.partial_timing_unit == Decimal("0.5")
        assert (rules.reason_min_length, rules.reason_max_length) == (10, 500)
        assert rules.weekend_days == frozenset({5, 6})


# ═════════════════════════════════════════════════════════════════════
# API
# ═════════════════════════════════════════════════════════════════════


async def _seed(db, category, *, code):
    carrier = LeaveConfigurationCreate.model_validate(_make_carrier(category, code=code))
    await LeaveConfigurationService.create(db, carrier, scope_id="acme")
    await db.commit()


def _leave_body(**request) -> dict:
    return {
        "scopeId": "acme",
        "today": TODAY.isoformat(),
        "balance": {"available": 10, "consumed": 2},
        "request": {
            "leaveTypeCode": "CL",
            "category": "fullDay",
            "fromDate": MON.isoformat(),
            "toDate": WED.isoformat(),
            "reason": REASON,
            **request,
        },
    }


class TestApplicationsAPI:
    async def test_validate_leave_accepted(self, client, db):
        await _seed(db, LeaveCategory.accrued, code="CL")
        resp = await client.post("/api/v1/applications/leave/validate", json=_leave_body())
        assert resp.status_code == 200
        body = resp.json()
        assert body["accepted"] is True
        assert Decimal(str(body["payload"]["totalDays"])) == Decimal("3")
        assert body["payload"]["leaveTypeCode"] == "CL"

    async def test_validate_leave_rejected(self, client, db):
        await _seed(db, LeaveCategory.accrued, code="CL")
        resp = await client.post(
            "/api/v1/applications/leave/validate",
            json=_leave_body(toDate="2026-03-17"),
        )
        assert resp.status_code == 422
        assert resp.headers["content-type"].startswith("application/problem+json")
        assert resp.json()["errors"] == {"balance": ["insufficient balance, 10 available"]}

    async def test_validate_leave_unknown_code(self, client):
        resp = await client.post("/api/v1/applications/leave/validate", json=_leave_body())
        assert resp.status_code == 404

    async def test_validate_credit_against_flexible(self, client, db):
        await _seed(db, LeaveCategory.flexible, code="WFH")
        resp = await client.post("/api/v1/applications/credit/validate", json={
            "scopeId": "acme",
            "today": TODAY.isoformat(),
            "request": {
                "creditType": "WFH",
                "fromDate": MON.isoformat(),
                "toDate": TUE.isoformat(),
                "reason": REASON,
            },
        })
        assert resp.status_code == 422
        assert resp.json()["errors"] == {"credit_type": [CREDIT_TYPE_MESSAGE]}

    async def test_validate_credit_accepted(self, client, db):
        await _seed(db, LeaveCategory.special, code="CO")
        resp = await client.post("/api/v1/applications/credit/validate", json={
            "scopeId": "acme",
            "today": TODAY.isoformat(),
            "request": {
                "creditType": "CO",
                "fromDate": MON.isoformat(),
                "toDate": MON.isoformat(),
                "reason": REASON,
                "informTo": ["mgr-1", "mgr-1", " "],
            },
        })
        assert resp.status_code == 200
        payload = resp.json()["payload"]
        assert payload["totalDays"] == 1
        assert payload["informTo"] == ["mgr-1"]
