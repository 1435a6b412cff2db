import pytest

from trackfast.core.constants import ErrorKind, ValidationOutcome
from trackfast.core.errors import GuardNotImplemented, SchemaNotLoaded
from trackfast.schema.registry import SchemaRegistry
from trackfast.validation.guards import GuardRegistry
from trackfast.validation.validator import Validator


@pytest.fixture
def signup_validator(signup_registry):
    return Validator(signup_registry)


# ─── user_signed_up scenario ──────────────────────────────

def test_valid_signup_passes_without_optional_source(signup_validator):
    result = signup_validator.validate("user_signed_up", {"email": "a@b.com", "plan": "starter"})
    assert result.outcome is ValidationOutcome.PASS
    assert result.normalized_properties == {"email": "a@b.com", "plan": "starter"}
    assert "source" not in result.normalized_properties


def test_enum_outside_allowed_values_fails(signup_validator):
    result = signup_validator.validate("user_signed_up", {"email": "a@b.com", "plan": "enterprise"})
    assert result.outcome is ValidationOutcome.FAIL
    assert result.failure_kind is ErrorKind.ENUM_VIOLATION
    assert result.details["allowed_values"] == ["free", "starter", "growth"]
    assert result.details["property"] == "plan"
    assert result.normalized_properties is None


def test_enum_match_is_case_sensitive(signup_validator):
    result = signup_validator.validate("user_signed_up", {"email": "a@b.com", "plan": "Starter"})
    assert result.failure_kind is ErrorKind.ENUM_VIOLATION


def test_missing_required_names_property(signup_validator):
    result = signup_validator.validate("user_signed_up", {"plan": "starter"})
    assert result.failure_kind is ErrorKind.MISSING_REQUIRED
    assert result.details["property"] == "email"
    assert "email" in result.failure_reason


def test_unknown_event_enumerates_registration_order(signup_validator):
    result = signup_validator.validate("foo", {})
    assert result.failure_kind is ErrorKind.UNKNOWN_EVENT
    assert result.details["known_events"] == ["user_signed_up", "pageview"]


# ─── Type checks ──────────────────────────────────────────

@pytest.mark.parametrize(
    "value, actual",
    [
        (42, "number"),
        (True, "boolean"),
        (["a@b.com"], "array"),
        ({"v": 1}, "object"),
    ],
)
def test_type_mismatch_reports_expected_and_actual(signup_validator, value, actual):
    result = signup_validator.validate("user_signed_up", {"email": value, "plan": "free"})
    assert result.failure_kind is ErrorKind.TYPE_MISMATCH
    assert result.details == {"property": "email", "expected": "string", "actual": actual}


def test_boolean_is_not_a_number(validator):
    result = validator.validate("payment_completed", {"amount": True})
    assert result.failure_kind is ErrorKind.TYPE_MISMATCH
    assert result.details["actual"] == "boolean"


def test_enum_value_must_be_a_string(signup_validator):
    result = signup_validator.validate("user_signed_up", {"email": "a@b.com", "plan": 1})
    assert result.failure_kind is ErrorKind.TYPE_MISMATCH
    assert result.details["expected"] == "enum"


def test_boolean_kind():
    registry = SchemaRegistry.from_mapping(
        {"toggled": {"properties": {"on": {"type": "boolean", "required": True}}}}
    )
    v = Validator(registry)
    assert v.validate("toggled", {"on": False}).passed
    assert v.validate("toggled", {"on": "false"}).failure_kind is ErrorKind.TYPE_MISMATCH


# ─── Normalization ────────────────────────────────────────

def test_default_is_injected(validator):
    result = validator.validate("subscription_created", {"plan": "growth", "amount": 49})
    assert result.passed
    assert result.normalized_properties == {"plan": "growth", "amount": 49, "currency": "USD"}


def test_explicit_value_overrides_default(validator):
    result = validator.validate("payment_completed", {"amount": 10.5, "currency": "EUR"})
    assert result.normalized_properties["currency"] == "EUR"


def test_null_counts_as_absent(signup_validator):
    result = signup_validator.validate(
        "user_signed_up", {"email": "a@b.com", "plan": "free", "source": None}
    )
    assert result.passed
    assert "source" not in result.normalized_properties

    result = signup_validator.validate("user_signed_up", {"email": None, "plan": "free"})
    assert result.failure_kind is ErrorKind.MISSING_REQUIRED


def test_undeclared_properties_pass_through(signup_validator):
    props = {"email": "a@b.com", "plan": "growth", "utm": {"campaign": "x"}, "n": 3}
    result = signup_validator.validate("user_signed_up", props)
    assert result.passed
    assert result.normalized_properties == props


def test_input_is_not_mutated(validator):
    props = {"plan": "growth", "amount": 49}
    validator.validate("subscription_created", props)
    assert props == {"plan": "growth", "amount": 49}


def test_validation_is_idempotent(validator):
    props = {"plan": "growth", "amount": 49}
    assert validator.validate("subscription_created", props) == validator.validate(
        "subscription_created", props
    )
    bad = {"plan": "gold", "amount": 49}
    assert validator.validate("subscription_created", bad) == validator.validate(
        "subscription_created", bad
    )


def test_event_without_properties(validator):
    result = validator.validate("user_reset", None)
    assert result.passed
    assert result.normalized_properties == {}


# ─── Fail-fast ordering ───────────────────────────────────

def test_first_violation_in_declaration_order_wins(signup_validator):
    # email missing AND plan invalid: email is declared first
    result = signup_validator.validate("user_signed_up", {"plan": "enterprise"})
    assert result.failure_kind is ErrorKind.MISSING_REQUIRED


def test_property_checks_run_before_guards(validator):
    result = validator.validate("user_signed_up", {"email": "not-an-email", "plan": "bad"})
    assert result.failure_kind is ErrorKind.ENUM_VIOLATION


# ─── Guards ───────────────────────────────────────────────

def test_guard_violation_carries_declared_message(validator):
    result = validator.validate("user_signed_up", {"email": "not-an-email", "plan": "free"})
    assert result.failure_kind is ErrorKind.GUARD_VIOLATION
    assert result.failure_reason == "email must be a syntactically valid email address"
    assert result.details == {"guard": "valid_email", "property": "email"}


def test_guards_run_in_declaration_order(validator):
    # both guards fail: amount first, then currency
    result = validator.validate("payment_completed", {"amount": -1, "currency": "usd"})
    assert result.details["guard"] == "positive_number"

    result = validator.validate("payment_completed", {"amount": 1, "currency": "usd"})
    assert result.details["guard"] == "currency_code"


def test_guards_see_injected_defaults(catalog_registry):
    calls = []

    def capture(properties, spec):
        calls.append(dict(properties))
        return True

    guards = GuardRegistry()
    guards.register("currency_code", capture)
    Validator(catalog_registry, guards).validate("payment_completed", {"amount": 5})
    assert calls == [{"amount": 5, "currency": "USD"}]


def test_unimplemented_guard_raises():
    registry = SchemaRegistry.from_mapping(
        {
            "evt": {
                "properties": {"a": {"type": "string"}},
                "guards": [{"name": "does_not_exist", "message": "nope"}],
            }
        }
    )
    v = Validator(registry)
    with pytest.raises(GuardNotImplemented) as excinfo:
        v.validate("evt", {"a": "x"})
    assert excinfo.value.guard_names == ["does_not_exist"]

    with pytest.raises(GuardNotImplemented):
        v.ensure_guards_resolvable()


def test_unimplemented_guard_not_reached_when_properties_fail():
    registry = SchemaRegistry.from_mapping(
        {
            "evt": {
                "properties": {"a": {"type": "string", "required": True}},
                "guards": [{"name": "does_not_exist", "message": "nope"}],
            }
        }
    )
    result = Validator(registry).validate("evt", {})
    assert result.failure_kind is ErrorKind.MISSING_REQUIRED


def test_bundled_catalog_guards_are_all_implemented(validator):
    validator.ensure_guards_resolvable()


def test_unloaded_registry_raises():
    with pytest.raises(SchemaNotLoaded):
        Validator(SchemaRegistry()).validate("pageview", {"path": "/"})
