"""Shared BDD fixtures and step definitions for the Checkout domain."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when

from checkout.gate.validator import GateReason


@pytest.fixture()
def catalogue(router, modem, camera, cable):
    return {product.id: product for product in (router, modem, camera, cable)}


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def gate():
    """Latest gate outcome, replaced on every evaluation."""
    return {"outcome": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a signed-in customer")
def signed_in_customer(session_service):
    assert session_service.is_authenticated


@given(parsers.cfparse('the cart holds {quantity:d} of "{product_id}"'))
def cart_holds(cart_service, catalogue, quantity, product_id):
    cart_service.add(catalogue[product_id], quantity)


@given(parsers.cfparse('the cart holds {quantity:d} of "{product_id}" quoted as "{quote_id}" at {price}'))
def cart_holds_quoted(cart_service, catalogue, quantity, product_id, quote_id, price):
    cart_service.add(catalogue[product_id], quantity, quote_id=quote_id, quoted_price=price)


@given("dropship is enabled")
def dropship_enabled(allocator):
    allocator.enable_dropship()


@given("a dropship group for the recipient", target_fixture="group_id")
def dropship_group(allocator, recipient):
    return allocator.create_group(recipient)


@given(parsers.cfparse('{quantity:d} of "{product_id}" are assigned to the group'))
@when(parsers.cfparse('{quantity:d} of "{product_id}" are assigned to the group'))
def assign_to_group(allocator, group_id, quantity, product_id, error):
    try:
        allocator.assign(group_id, product_id, quantity)
    except ValidationError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the checkout gate is evaluated")
def evaluate_gate(flow, address, gate):
    gate["outcome"] = flow.validator.evaluate(address)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('checkout is blocked with "{reason}"'))
def checkout_blocked(gate, reason):
    assert gate["outcome"].reason == GateReason(reason)


@then("checkout may proceed")
def checkout_proceeds(gate):
    assert gate["outcome"].proceed


@then(parsers.cfparse('the blocking product is "{product_id}"'))
def blocking_product(gate, product_id):
    assert gate["outcome"].product_id == product_id


@then("the action fails with a validation error")
def action_fails(error):
    assert error["exc"] is not None
    assert isinstance(error["exc"], ValidationError)
