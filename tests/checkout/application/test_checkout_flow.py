"""Tests for the submission, payment and document flow against fake collaborators."""

import pytest

from checkout.errors import ExternalFailure, GateError, InvalidOperationError, ValidationError
from checkout.gate.validator import GateReason
from checkout.gateways.port import PaymentConfirmation, PaymentFailure
from checkout.session.service import SessionService
from checkout.submission.flow import CheckoutFlow


class TestPostalLookup:
    def test_fills_city_and_state(self, flow, address):
        partial = address.model_copy(update={"city": "", "state": ""})
        filled = flow.lookup_postal_code(partial)
        assert (filled.city, filled.state) == ("Pune", "Maharashtra")
        assert flow.gateways.postal.calls == [{"method": "lookup", "postal_code": "411001"}]

    def test_malformed_code_not_sent(self, flow, address):
        with pytest.raises(ValidationError):
            flow.lookup_postal_code(address.model_copy(update={"postal_code": "41A001"}))
        assert flow.gateways.postal.calls == []

    def test_unknown_code(self, flow, address):
        with pytest.raises(ExternalFailure) as exc:
            flow.lookup_postal_code(address.model_copy(update={"postal_code": "999999"}))
        assert exc.value.collaborator == "postal_lookup"

    def test_service_failure(self, flow, address):
        flow.gateways.postal.configure(should_succeed=False, failure_reason="Timed out")
        with pytest.raises(ExternalFailure) as exc:
            flow.lookup_postal_code(address)
        assert exc.value.reason == "Timed out"


class TestDocumentGeneration:
    @pytest.fixture
    def group_id(self, cart_service, allocator, router, recipient):
        cart_service.add(router, 3)
        allocator.enable_dropship()
        group_id = allocator.create_group(recipient)
        allocator.assign(group_id, "prod-router", 2)
        return group_id

    def test_attaches_url(self, flow, allocator, group_id):
        url = flow.generate_document(group_id)
        assert url.startswith("https://documents.example.com/delivery/")
        assert allocator.group(group_id).document_url == url

    def test_sends_recipient_and_items(self, flow, group_id):
        flow.generate_document(group_id)
        [call] = flow.gateways.documents.calls
        assert call["customer"]["name"] == "Vikram Shah"
        assert call["customer"]["address"].startswith("Vikram Shah, 9123456780")
        assert call["items"] == [{"name": "Wi-Fi Router", "quantity": 2}]

    def test_failure_leaves_group_untouched(self, flow, allocator, group_id):
        flow.gateways.documents.configure(should_succeed=False)
        with pytest.raises(ExternalFailure):
            flow.generate_document(group_id)
        group = allocator.group(group_id)
        assert group.document_url is None
        assert group.quantity_of("prod-router") == 2

    def test_empty_group_rejected(self, flow, allocator, address, group_id):
        empty = allocator.create_group(address)
        with pytest.raises(ValidationError):
            flow.generate_document(empty)
        assert flow.gateways.documents.calls == []

    def test_stale_document_discarded(self, flow, allocator, group_id):
        documents = flow.gateways.documents
        original_generate = documents.generate

        def generate_while_editing(customer, items):
            allocator.assign(group_id, "prod-router", 1)
            return original_generate(customer, items)

        documents.generate = generate_while_editing
        assert flow.generate_document(group_id) is None
        assert allocator.group(group_id).document_url is None


class TestSubmit:
    def test_direct_checkout_end_to_end(self, flow, cart_service, router, address):
        cart_service.add(router, 2)

        pending = flow.submit(address)
        assert flow.processing is True
        assert pending.payment_order.amount == 23600
        assert pending.payment_order.currency == "INR"
        assert pending.payload["kind"] == "direct"

        [opened] = flow.gateways.payments.opened
        assert opened["prefill"] == {"name": "Asha Rao", "email": "asha@example.com"}

        confirmation = flow.gateways.payments.complete(pending.payment_order)
        result = flow.confirm_payment(confirmation)

        assert result.order_handle == pending.order_handle
        assert result.total_amount == 236.0
        assert flow.processing is False
        assert cart_service.cart.is_empty
        assert flow.gateways.orders.verified == [pending.order_handle]

    def test_dropship_checkout_end_to_end(self, flow, cart_service, allocator, router, recipient):
        cart_service.add(router, 2)
        allocator.enable_dropship()
        group_id = allocator.create_group(recipient)
        allocator.assign(group_id, "prod-router", 2)
        flow.generate_document(group_id)

        pending = flow.submit()
        body = flow.gateways.orders.calls[0]["payload"]
        assert body["kind"] == "dropship"
        assert body["shipment_groups"][0]["group_id"] == group_id

        flow.confirm_payment(flow.gateways.payments.complete(pending.payment_order))
        assert allocator.dropship_enabled is False
        assert allocator.groups == []

    def test_gate_refusal_sends_nothing(self, flow, cart_service, modem, address):
        cart_service.add(modem, 6)
        with pytest.raises(GateError) as exc:
            flow.submit(address)
        assert exc.value.reason == GateReason.EXCEEDS_DIRECT_LIMIT
        assert flow.processing is False
        assert flow.gateways.orders.calls == []

    def test_dropship_with_only_empty_groups_sends_nothing(self, flow, cart_service, allocator, router, recipient):
        cart_service.add(router, 2)
        allocator.enable_dropship()
        allocator.create_group(recipient)
        with pytest.raises(GateError) as exc:
            flow.submit()
        assert exc.value.reason == GateReason.MISSING_GROUPS
        assert flow.processing is False
        assert flow.gateways.orders.calls == []

    def test_anonymous_refused(self, cart_service, allocator, gateways, settings, router, address):
        cart_service.add(router, 1)
        flow = CheckoutFlow(cart_service, SessionService(), allocator, gateways, settings)
        with pytest.raises(GateError) as exc:
            flow.submit(address)
        assert exc.value.reason == GateReason.REQUIRES_AUTH

    def test_double_submit_rejected(self, flow, cart_service, router, address):
        cart_service.add(router, 1)
        flow.submit(address)
        with pytest.raises(InvalidOperationError):
            flow.submit(address)
        assert len(flow.gateways.orders.calls) == 1

    def test_order_api_failure_clears_flag(self, flow, cart_service, router, address):
        cart_service.add(router, 1)
        flow.gateways.orders.configure(should_succeed=False, failure_reason="Server error")
        with pytest.raises(ExternalFailure) as exc:
            flow.submit(address)
        assert exc.value.reason == "Server error"
        assert flow.processing is False
        assert not cart_service.cart.is_empty

    def test_missing_payment_order(self, flow, cart_service, router, address):
        cart_service.add(router, 1)
        flow.gateways.orders.configure(should_succeed=True, omit_payment_order=True)
        with pytest.raises(ExternalFailure):
            flow.submit(address)
        assert flow.processing is False
        assert flow.gateways.payments.opened == []

    def test_can_resubmit_after_failure(self, flow, cart_service, router, address):
        cart_service.add(router, 1)
        flow.gateways.orders.configure(should_succeed=False)
        with pytest.raises(ExternalFailure):
            flow.submit(address)
        flow.gateways.orders.configure(should_succeed=True)
        assert flow.submit(address).order_handle


class TestPaymentCallbacks:
    @pytest.fixture
    def pending(self, flow, cart_service, router, address):
        cart_service.add(router, 2)
        return flow.submit(address)

    def test_bad_signature_keeps_cart(self, flow, cart_service, pending):
        with pytest.raises(ExternalFailure):
            flow.confirm_payment(PaymentConfirmation(payment_id="pay_1", signature="forged"))
        assert flow.processing is False
        assert cart_service.cart.quantity_of("prod-router") == 2

    def test_payment_failure_keeps_cart(self, flow, cart_service, pending):
        with pytest.raises(ExternalFailure) as exc:
            flow.fail_payment(PaymentFailure(code="BAD_REQUEST_ERROR", description="Card declined"))
        assert exc.value.collaborator == "payment_provider"
        assert exc.value.reason == "Card declined"
        assert flow.processing is False
        assert flow.pending is None
        assert cart_service.cart.quantity_of("prod-router") == 2

    def test_confirm_without_submission(self, flow):
        with pytest.raises(InvalidOperationError):
            flow.confirm_payment(PaymentConfirmation(payment_id="pay_1", signature="sig"))

    def test_totals_match_payment_amount(self, flow, pending):
        assert flow.totals().total * 100 == pending.payment_order.amount
