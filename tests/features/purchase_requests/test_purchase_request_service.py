"""Tests for purchase requests and the approval gate on orders."""

import pytest
import pytest_asyncio
from datetime import timedelta

from edu_media.config.constants import Collections, OrderStatus, PricingTarget, PurchaseRequestStatus, UserRole
from edu_media.core.exceptions import (
    DuplicateResourceError,
    InvalidStateError,
    PermissionDeniedError,
)
from edu_media.platform import EduMediaPlatform


@pytest.fixture
def approval_platform(store, mock_notifier, scheduler, mock_blob_store, settings, clock):
    """Platform over the shared store where every purchase needs an approved request."""
    return EduMediaPlatform(
        store,
        mock_notifier,
        scheduler=scheduler,
        blobs=mock_blob_store,
        settings=settings.model_copy(update={"require_purchase_approval": True}),
        clock=clock,
    )


@pytest_asyncio.fixture
async def buyer(make_profile):
    """Client with both email and phone on file."""
    return await make_profile(
        "user-buyer", UserRole.CLIENT, first_name="Bea", email="bea@example.org", phone_number="+15551234567"
    )


@pytest_asyncio.fixture
async def priced_content(platform, admin, make_content):
    """Published content on sale for 9.99 USD with 30 days of access."""
    content = await make_content(title="Long division")
    pricing = await platform.pricing.set_pricing(
        admin.user_id, PricingTarget.CONTENT, content.id, 999, "usd", access_duration=timedelta(days=30)
    )
    return content, pricing


class TestCreateRequest:
    """Test opening purchase requests."""

    @pytest.mark.asyncio
    async def test_create_pending_request(self, platform, buyer, priced_content):
        """Test a new request starts pending and keeps the buyer's message."""
        content, _ = priced_content
        request = await platform.purchase_requests.create_request(
            buyer.user_id, PricingTarget.CONTENT, content.id, message="  For my class  "
        )

        assert request.status is PurchaseRequestStatus.PENDING
        assert request.message == "For my class"
        assert request.user_id == buyer.user_id
        stored = await platform.purchase_requests.get_request_status(buyer.user_id, "content", content.id)
        assert stored.id == request.id

    @pytest.mark.asyncio
    async def test_unpriced_target_rejected(self, platform, buyer, make_content):
        """Test content that is not for sale cannot be requested."""
        content = await make_content()
        with pytest.raises(InvalidStateError, match="not available for purchase"):
            await platform.purchase_requests.create_request(buyer.user_id, PricingTarget.CONTENT, content.id)

    @pytest.mark.asyncio
    async def test_duplicate_pending_and_approved_requests(self, platform, admin, buyer, priced_content):
        """Test a pending or unused approved request blocks a new one."""
        content, _ = priced_content
        request = await platform.purchase_requests.create_request(buyer.user_id, "content", content.id)
        with pytest.raises(DuplicateResourceError, match="pending request"):
            await platform.purchase_requests.create_request(buyer.user_id, "content", content.id)

        await platform.purchase_requests.approve_request(admin.user_id, request.id)
        with pytest.raises(DuplicateResourceError, match="already been approved"):
            await platform.purchase_requests.create_request(buyer.user_id, "content", content.id)

    @pytest.mark.asyncio
    async def test_denied_request_can_be_repeated(self, platform, clock, admin, buyer, priced_content):
        """Test a denial does not stop the buyer asking again."""
        content, _ = priced_content
        first = await platform.purchase_requests.create_request(buyer.user_id, "content", content.id)
        await platform.purchase_requests.deny_request(admin.user_id, first.id, admin_notes="Not this term")
        clock.advance(minutes=5)

        second = await platform.purchase_requests.create_request(buyer.user_id, "content", content.id)
        assert second.id != first.id
        mine = await platform.purchase_requests.list_my_requests(buyer.user_id)
        assert [r.id for r in mine] == [second.id, first.id]
        assert mine[1].admin_notes == "Not this term"

    @pytest.mark.asyncio
    async def test_owner_of_access_cannot_request(self, platform, buyer, priced_content):
        """Test a buyer with unexpired purchased access is turned away."""
        content, pricing = priced_content
        order = await platform.orders.create_order(buyer.user_id, pricing.id)
        await platform.orders.complete_order(buyer.user_id, order.id)

        with pytest.raises(DuplicateResourceError, match="already have access"):
            await platform.purchase_requests.create_request(buyer.user_id, "content", content.id)


class TestReviewRequest:
    """Test approving and denying requests."""

    @pytest.mark.asyncio
    async def test_approve_notifies_by_email_and_sms(
        self, platform, scheduler, mock_notifier, admin, buyer, priced_content
    ):
        """Test approval records the reviewer and messages the buyer on both channels."""
        content, _ = priced_content
        request = await platform.purchase_requests.create_request(buyer.user_id, "content", content.id)
        await scheduler.drain()
        mock_notifier.send_email.reset_mock()

        approved = await platform.purchase_requests.approve_request(admin.user_id, request.id, admin_notes="Enjoy")
        await scheduler.drain()

        assert approved.status is PurchaseRequestStatus.APPROVED
        assert approved.reviewed_by == admin.user_id
        assert approved.admin_notes == "Enjoy"
        assert approved.reviewed_at is not None
        kwargs = mock_notifier.send_email.await_args.kwargs
        assert kwargs["to"] == "bea@example.org"
        assert kwargs["subject"] == 'Purchase request approved - "Long division"'
        assert mock_notifier.send_sms.await_args.kwargs["to"] == "+15551234567"

    @pytest.mark.asyncio
    async def test_deny_sends_email_only(self, platform, scheduler, mock_notifier, admin, buyer, priced_content):
        """Test denials are emailed but never texted."""
        content, _ = priced_content
        request = await platform.purchase_requests.create_request(buyer.user_id, "content", content.id)
        await scheduler.drain()
        mock_notifier.send_email.reset_mock()

        denied = await platform.purchase_requests.deny_request(admin.user_id, request.id)
        await scheduler.drain()

        assert denied.status is PurchaseRequestStatus.DENIED
        assert "denied" in mock_notifier.send_email.await_args.kwargs["subject"]
        mock_notifier.send_sms.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_request_is_reviewed_once(self, platform, admin, buyer, priced_content):
        """Test a reviewed request cannot be approved or denied again."""
        content, _ = priced_content
        request = await platform.purchase_requests.create_request(buyer.user_id, "content", content.id)
        await platform.purchase_requests.deny_request(admin.user_id, request.id)

        with pytest.raises(InvalidStateError, match="already been reviewed"):
            await platform.purchase_requests.approve_request(admin.user_id, request.id)

    @pytest.mark.asyncio
    async def test_review_requires_manage_permission(self, platform, editor, buyer, priced_content):
        """Test editors cannot review or list purchase requests."""
        content, _ = priced_content
        request = await platform.purchase_requests.create_request(buyer.user_id, "content", content.id)

        with pytest.raises(PermissionDeniedError):
            await platform.purchase_requests.approve_request(editor.user_id, request.id)
        with pytest.raises(PermissionDeniedError):
            await platform.purchase_requests.list_requests(buyer.user_id)

    @pytest.mark.asyncio
    async def test_list_by_status_and_pending_count(self, platform, admin, buyer, client_user, priced_content):
        """Test staff listings filter by status."""
        content, _ = priced_content
        first = await platform.purchase_requests.create_request(buyer.user_id, "content", content.id)
        await platform.purchase_requests.create_request(client_user.user_id, "content", content.id)
        await platform.purchase_requests.approve_request(admin.user_id, first.id)

        assert await platform.purchase_requests.pending_count(admin.user_id) == 1
        approved = await platform.purchase_requests.list_requests(admin.user_id, "approved")
        assert [r.id for r in approved] == [first.id]
        assert len(await platform.purchase_requests.list_requests(admin.user_id)) == 2


class TestApprovalGate:
    """Test orders when purchases need approval."""

    @pytest.mark.asyncio
    async def test_order_needs_approved_request(self, approval_platform, admin, buyer, priced_content):
        """Test ordering without, then with, an approved request."""
        content, pricing = priced_content
        with pytest.raises(PermissionDeniedError):
            await approval_platform.orders.create_order(buyer.user_id, pricing.id)

        request = await approval_platform.purchase_requests.create_request(buyer.user_id, "content", content.id)
        with pytest.raises(PermissionDeniedError):
            await approval_platform.orders.create_order(buyer.user_id, pricing.id)

        await approval_platform.purchase_requests.approve_request(admin.user_id, request.id)
        order = await approval_platform.orders.create_order(buyer.user_id, pricing.id)
        assert order.purchase_request_id == request.id

    @pytest.mark.asyncio
    async def test_completion_uses_up_the_request(self, approval_platform, clock, admin, buyer, priced_content):
        """Test the approved request is consumed and a repurchase needs a new one."""
        content, pricing = priced_content
        request = await approval_platform.purchase_requests.create_request(buyer.user_id, "content", content.id)
        await approval_platform.purchase_requests.approve_request(admin.user_id, request.id)
        order = await approval_platform.orders.create_order(buyer.user_id, pricing.id)

        completed = await approval_platform.orders.complete_order(buyer.user_id, order.id)

        assert completed.status is OrderStatus.COMPLETED
        used = await approval_platform.purchase_request_records.get(request.id)
        assert used.purchase_completed_at == clock()
        eligibility = await approval_platform.purchase_requests.can_purchase(buyer.user_id, "content", content.id)
        assert eligibility.reason == "You already have access to this content"

        clock.advance(days=31)
        eligibility = await approval_platform.purchase_requests.can_purchase(buyer.user_id, "content", content.id)
        assert eligibility.can_purchase is False
        assert eligibility.request_status == "completed"
        with pytest.raises(PermissionDeniedError):
            await approval_platform.orders.create_order(buyer.user_id, pricing.id)

        again = await approval_platform.purchase_requests.create_request(buyer.user_id, "content", content.id)
        assert again.status is PurchaseRequestStatus.PENDING

    @pytest.mark.asyncio
    async def test_one_request_backs_one_completed_order(self, approval_platform, admin, buyer, priced_content):
        """Test two orders opened on one approval cannot both complete."""
        content, pricing = priced_content
        request = await approval_platform.purchase_requests.create_request(buyer.user_id, "content", content.id)
        await approval_platform.purchase_requests.approve_request(admin.user_id, request.id)
        first = await approval_platform.orders.create_order(buyer.user_id, pricing.id)
        second = await approval_platform.orders.create_order(buyer.user_id, pricing.id)

        await approval_platform.orders.complete_order(buyer.user_id, first.id)
        with pytest.raises(InvalidStateError, match="already been used"):
            await approval_platform.orders.complete_order(buyer.user_id, second.id)

        assert (await approval_platform.orders.get_order(second.id)).status is OrderStatus.PENDING

    @pytest.mark.asyncio
    async def test_lost_order_claim_releases_request(
        self, approval_platform, mocker, admin, buyer, priced_content
    ):
        """Test a completion that loses the order claim leaves the request usable."""
        content, pricing = priced_content
        request = await approval_platform.purchase_requests.create_request(buyer.user_id, "content", content.id)
        await approval_platform.purchase_requests.approve_request(admin.user_id, request.id)
        order = await approval_platform.orders.create_order(buyer.user_id, pricing.id)
        mocker.patch.object(
            approval_platform.orders, "_claim_pending", side_effect=InvalidStateError("Order already processed")
        )

        with pytest.raises(InvalidStateError):
            await approval_platform.orders.complete_order(buyer.user_id, order.id)

        assert (await approval_platform.purchase_request_records.get(request.id)).is_usable

    @pytest.mark.asyncio
    async def test_failed_order_keeps_request(self, approval_platform, admin, buyer, priced_content):
        """Test completing a failed order touches neither the order nor the request."""
        content, pricing = priced_content
        request = await approval_platform.purchase_requests.create_request(buyer.user_id, "content", content.id)
        await approval_platform.purchase_requests.approve_request(admin.user_id, request.id)
        order = await approval_platform.orders.create_order(buyer.user_id, pricing.id)
        await approval_platform.orders.fail_order(buyer.user_id, order.id)

        with pytest.raises(InvalidStateError, match="Order already processed"):
            await approval_platform.orders.complete_order(buyer.user_id, order.id)
        assert (await approval_platform.purchase_request_records.get(request.id)).is_usable


class TestEligibility:
    """Test purchase eligibility answers."""

    @pytest.mark.asyncio
    async def test_eligibility_progression(self, approval_platform, admin, buyer, priced_content):
        """Test the answer moves from none to pending to approved."""
        content, _ = priced_content
        requests = approval_platform.purchase_requests

        none = await requests.can_purchase(buyer.user_id, "content", content.id)
        assert (none.can_purchase, none.request_status) == (False, "none")

        request = await requests.create_request(buyer.user_id, "content", content.id)
        pending = await requests.can_purchase(buyer.user_id, "content", content.id)
        assert (pending.can_purchase, pending.request_status, pending.request_id) == (False, "pending", request.id)

        await requests.approve_request(admin.user_id, request.id)
        approved = await requests.can_purchase(buyer.user_id, "content", content.id)
        assert (approved.can_purchase, approved.request_status) == (True, "approved")

    @pytest.mark.asyncio
    async def test_open_purchasing_without_approval(self, platform, buyer, priced_content):
        """Test priced content is purchasable directly when approval is off."""
        content, _ = priced_content
        eligibility = await platform.purchase_requests.can_purchase(buyer.user_id, "content", content.id)
        assert eligibility.can_purchase is True
        assert eligibility.request_status is None

    @pytest.mark.asyncio
    async def test_anonymous_and_unpriced(self, platform, buyer, make_content):
        """Test anonymous callers and unpriced content cannot purchase."""
        content = await make_content()
        anonymous = await platform.purchase_requests.can_purchase(None, "content", content.id)
        assert anonymous.reason == "Not authenticated"
        unpriced = await platform.purchase_requests.can_purchase(buyer.user_id, "content", content.id)
        assert unpriced.reason == "Content is not available for purchase"


class TestMarkCompleted:
    """Test completing requests outside the order flow."""

    @pytest.mark.asyncio
    async def test_mark_completed_rules(self, platform, admin, buyer, client_user, priced_content):
        """Test only the requester can complete an approved, unused request."""
        content, _ = priced_content
        request = await platform.purchase_requests.create_request(buyer.user_id, "content", content.id)

        with pytest.raises(InvalidStateError, match="Only approved requests"):
            await platform.purchase_requests.mark_completed(buyer.user_id, request.id)

        await platform.purchase_requests.approve_request(admin.user_id, request.id)
        with pytest.raises(PermissionDeniedError):
            await platform.purchase_requests.mark_completed(client_user.user_id, request.id)

        completed = await platform.purchase_requests.mark_completed(buyer.user_id, request.id)
        assert completed.purchase_completed_at is not None
        with pytest.raises(InvalidStateError, match="already been used"):
            await platform.purchase_requests.mark_completed(buyer.user_id, request.id)

    @pytest.mark.asyncio
    async def test_deleting_content_removes_requests(self, platform, store, admin, buyer, priced_content):
        """Test requests go with the content they target."""
        content, _ = priced_content
        await platform.purchase_requests.create_request(buyer.user_id, "content", content.id)

        await platform.content.delete_content(admin.user_id, content.id)

        assert await store.query(Collections.PURCHASE_REQUESTS, {"target_id": content.id}) == []
