"""Tests for third-party share links."""

import pytest

from edu_media.config.constants import AccessPath, PricingTarget
from edu_media.core.exceptions import EntityNotFoundError, PermissionDeniedError, ValidationError


class TestCreateShare:
    """Test minting share links."""

    @pytest.mark.asyncio
    async def test_editor_shares_private_content(self, platform, scheduler, mock_notifier, editor, make_content):
        """Test third-party sharers can share published private content and the recipient is emailed."""
        content = await make_content(title="Spelling games")
        await scheduler.drain()
        mock_notifier.send_email.reset_mock()

        share = await platform.shares.create_share(
            editor.user_id, content.id, recipient_email="Gran@Example.org", recipient_name="Gran", message="Enjoy"
        )
        await scheduler.drain()

        assert len(share.access_token) == 32
        assert share.recipient_email == "gran@example.org"
        assert share.expires_at is None
        kwargs = mock_notifier.send_email.await_args.kwargs
        assert kwargs["to"] == "gran@example.org"
        assert f"https://media.example.org/share/{share.access_token}" in kwargs["html"]

    @pytest.mark.asyncio
    async def test_client_cannot_share_private_content(self, platform, client_user, make_content):
        """Test audience members only share public content."""
        content = await make_content()
        with pytest.raises(PermissionDeniedError, match="Cannot share private content"):
            await platform.shares.create_share(client_user.user_id, content.id)

    @pytest.mark.asyncio
    async def test_client_shares_public_content(self, platform, client_user, make_content):
        """Test public free content is shareable by anyone with share rights."""
        content = await make_content(is_public=True)
        share = await platform.shares.create_share(client_user.user_id, content.id)
        assert share.shared_by == client_user.user_id

    @pytest.mark.asyncio
    async def test_priced_content_not_shareable(self, platform, admin, client_user, make_content):
        """Test content on sale cannot be shared by audience members."""
        content = await make_content(is_public=True)
        await platform.pricing.set_pricing(admin.user_id, PricingTarget.CONTENT, content.id, 300, "USD")
        with pytest.raises(PermissionDeniedError, match="Cannot share purchaseable content"):
            await platform.shares.create_share(client_user.user_id, content.id)

    @pytest.mark.asyncio
    async def test_expiry_must_be_positive(self, platform, editor, make_content):
        """Test zero-day shares are rejected."""
        content = await make_content()
        with pytest.raises(ValidationError):
            await platform.shares.create_share(editor.user_id, content.id, expires_in_days=0)


class TestResolveShare:
    """Test resolving share links."""

    @pytest.mark.asyncio
    async def test_resolve_counts_views(self, platform, editor, make_content):
        """Test each successful resolution is counted."""
        content = await make_content(title="Spelling games")
        share = await platform.shares.create_share(editor.user_id, content.id, message="For the weekend")

        view = await platform.shares.resolve_share(share.access_token)
        await platform.shares.resolve_share(share.access_token)

        assert view.resolution.allowed
        assert view.resolution.path is AccessPath.SHARE_TOKEN
        assert view.content["title"] == "Spelling games"
        assert view.message == "For the weekend"
        assert view.shared_by_name == editor.display_name
        mine = await platform.shares.list_my_shares(editor.user_id)
        assert mine[0].view_count == 2

    @pytest.mark.asyncio
    async def test_expired_share(self, platform, clock, editor, make_content):
        """Test a share stops working once its expiry is reached."""
        content = await make_content()
        share = await platform.shares.create_share(editor.user_id, content.id, expires_in_days=2)
        clock.advance(days=2)

        view = await platform.shares.resolve_share(share.access_token)

        assert view.resolution.reason == "This share link has expired"
        assert view.content is None
        assert (await platform.shares.list_my_shares(editor.user_id))[0].view_count == 0

    @pytest.mark.asyncio
    async def test_invalid_token(self, platform):
        """Test unknown and empty tokens are rejected."""
        assert (await platform.shares.resolve_share("no-such-token")).resolution.reason == "Invalid share link"
        assert (await platform.shares.resolve_share("")).resolution.reason == "Invalid share link"

    @pytest.mark.asyncio
    async def test_share_respects_gate(self, platform, admin, editor, make_content):
        """Test archived content cannot be viewed through a share."""
        content = await make_content()
        share = await platform.shares.create_share(editor.user_id, content.id)
        await platform.content.archive_content(admin.user_id, content.id)

        view = await platform.shares.resolve_share(share.access_token)
        assert not view.resolution.allowed
        assert view.resolution.reason == "Content has been archived"

    @pytest.mark.asyncio
    async def test_shares_create_no_grants(self, platform, editor, make_content):
        """Test resolving a share leaves the grant tables untouched."""
        content = await make_content()
        share = await platform.shares.create_share(editor.user_id, content.id)
        await platform.shares.resolve_share(share.access_token)
        assert await platform.grants.for_target(PricingTarget.CONTENT, content.id) == []


class TestManageShares:
    """Test listing and deleting shares."""

    @pytest.mark.asyncio
    async def test_list_content_shares(self, platform, contributor, editor, client_user, make_content):
        """Test the creator sees shares of their content and audiences do not."""
        content = await make_content()
        await platform.shares.create_share(editor.user_id, content.id)

        assert len(await platform.shares.list_content_shares(contributor.user_id, content.id)) == 1
        with pytest.raises(PermissionDeniedError):
            await platform.shares.list_content_shares(client_user.user_id, content.id)

    @pytest.mark.asyncio
    async def test_delete_share(self, platform, editor, client_user, make_content):
        """Test only the sharer or an access manager deletes a share."""
        content = await make_content()
        share = await platform.shares.create_share(editor.user_id, content.id)

        with pytest.raises(PermissionDeniedError):
            await platform.shares.delete_share(client_user.user_id, share.id)
        await platform.shares.delete_share(editor.user_id, share.id)

        assert (await platform.shares.resolve_share(share.access_token)).resolution.reason == "Invalid share link"
        with pytest.raises(EntityNotFoundError):
            await platform.shares.delete_share(editor.user_id, share.id)
