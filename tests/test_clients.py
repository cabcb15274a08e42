"""Tests for the Telegram transport clients with mocked API objects."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram.error import BadRequest, NetworkError, RetryAfter

from telebridge.clients.bot_client import BotClientManager
from telebridge.clients.client_factory import ClientFactory
from telebridge.clients.user_client import UserClientManager
from telebridge.core.errors import DeliveryFailure, FormatRejected, VerificationUncertain


@pytest.fixture
def bot() -> MagicMock:
    bot = MagicMock()
    bot.send_message = AsyncMock(return_value=MagicMock(message_id=77))
    bot.forward_message = AsyncMock(return_value=MagicMock(message_id=88))
    bot.delete_message = AsyncMock(return_value=True)
    return bot


@pytest.fixture
def bot_client(test_settings, bot) -> BotClientManager:
    client = BotClientManager(test_settings)
    client.bot = bot
    return client


class TestSendText:

    @pytest.mark.asyncio
    async def test_sends_to_destination(self, bot_client, bot):
        message_id = await bot_client.send_text("hello", parse_mode="Markdown")

        assert message_id == 77
        bot.send_message.assert_awaited_once_with(chat_id="-200", text="hello", parse_mode="Markdown")

    @pytest.mark.asyncio
    async def test_parse_error_is_format_rejected(self, bot_client, bot):
        bot.send_message.side_effect = BadRequest("Can't parse entities: can't find end of the entity")

        with pytest.raises(FormatRejected):
            await bot_client.send_text("*oops", parse_mode="Markdown")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        BadRequest("Chat not found"),
        RetryAfter(5),
        NetworkError("connection reset"),
    ])
    async def test_other_errors_are_delivery_failures(self, bot_client, bot, error):
        bot.send_message.side_effect = error

        with pytest.raises(DeliveryFailure):
            await bot_client.send_text("hello")

    @pytest.mark.asyncio
    async def test_not_initialized(self, test_settings):
        with pytest.raises(DeliveryFailure):
            await BotClientManager(test_settings).send_text("hello")


class TestCheckStillExists:

    @pytest.mark.asyncio
    async def test_exists_and_probe_removed(self, bot_client, bot):
        assert await bot_client.check_still_exists("-100", 5) is True

        bot.forward_message.assert_awaited_once_with(
            chat_id="-200", from_chat_id="-100", message_id=5, disable_notification=True
        )
        bot.delete_message.assert_awaited_once_with(chat_id="-200", message_id=88)

    @pytest.mark.asyncio
    async def test_deleted(self, bot_client, bot):
        bot.forward_message.side_effect = BadRequest("Message to forward not found")

        assert await bot_client.check_still_exists("-100", 5) is False

    @pytest.mark.asyncio
    async def test_probe_cleanup_failure_ignored(self, bot_client, bot):
        bot.delete_message.side_effect = BadRequest("Message can't be deleted")

        assert await bot_client.check_still_exists("-100", 5) is True

    @pytest.mark.asyncio
    async def test_other_errors_are_uncertain(self, bot_client, bot):
        bot.forward_message.side_effect = NetworkError("timeout")

        with pytest.raises(VerificationUncertain):
            await bot_client.check_still_exists("-100", 5)


class TestDeletionWatcher:

    @pytest.mark.asyncio
    async def test_reports_source_deletions(self, test_settings):
        watcher = UserClientManager(test_settings)
        watcher.source_peer_id = -100
        watcher._on_retraction = AsyncMock()

        await watcher._handle_deleted(-100, [5, 6])

        watcher._on_retraction.assert_awaited_once_with("-100", [5, 6])

    @pytest.mark.asyncio
    async def test_ignores_other_chats_and_missing_chat_id(self, test_settings):
        watcher = UserClientManager(test_settings)
        watcher.source_peer_id = -100
        watcher._on_retraction = AsyncMock()

        await watcher._handle_deleted(-999, [5])
        await watcher._handle_deleted(None, [5])

        watcher._on_retraction.assert_not_called()

    @pytest.mark.asyncio
    async def test_ignores_deletions_before_source_resolved(self, test_settings):
        watcher = UserClientManager(test_settings)
        watcher._on_retraction = AsyncMock()

        await watcher._handle_deleted(-100, [5])

        assert watcher.source_peer_id is None
        watcher._on_retraction.assert_not_called()


class TestClientFactory:

    def test_watcher_only_with_credentials(self, test_settings):
        assert ClientFactory(test_settings).user_client is None

        settings = test_settings.model_copy(update={"telegram_api_id": 1, "telegram_api_hash": "h"})
        assert isinstance(ClientFactory(settings).user_client, UserClientManager)

    @pytest.mark.asyncio
    async def test_delegates_to_bot_client(self, test_settings, bot):
        factory = ClientFactory(test_settings)
        factory.bot_client.bot = bot

        assert await factory.send_text("hi") == 77
        assert await factory.check_still_exists("-100", 5) is True
        assert factory.max_message_length == 4096
