"""Tests for the admission filter."""

import pytest
from telegram import User

from telebridge.core.admission import AdmissionFilter, format_author
from telebridge.core.deduplication import BoundedKeySet
from tests.conftest import SOURCE_CHAT_ID, make_message


@pytest.fixture
def processed() -> BoundedKeySet:
    return BoundedKeySet(name="processed")


@pytest.fixture
def admission(processed) -> AdmissionFilter:
    return AdmissionFilter(str(SOURCE_CHAT_ID), is_duplicate=processed.__contains__)


class TestNormalization:
    """Normalized events and relay keys."""

    def test_channel_post_without_sender(self, admission):
        event = admission.admit(make_message())

        assert event is not None
        assert event.id == 5
        assert event.chat_id == "-100"
        assert event.author == "Unknown"
        assert event.text == "你好"
        assert event.reply_to_id is None
        assert event.relay_key == "-100:5"

    def test_key_is_deterministic(self, admission):
        message = make_message(message_id=77)

        assert admission.normalize(message).relay_key == admission.normalize(message).relay_key
        assert admission.normalize(message) == admission.normalize(message)

    def test_reply_reference(self, admission):
        event = admission.admit(make_message(reply_to=3))

        assert event.reply_to_id == 3

    def test_timestamp_is_unix_seconds(self, admission):
        event = admission.admit(make_message())

        assert event.timestamp == 1704110400


class TestAuthor:
    """Author display names."""

    def test_full_name(self, human):
        assert format_author(make_message(from_user=human)) == "Li Wei"

    def test_first_name_only(self):
        user = User(id=1, first_name="Li", is_bot=False, username="li")
        assert format_author(make_message(from_user=user)) == "Li"

    def test_handle_when_no_name(self):
        user = User(id=1, first_name="", is_bot=False, username="anon")
        assert format_author(make_message(from_user=user)) == "@anon"

    def test_unknown_when_nothing(self):
        user = User(id=1, first_name="", is_bot=False)
        assert format_author(make_message(from_user=user)) == "Unknown"


class TestRejection:
    """Events that must not be relayed."""

    def test_media_without_text(self, admission):
        assert admission.admit(make_message(text=None)) is None

    def test_blank_text(self, admission):
        assert admission.admit(make_message(text="   \n")) is None

    def test_bot_sender(self, admission):
        bot = User(id=9, first_name="Relay", is_bot=True, username="relay_bot")
        assert admission.admit(make_message(from_user=bot)) is None

    def test_other_chat(self, admission):
        assert admission.admit(make_message(chat_id=-999)) is None

    def test_duplicate(self, admission, processed):
        processed.add("-100:5")

        assert admission.admit(make_message()) is None
        assert admission.admit(make_message(message_id=6)) is not None


class TestSourceHandle:
    """Matching the source chat by @handle."""

    def test_handle_matches(self):
        admission = AdmissionFilter("@cn_channel", is_duplicate=lambda key: False)

        event = admission.admit(make_message(chat_id=-555, chat_username="cn_channel"))

        assert event is not None
        assert event.chat_id == "-555"

    def test_handle_is_case_sensitive(self):
        admission = AdmissionFilter("@cn_channel", is_duplicate=lambda key: False)

        assert admission.admit(make_message(chat_id=-555, chat_username="CN_Channel")) is None

    def test_chat_without_handle(self):
        admission = AdmissionFilter("@cn_channel", is_duplicate=lambda key: False)

        assert admission.admit(make_message(chat_id=-555)) is None
