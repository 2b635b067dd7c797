"""
Tests for link ids, command parsing and rendering helpers.
"""
import pytest

from clickbot.modules.tracking.utils.command_parser import is_valid_url, parse_track_command
from clickbot.modules.tracking.utils.link_ids import is_valid_link_id, new_link_id
from clickbot.modules.tracking.utils.rendering import (
    build_counter_button,
    format_ack_text,
    format_counter_label,
    format_link_message,
)


class TestLinkIds:
    """Test link id generation."""

    def test_new_link_id_shape(self):
        link_id = new_link_id()
        assert len(link_id) == 32
        assert is_valid_link_id(link_id) is True

    def test_new_link_ids_are_unique(self):
        ids = {new_link_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_fits_callback_data(self):
        assert len(new_link_id().encode("utf-8")) <= 64

    @pytest.mark.parametrize("token", ["", "abc", "X" * 32, "g" * 32, "a" * 65, "chart:all"])
    def test_rejects_foreign_tokens(self, token):
        assert is_valid_link_id(token) is False


class TestParseTrackCommand:
    """Test tracking command parsing."""

    def test_extracts_url(self):
        assert parse_track_command("/track https://example.com") == "https://example.com"

    def test_splits_on_first_whitespace_only(self):
        assert parse_track_command("/track   https://a.com  extra words ") == "https://a.com  extra words"

    def test_missing_argument_is_empty(self):
        assert parse_track_command("/track") == ""
        assert parse_track_command("/track   ") == ""

    def test_newline_separates_argument(self):
        assert parse_track_command("/track\nhttps://example.com") == "https://example.com"

    @pytest.mark.parametrize("text", [None, "", "   ", "hello", "track https://a.com", "/start", "/tracking https://a.com"])
    def test_non_matching_text(self, text):
        assert parse_track_command(text) is None

    def test_custom_command_name(self):
        assert parse_track_command("/link https://a.com", command="link") == "https://a.com"
        assert parse_track_command("/track https://a.com", command="link") is None

    def test_mention_must_match_bot(self):
        assert parse_track_command("/track@ClickBot https://a.com", bot_username="clickbot") == "https://a.com"
        assert parse_track_command("/track@otherbot https://a.com", bot_username="clickbot") is None
        assert parse_track_command("/track@clickbot https://a.com") is None


class TestUrlValidation:
    """Test URL validation."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com",
            "http://example.com/path?q=1#frag",
            "https://sub.example.co.uk:8443/a/b",
            "ftp://files.example.com/file.txt",
        ],
    )
    def test_valid_urls(self, url):
        assert is_valid_url(url) is True

    @pytest.mark.parametrize(
        "candidate",
        [
            None,
            "",
            "not a url",
            "example.com",
            "www.example.com/path",
            "http://",
            "https://exa mple.com",
            "/relative/path",
        ],
    )
    def test_invalid_urls(self, candidate):
        assert is_valid_url(candidate) is False


class TestRendering:
    """Test texts and buttons."""

    def test_counter_label(self):
        assert format_counter_label(0) == "Clicks: 0"
        assert format_counter_label(42) == "Clicks: 42"

    def test_ack_text(self):
        assert format_ack_text(1) == "Contador atualizado! (1 cliques)"

    def test_counter_button(self):
        button = build_counter_button("abc", "https://example.com", 3)
        assert button.label == "Clicks: 3"
        assert button.activation_url == "https://example.com"
        assert button.correlation_token == "abc"

    def test_link_message_escapes_html(self):
        assert format_link_message("https://a.com/?x=1&y=<2>") == "🔗 https://a.com/?x=1&amp;y=&lt;2&gt;"
