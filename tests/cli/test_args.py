"""Tests for command line parsing."""

import pytest

from monitorhub.cli.args import LINE_ENDINGS, parse_args


class TestParseArgs:
    """Tests for parse_args."""

    def test_default_is_serve(self):
        """Test running without a subcommand serves."""
        args = parse_args([])

        assert args.command == "serve"
        assert args.config == "config.yaml"
        assert args.host is None
        assert args.port is None

    def test_serve_options(self):
        """Test serve overrides."""
        args = parse_args(["serve", "-c", "my.yaml", "--host", "0.0.0.0", "--port", "9000", "-v"])

        assert args.config == "my.yaml"
        assert args.host == "0.0.0.0"
        assert args.port == 9000
        assert args.verbose

    def test_console(self):
        """Test console options."""
        args = parse_args(
            ["console", "ws://127.0.0.1:8765/ws/monitors/x", "-t", "--line-ending", "crlf"]
        )

        assert args.command == "console"
        assert args.url == "ws://127.0.0.1:8765/ws/monitors/x"
        assert args.timestamp
        assert LINE_ENDINGS[args.line_ending] == "\r\n"

    def test_console_rejects_non_positive_ceiling(self):
        """Test the character ceiling must be positive."""
        with pytest.raises(SystemExit):
            parse_args(["console", "ws://x", "--max-characters", "0"])

    def test_unknown_line_ending(self):
        """Test only known line endings are accepted."""
        with pytest.raises(SystemExit):
            parse_args(["console", "ws://x", "--line-ending", "lfcr"])
