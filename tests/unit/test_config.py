"""
Unit tests for ServerConfig and the command-line parser.
"""

import pytest

from crudserver.__main__ import build_parser
from crudserver.config import DEFAULT_PORT, ServerConfig


class TestServerConfig:
    """Tests for ServerConfig defaults and validation."""

    def test_defaults(self):
        config = ServerConfig()

        assert config.host == "127.0.0.1"
        assert config.port == DEFAULT_PORT == 8080
        assert config.log_format == "text"
        assert config.custom_header_name == "X-Custom-Header"
        assert config.custom_header_value == "Pav bhaji ka kya bhav paaji"
        config.validate()

    def test_port_zero_allowed(self):
        ServerConfig(port=0).validate()

    @pytest.mark.parametrize("kwargs", [
        {"port": -1},
        {"port": 65536},
        {"min_workers": 0},
        {"min_workers": 4, "max_workers": 2},
        {"buffer_size": 512},
        {"timeout": 0},
        {"log_level": "LOUD"},
        {"log_format": "xml"},
        {"custom_header_name": ""},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            ServerConfig(**kwargs).validate()

    def test_log_level_case_insensitive(self):
        ServerConfig(log_level="debug").validate()


class TestCommandLine:
    """Tests for the argparse parser."""

    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.host == "127.0.0.1"
        assert args.port == 8080
        assert args.workers == 4
        assert args.log_level == "INFO"
        assert args.log_format == "text"

    def test_overrides(self):
        args = build_parser().parse_args([
            "--host", "0.0.0.0",
            "-p", "3000",
            "-w", "2",
            "--log-level", "debug",
            "--log-format", "json",
        ])

        assert (args.host, args.port, args.workers) == ("0.0.0.0", 3000, 2)
        assert args.log_level == "DEBUG"
        assert args.log_format == "json"

    def test_rejects_unknown_format(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--log-format", "xml"])
