"""
Unit tests for the command line entry point.
"""

import pytest

from fileserver.__main__ import build_parser, config_from_args, main


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("FILESERVER_HOST", "FILESERVER_PORT", "FILESERVER_WORKERS",
                 "FILESERVER_ROOT", "FILESERVER_ETAG_POLICY",
                 "FILESERVER_LOG_LEVEL", "FILESERVER_TIMEOUT", "DOCUMENT_ROOT"):
        monkeypatch.delenv(name, raising=False)


def parse(*argv: str):
    return config_from_args(build_parser().parse_args(list(argv)))


class TestArguments:

    def test_defaults(self):
        config = parse()

        assert config.root_dir == "."
        assert config.port == 8080
        assert config.log_format == "text"

    def test_all_options(self, site_root):
        config = parse(
            str(site_root),
            "--host", "0.0.0.0",
            "--port", "9000",
            "--workers", "3",
            "--etag-policy", "content",
            "--log-level", "debug",
            "--log-format", "json",
        )

        assert config.root_dir == str(site_root)
        assert config.host == "0.0.0.0"
        assert config.port == 9000
        assert (config.min_workers, config.max_workers) == (3, 6)
        assert config.etag_policy == "content"
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"

    def test_short_options(self):
        config = parse("-H", "::1", "-p", "1234", "-e", "stat")

        assert config.host == "::1"
        assert config.port == 1234

    def test_environment_fills_gaps(self, monkeypatch, site_root):
        monkeypatch.setenv("FILESERVER_ROOT", str(site_root))
        monkeypatch.setenv("FILESERVER_PORT", "7000")

        config = parse("--port", "7001")

        assert config.root_dir == str(site_root)
        assert config.port == 7001

    def test_unknown_policy_is_rejected(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse("--etag-policy", "random")

        assert exc_info.value.code == 2

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse("--version")

        assert exc_info.value.code == 0
        assert "fileserver 1.0.0" in capsys.readouterr().out


class TestMain:

    def test_missing_root(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing")]) == 1
        assert "Error: Document root is not a directory" in capsys.readouterr().err

    def test_bad_environment(self, monkeypatch, capsys):
        monkeypatch.setenv("FILESERVER_PORT", "eighty")

        assert main([]) == 1
        assert capsys.readouterr().err.startswith("Error:")

    def test_runs_server(self, monkeypatch, site_root):
        calls = []
        monkeypatch.setattr("fileserver.server.FileServer.run", lambda self: calls.append(self))

        assert main([str(site_root), "--port", "0"]) == 0
        assert len(calls) == 1
        assert calls[0].site.root == site_root.resolve()

    def test_bind_failure(self, monkeypatch, site_root, capsys):
        def refuse(self):
            raise OSError("Address already in use")

        monkeypatch.setattr("fileserver.server.FileServer.run", refuse)

        assert main([str(site_root)]) == 1
        assert "Address already in use" in capsys.readouterr().err
