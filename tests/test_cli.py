"""Tests for the ethoslink CLI."""

import json

import pytest

from ethoslink.cli import build_parser, main


# ─── Parser tests ──────────────────────────────────────────────────

class TestParser:
    def test_build_parser(self):
        assert build_parser() is not None

    def test_no_command_exits(self):
        with pytest.raises(SystemExit):
            main([])

    def test_json_flag_parsed(self):
        args = build_parser().parse_args(["--json", "execute", "user_profile", "userkey=cookedzera"])
        assert args.json is True
        assert args.command == "execute"
        assert args.params == ["userkey=cookedzera"]

    def test_trailing_json_flag(self):
        args = build_parser().parse_args(["execute", "user_profile", "userkey=cookedzera", "--json"])
        assert args.json is True

    def test_leading_json_flag_survives_subparser(self):
        args = build_parser().parse_args(["--json", "execute", "leaderboard"])
        assert args.json is True


# ─── normalize ─────────────────────────────────────────────────────

class TestNormalize:
    def test_returns_descriptor(self):
        result = main(["normalize", "vitalik.eth"])
        assert result["kind"] == "ens_name"
        assert result["userkey"] == "address:vitalik.eth"

    def test_json_output(self, capsys):
        main(["--json", "normalize", "profileId:10"])
        out = json.loads(capsys.readouterr().out)
        assert out["kind"] == "profile_id"
        assert out["normalizedValue"] == "10"

    def test_human_output(self, capsys):
        main(["normalize", "cookedzera"])
        out = capsys.readouterr().out
        assert "Kind:    unknown" in out


# ─── intents ───────────────────────────────────────────────────────

def test_intents_lists_all(capsys):
    result = main(["intents"])
    assert "user_comparison" in result["intents"]
    assert len(result["intents"]) == 14
    assert "reputation_trends" in capsys.readouterr().out


# ─── execute ───────────────────────────────────────────────────────

class TestExecute:
    def test_unsupported_intent(self, capsys):
        result = main(["--json", "execute", "foo"])
        assert result["success"] is False
        out = json.loads(capsys.readouterr().out)
        assert out["message"] == 'Intent "foo" not supported'

    def test_missing_parameter_human(self, capsys):
        result = main(["execute", "user_comparison", "userkeys=vitalik"])
        assert result["success"] is False
        assert "❌" in capsys.readouterr().out

    def test_bad_parameter_syntax(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["execute", "user_profile", "cookedzera"])
        assert exc.value.code == 2
        assert "key=value" in capsys.readouterr().err
