from __future__ import annotations

from pathlib import Path

import pytest

from exporters.render_gas_tag import main, parse_accounts, parse_calls


def test_parse_accounts_supports_named_accounts() -> None:
    assert parse_accounts(["UA-1-1", "custom=UA-2-2"]) == {0: "UA-1-1", "custom": "UA-2-2"}
    assert parse_accounts(None) is None


def test_parse_calls_splits_method_and_value() -> None:
    assert parse_calls(["_trackPageview", "_setSiteSpeedSampleRate=10"]) == [
        "_trackPageview",
        ("_setSiteSpeedSampleRate", "10"),
    ]


def test_main_prints_tag_with_defaults(capsys) -> None:
    main(["--account", "UA-2222-2", "--domain", ".example.com", "--defaults"])

    out = capsys.readouterr().out
    assert "_gas.push(['_setAccount', 'UA-2222-2']);" in out
    assert "_gas.push(['_gasTrackVimeo', {'force': true}]);" in out
    assert "_setAllowLinker" not in out


def test_main_writes_output_file(tmp_path: Path, capsys) -> None:
    output = tmp_path / "tags" / "gas.html"

    main(
        [
            "--account",
            "shop=UA-1-1",
            "--domain",
            ".a.com",
            "--domain",
            ".b.com",
            "--call",
            "_trackPageview",
            "--script-url",
            "https://cdn.example.com/gas.js",
            "--output",
            str(output),
        ],
    )

    tag = output.read_text(encoding="utf-8")
    assert "_gas.push(['shop._setAccount', 'UA-1-1']);" in tag
    assert "_gas.push(['_setAllowLinker', true]);" in tag
    assert tag.index("_gasMultiDomain") < tag.index("_trackPageview")
    assert "ga.src = 'https://cdn.example.com/gas.js';" in tag
    assert f"Wrote gas tag to {output}" in capsys.readouterr().out


def test_main_reports_and_reraises_errors(monkeypatch, capsys) -> None:
    monkeypatch.delenv("GAS_TARGETS_JSON", raising=False)

    with pytest.raises(ValueError):
        main(["--account", "UA-1-1"])

    assert capsys.readouterr().out.startswith("Error:")


def test_parse_accounts_rejects_repeated_names() -> None:
    with pytest.raises(ValueError, match="shop"):
        parse_accounts(["shop=UA-1-1", "shop=UA-2-2"])
