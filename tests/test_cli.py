from __future__ import annotations

import json

import pytest

from tilecatalog.__main__ import EXIT_EXCLUDED, EXIT_LOAD_FAILED, EXIT_OK, main


@pytest.fixture()
def tilesets(fixtures_dir):
    return [str(fixtures_dir / "lovelite.tsx"), str(fixtures_dir / "balance_patch.tsj")]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("TILECATALOG_EXTENSION_TOLERANT", "TILECATALOG_WORKERS", "TILECATALOG_STRICT"):
        monkeypatch.delenv(name, raising=False)


def test_summary(tilesets, capsys) -> None:
    assert main(tilesets) == EXIT_OK

    out = capsys.readouterr().out
    assert "11 templates from 2 tables" in out
    assert "  weapon: 3" in out
    assert "UnknownField(color)" in out


def test_kind_listing(tilesets, capsys) -> None:
    assert main(tilesets + ["--kind", "enemy"]) == EXIT_OK

    out = capsys.readouterr().out
    assert "84: " in out
    assert "behavior=wizard" in out


def test_json_export(tilesets, tmp_path) -> None:
    output = tmp_path / "out" / "catalog.json"

    assert main(tilesets + ["--output", str(output), "--workers", "3"]) == EXIT_OK

    exported = json.loads(output.read_text(encoding="utf-8"))
    assert [t["tileId"] for t in exported["weapon"]] == [103, 117, 129]
    assert exported["potion"][0]["fields"] == {"kind": "potion", "amount": 75}


def test_strict_fails_on_excluded_tiles(tmp_path, capsys) -> None:
    path = tmp_path / "broken.tsj"
    path.write_text(json.dumps({"type": "tileset", "tiles": [
        {"id": 1, "properties": [{"name": "kind", "value": "potion"}]},
    ]}))

    assert main([str(path)]) == EXIT_OK
    assert main([str(path), "--strict"]) == EXIT_EXCLUDED
    assert "MissingRequiredField(amount)" in capsys.readouterr().out


def test_strict_from_environment(tmp_path, monkeypatch) -> None:
    path = tmp_path / "broken.tsj"
    path.write_text(json.dumps({"type": "tileset", "tiles": [
        {"id": 1, "properties": [{"name": "kind", "value": "dragon"}]},
    ]}))
    monkeypatch.setenv("TILECATALOG_STRICT", "1")

    assert main([str(path)]) == EXIT_EXCLUDED


def test_unreadable_tileset(tmp_path) -> None:
    assert main([str(tmp_path / "missing.tsx")]) == EXIT_LOAD_FAILED


def test_invalid_workers(tilesets) -> None:
    assert main(tilesets + ["--workers", "0"]) == EXIT_LOAD_FAILED


def test_custom_schema_file(tmp_path, capsys) -> None:
    schemas = tmp_path / "schemas.json"
    schemas.write_text(json.dumps({"schemas": [
        {"kind": "trap", "fields": {"damage": {"type": "int", "required": True}}},
    ]}))
    tileset = tmp_path / "traps.tsj"
    tileset.write_text(json.dumps({"type": "tileset", "tiles": [
        {"id": 4, "properties": [{"name": "kind", "value": "trap"}, {"name": "damage", "type": "int", "value": 8}]},
    ]}))

    assert main([str(tileset), "--schemas", str(schemas), "--kind", "trap"]) == EXIT_OK
    assert "4: damage=8" in capsys.readouterr().out


def _tileset_with_bad_potion(tmp_path):
    path = tmp_path / "t.tsj"
    path.write_text(json.dumps({"type": "tileset", "tiles": [
        {"id": 113, "properties": [{"name": "kind", "value": "potion"}, {"name": "amount", "type": "int", "value": 5}]},
        {"id": 120, "properties": [{"name": "kind", "value": "potion"}]},
    ]}))
    return str(path)


def test_stdout_holds_only_the_report(tmp_path, capsys) -> None:
    assert main([_tileset_with_bad_potion(tmp_path)]) == EXIT_OK

    captured = capsys.readouterr()
    assert "tilecatalog.catalog" not in captured.out
    assert " - WARNING - " not in captured.out
    assert captured.out.count("MissingRequiredField(amount)") == 1
    assert "Excluding tile 120" in captured.err


def test_quiet_silences_tile_warnings(tmp_path, capsys) -> None:
    assert main([_tileset_with_bad_potion(tmp_path), "--quiet"]) == EXIT_OK

    captured = capsys.readouterr()
    assert "Excluding tile" not in captured.err
    assert "[error] MissingRequiredField(amount)" in captured.out
