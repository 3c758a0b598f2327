from __future__ import annotations

import json

import pytest

from tilecatalog.errors import SchemaError, SchemaErrorKind
from tilecatalog.property_decoder import PropertyType
from tilecatalog.schema_registry import (
    FieldSpec,
    KindSchema,
    SchemaRegistry,
    build_builtin_registry,
    default_registry,
    load_schema_file,
)

BUILTIN_KINDS = {"player", "enemy", "chest", "shield", "weapon", "potion", "terrain"}


def test_builtin_registry_has_every_kind(registry: SchemaRegistry) -> None:
    assert set(registry.kinds()) == BUILTIN_KINDS
    assert registry.frozen
    assert len(registry) == len(BUILTIN_KINDS)


def test_every_schema_declares_required_string_kind(registry: SchemaRegistry) -> None:
    for kind in registry.kinds():
        spec = registry.schema_for(kind).field_for("kind")
        assert spec is not None
        assert spec.type == PropertyType.STRING
        assert spec.required
        assert not spec.has_default


def test_no_required_field_has_a_default(registry: SchemaRegistry) -> None:
    for kind in registry.kinds():
        for spec in registry.schema_for(kind).fields.values():
            assert not (spec.required and spec.has_default), (kind, spec.name)


def test_defaults_match_declared_types(registry: SchemaRegistry) -> None:
    for kind in registry.kinds():
        for spec in registry.schema_for(kind).fields.values():
            if spec.has_default:
                assert spec.type.accepts(spec.default), (kind, spec.name)


def test_weapon_schema_fields(registry: SchemaRegistry) -> None:
    weapon = registry.schema_for("weapon")
    assert set(weapon.required_fields()) == {"kind", "cooldown", "speed"}
    assert weapon.field_for("cooldown").type == PropertyType.FLOAT
    assert weapon.field_for("initial").default is False
    assert weapon.field_for("attack").type == PropertyType.STRING


def test_terrain_is_selected_by_walkable(registry: SchemaRegistry) -> None:
    assert registry.discriminators() == {"walkable": "terrain"}
    assert registry.schema_for("terrain").field_for("walkable").required


def test_unknown_kind_is_not_found(registry: SchemaRegistry) -> None:
    with pytest.raises(SchemaError) as exc_info:
        registry.schema_for("dragon")
    assert exc_info.value.kind == SchemaErrorKind.NOT_FOUND
    assert exc_info.value.reason == "NotFound(dragon)"
    assert "dragon" not in registry


def test_default_registry_is_shared() -> None:
    assert default_registry() is default_registry()
    assert build_builtin_registry() is not default_registry()


def test_frozen_registry_rejects_registration(registry: SchemaRegistry) -> None:
    with pytest.raises(RuntimeError):
        registry.register(KindSchema("trap", {}))


def test_duplicate_kind_rejected() -> None:
    registry = SchemaRegistry([KindSchema("trap", {})])
    with pytest.raises(ValueError):
        registry.register(KindSchema("trap", {}))


def test_duplicate_discriminator_rejected() -> None:
    walkable = {"walkable": FieldSpec("walkable", PropertyType.BOOL, required=True)}
    registry = SchemaRegistry([KindSchema("terrain", walkable, discriminator="walkable")])
    with pytest.raises(ValueError):
        registry.register(KindSchema("water", walkable, discriminator="walkable"))


@pytest.mark.parametrize(
    "fields",
    [
        {"damage": FieldSpec("damage", PropertyType.INT, required=True, default=5)},
        {"damage": FieldSpec("damage", PropertyType.INT, default="5")},
        {"damage": FieldSpec("damage", PropertyType.INT, default=True)},
        {"damage": FieldSpec("dmg", PropertyType.INT)},
        {"damage": FieldSpec("damage", "int")},
        {"kind": FieldSpec("kind", PropertyType.INT, required=True)},
        {"kind": FieldSpec("kind", PropertyType.STRING)},
    ],
)
def test_invalid_field_specs_are_rejected(fields) -> None:
    with pytest.raises(SchemaError) as exc_info:
        KindSchema("trap", fields)
    assert exc_info.value.kind == SchemaErrorKind.INVALID_SCHEMA


def test_kind_field_is_added_when_missing() -> None:
    schema = KindSchema("trap", {"damage": FieldSpec("damage", PropertyType.INT)})
    assert set(schema.fields) == {"kind", "damage"}
    assert schema.required_fields() == ["kind"]


def test_float_field_accepts_int_default() -> None:
    schema = KindSchema("trap", {"delay": FieldSpec("delay", PropertyType.FLOAT, default=1)})
    assert schema.field_for("delay").default == 1


def test_from_config_builds_frozen_registry() -> None:
    registry = SchemaRegistry.from_config({
        "schemas": [
            {"kind": "trap", "fields": {
                "damage": {"type": "int", "required": True},
                "hidden": {"type": "bool", "default": False},
                "label": {},
            }},
            {"kind": "water", "discriminator": "swimmable",
             "fields": {"swimmable": {"type": "bool", "required": True}}},
        ]
    })

    assert registry.frozen
    assert registry.kinds() == ["trap", "water"]
    trap = registry.schema_for("trap")
    assert trap.field_for("damage").required
    assert trap.field_for("hidden").default is False
    assert trap.field_for("label").type == PropertyType.STRING
    assert registry.discriminators() == {"swimmable": "water"}


@pytest.mark.parametrize(
    "document",
    [
        {},
        {"schemas": {}},
        {"schemas": [{"fields": {}}]},
        {"schemas": [{"kind": ""}]},
        {"schemas": [{"kind": "trap", "fields": []}]},
        {"schemas": [{"kind": "trap", "fields": {"damage": "int"}}]},
        {"schemas": [{"kind": "trap", "fields": {"damage": {"type": "color"}}}]},
        {"schemas": [{"kind": "trap", "fields": {"damage": {"type": "int", "default": "x"}}}]},
        {"schemas": [{"kind": "trap", "discriminator": 3}]},
        {"schemas": [{"kind": "trap", "fields": {"damage": {"type": "int", "required": "false"}}}]},
        {"schemas": [{"kind": "trap", "fields": {"damage": {"type": "int", "required": 1}}}]},
        {"schemas": [{"kind": "trap"}, {"kind": "trap"}]},
    ],
)
def test_from_config_rejects_malformed_documents(document) -> None:
    with pytest.raises(SchemaError) as exc_info:
        SchemaRegistry.from_config(document)
    assert exc_info.value.kind == SchemaErrorKind.INVALID_SCHEMA


def test_load_schema_file(tmp_path) -> None:
    path = tmp_path / "schemas.json"
    path.write_text(json.dumps({"schemas": [{"kind": "trap", "fields": {"damage": {"type": "int"}}}]}))

    registry = load_schema_file(path)

    assert registry.kinds() == ["trap"]


def test_load_schema_file_reports_unreadable_file(tmp_path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{not json")

    with pytest.raises(SchemaError):
        load_schema_file(broken)
    with pytest.raises(SchemaError):
        load_schema_file(tmp_path / "missing.json")


def test_required_flag_must_be_boolean() -> None:
    document = {"schemas": [{"kind": "trap", "fields": {"damage": {"type": "int", "required": "false"}}}]}

    with pytest.raises(SchemaError) as exc_info:
        SchemaRegistry.from_config(document)

    assert exc_info.value.reason == "InvalidSchema(damage)"
