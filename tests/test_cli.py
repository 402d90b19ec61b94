"""Tests for the CLI commands"""

import json

import pytest
from typer.testing import CliRunner

from form_builder.cli.main import app
from form_builder.db.sqlite import SQLiteSubmissionSink, SQLiteTemplateStore
from form_builder.models.template import (
    ConditionalRule,
    FieldOption,
    FieldType,
    FormField,
    FormTemplate,
)
from form_builder.services.serialization import template_to_dict

runner = CliRunner()


@pytest.fixture
def store():
    return SQLiteTemplateStore()


@pytest.fixture
def stored(store, booking_template):
    return store.create(booking_template)


@pytest.fixture
def short_form(store):
    """Four questions; the last only appears for guests bringing a pet"""
    return store.create(FormTemplate(
        name="Quick booking",
        fields=[
            FormField(id="name", type=FieldType.TEXT, label="Full name", required=True, order=1),
            FormField(id="room", type=FieldType.SELECT, label="Room", required=True, order=2, options=[
                FieldOption(value="single", label="Single"),
                FieldOption(value="double", label="Double"),
            ]),
            FormField(id="pets", type=FieldType.CHECKBOX, label="Pet", order=3,
                      options=[FieldOption(value="yes", label="Yes")]),
            FormField(id="pet_details", type=FieldType.TEXTAREA, label="Pet details", required=True, order=4,
                      conditional=ConditionalRule(field_id="pets", operator="equals", value=True)),
        ],
    ))


class TestInit:
    def test_init(self, tmp_path):
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        assert (tmp_path / "test.db").exists()


class TestTemplates:
    def test_list_json(self, stored):
        result = runner.invoke(app, ["templates", "--json"])
        assert result.exit_code == 0
        assert [t["id"] for t in json.loads(result.stdout)] == [stored.id]

    def test_list_filtered_empty(self, stored):
        result = runner.invoke(app, ["templates", "--category", "survey"])
        assert result.exit_code == 0
        assert "No templates found" in result.stdout

    def test_detail(self, stored):
        result = runner.invoke(app, ["template", stored.id, "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["name"] == "Room booking"

    def test_detail_missing(self):
        result = runner.invoke(app, ["template", "nope"])
        assert result.exit_code == 1
        assert "not found" in result.stdout


class TestImportExport:
    def test_export_then_import(self, stored, store, tmp_path):
        target = tmp_path / "export" / "booking.json"
        result = runner.invoke(app, ["export", stored.id, "--output", str(target)])
        assert result.exit_code == 0
        assert json.loads(target.read_text(encoding="utf-8"))["id"] == stored.id

        result = runner.invoke(app, ["import", str(target)])
        assert result.exit_code == 0
        assert len(store.list()) == 2

    def test_import_overwrite(self, stored, store, tmp_path):
        data = template_to_dict(stored)
        data["name"] = "Renamed"
        source = tmp_path / "renamed.json"
        source.write_text(json.dumps(data), encoding="utf-8")

        result = runner.invoke(app, ["import", str(source), "--overwrite"])
        assert result.exit_code == 0
        assert store.get(stored.id).name == "Renamed"

    def test_import_invalid_json(self, tmp_path):
        source = tmp_path / "broken.json"
        source.write_text("{not json", encoding="utf-8")
        assert runner.invoke(app, ["import", str(source)]).exit_code == 1

    def test_export_csv_to_stdout(self, stored):
        result = runner.invoke(app, ["export", stored.id, "--format", "csv"])
        assert result.exit_code == 0
        assert result.stdout.startswith("order,id,type,label")

    def test_export_unknown_format(self, stored):
        assert runner.invoke(app, ["export", stored.id, "--format", "pdf"]).exit_code == 1


class TestDuplicateDelete:
    def test_duplicate(self, stored, store):
        result = runner.invoke(app, ["duplicate", stored.id, "--name", "Winter booking"])
        assert result.exit_code == 0
        assert sorted(t.name for t in store.list()) == ["Room booking", "Winter booking"]

    def test_delete_with_confirmation(self, stored, store):
        result = runner.invoke(app, ["delete", stored.id], input="y\n")
        assert result.exit_code == 0
        assert store.list() == []

    def test_delete_cancelled(self, stored, store):
        result = runner.invoke(app, ["delete", stored.id], input="n\n")
        assert result.exit_code == 0
        assert len(store.list()) == 1


class TestCheck:
    def test_ready(self, booking_template, tmp_path):
        source = tmp_path / "ok.json"
        source.write_text(json.dumps(template_to_dict(booking_template)), encoding="utf-8")
        result = runner.invoke(app, ["check", str(source)])
        assert result.exit_code == 0
        assert "ready to publish" in result.stdout

    def test_problems(self, tmp_path):
        source = tmp_path / "empty.json"
        source.write_text(json.dumps({"name": ""}), encoding="utf-8")
        result = runner.invoke(app, ["check", str(source)])
        assert result.exit_code == 1
        assert "Template name is required" in result.stdout


class TestFill:
    def test_fill_with_conditional_field(self, short_form):
        result = runner.invoke(app, ["fill", short_form.id], input="Ada\n2\ny\nSmall dog\n")
        assert result.exit_code == 0, result.stdout
        assert "Thank you!" in result.stdout

        submissions = SQLiteSubmissionSink().list_for_template(short_form.id)
        assert len(submissions) == 1
        assert submissions[0].values == {
            "name": "Ada",
            "room": "double",
            "pets": True,
            "pet_details": "Small dog",
        }

    def test_fill_asks_again_after_errors(self, short_form):
        result = runner.invoke(app, ["fill", short_form.id, "--no-save"], input="\n1\nn\nAda\n")
        assert result.exit_code == 0, result.stdout
        assert "Full name is required" in result.stdout
        assert SQLiteSubmissionSink().list_for_template(short_form.id) == []

    def test_fill_unknown_template(self):
        assert runner.invoke(app, ["fill", "nope"]).exit_code == 1
