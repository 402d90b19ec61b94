"""Tests for the runtime renderer"""

import pytest

from form_builder.models.results import RendererState
from form_builder.models.template import (
    ConditionalRule,
    FieldOption,
    FieldType,
    FormField,
    FormSettings,
    FormTemplate,
)
from form_builder.services.builder import BuilderSession
from form_builder.services.ordering import FieldNotFoundError
from form_builder.services.renderer import FormRenderer, initial_values
from form_builder.services.widgets import WidgetRegistry


@pytest.fixture
def toggle_template():
    """B is shown only while A equals 'yes'"""
    return FormTemplate(
        id="tpl-1",
        name="Toggle",
        fields=[
            FormField(id="a", type=FieldType.RADIO, label="A", order=1, options=[
                FieldOption(value="yes", label="Yes"),
                FieldOption(value="no", label="No"),
            ]),
            FormField(id="b", type=FieldType.TEXT, label="B", required=True, order=2,
                      conditional=ConditionalRule(field_id="a", operator="equals", value="yes")),
        ],
    )


class TestVisibility:
    def test_hidden_value_is_kept_but_not_submitted(self, toggle_template):
        renderer = FormRenderer(toggle_template)
        renderer.set_value("a", "yes")
        assert renderer.is_visible("b")
        renderer.set_value("b", "hello")

        renderer.set_value("a", "no")
        assert not renderer.is_visible("b")
        assert renderer.values["b"] == "hello"

        result = renderer.submit()
        assert result.accepted
        assert result.values == {"a": "no"}

    def test_showing_again_restores_value(self, toggle_template):
        renderer = FormRenderer(toggle_template)
        renderer.set_value("a", "yes")
        renderer.set_value("b", "hello")
        renderer.set_value("a", "no")
        renderer.set_value("a", "yes")
        views = {v.id: v for v in renderer.field_views()}
        assert views["b"].value == "hello"

    def test_hidden_required_field_does_not_block_submit(self, toggle_template):
        renderer = FormRenderer(toggle_template)
        renderer.set_value("a", "no")
        assert renderer.submit().accepted

    def test_visible_required_field_blocks_submit(self, toggle_template):
        renderer = FormRenderer(toggle_template)
        renderer.set_value("a", "yes")
        result = renderer.submit()
        assert result.state == RendererState.REJECTED
        assert result.errors == {"b": "B is required"}
        assert renderer.errors == {"b": "B is required"}

    def test_fields_render_in_order(self, booking_template):
        booking_template.fields.reverse()
        renderer = FormRenderer(booking_template)
        assert [f.id for f in renderer.visible_fields()] == ["name", "email", "room", "pets", "guests"]


class TestEditing:
    def test_set_value_clears_field_error(self, toggle_template):
        renderer = FormRenderer(toggle_template)
        renderer.set_value("a", "yes")
        renderer.submit()
        renderer.set_value("b", "fixed")
        assert "b" not in renderer.errors
        assert renderer.state == RendererState.EDITING

    def test_unknown_field(self, toggle_template):
        renderer = FormRenderer(toggle_template)
        with pytest.raises(FieldNotFoundError):
            renderer.set_value("zzz", 1)

    def test_reset(self, toggle_template):
        renderer = FormRenderer(toggle_template)
        renderer.set_value("a", "yes")
        renderer.submit()
        renderer.reset()
        assert renderer.values == {}
        assert renderer.errors == {}
        assert not renderer.is_visible("b")

    def test_template_is_not_modified(self, toggle_template):
        renderer = FormRenderer(toggle_template)
        renderer.set_value("a", "yes")
        renderer.submit()
        assert toggle_template.fields[1].label == "B"
        assert renderer.template is not toggle_template


class TestSubmit:
    def test_booking_flow(self, booking_template, memory_sink):
        renderer = FormRenderer(booking_template)
        renderer.set_value("name", "Ada Lovelace")
        renderer.set_value("email", "ada@example.com")
        renderer.set_value("room", "suite")
        renderer.set_value("pets", True)
        assert renderer.is_visible("pet_details")

        rejected = renderer.submit(memory_sink)
        assert list(rejected.errors) == ["pet_details"]
        assert memory_sink.submissions == []

        renderer.set_value("pet_details", "A small dog")
        renderer.set_value("guests", 2)
        accepted = renderer.submit(memory_sink)
        assert accepted.accepted
        assert accepted.submission_id == memory_sink.submissions[0].id
        assert memory_sink.submissions[0].values["pet_details"] == "A small dog"

    def test_first_error_per_field(self, booking_template):
        renderer = FormRenderer(booking_template)
        renderer.set_value("name", "A")
        renderer.set_value("email", "not-an-email")
        renderer.set_value("guests", 9)
        errors = renderer.submit().errors
        assert errors["name"] == "Full name is invalid"
        assert errors["email"] == "Email is invalid"
        assert errors["room"] == "Room type is required"
        assert errors["guests"] == "Guests is invalid"

    def test_sink_errors_propagate(self, toggle_template):
        class BrokenSink:
            def record(self, template_id, values):
                raise RuntimeError("queue down")

        renderer = FormRenderer(toggle_template)
        with pytest.raises(RuntimeError):
            renderer.submit(BrokenSink())


class TestProgress:
    def test_disabled_by_default(self, booking_template):
        assert FormRenderer(booking_template).progress() is None

    def test_counts_visible_inputs(self, booking_template):
        booking_template.settings = FormSettings(enable_progress_bar=True)
        renderer = FormRenderer(booking_template)
        assert renderer.progress() == 0
        renderer.set_value("name", "Ada")
        assert renderer.progress() == 20
        renderer.set_value("pets", True)
        # pet_details is now visible: 2 of 6
        assert renderer.progress() == 33


class TestInitialValues:
    def test_preselected_checkbox_options(self):
        template = FormTemplate(fields=[
            FormField(id="single", type=FieldType.CHECKBOX, label="Terms", order=1,
                      options=[FieldOption(value="yes", label="I agree", selected=True)]),
            FormField(id="multi", type=FieldType.CHECKBOX, label="Extras", order=2, options=[
                FieldOption(value="breakfast", label="Breakfast", selected=True),
                FieldOption(value="parking", label="Parking"),
                FieldOption(value="spa", label="Spa", selected=True),
            ]),
        ])
        assert initial_values(template) == {"single": True, "multi": ["breakfast", "spa"]}


class TestWidgets:
    def test_views_carry_registered_widget(self, toggle_template):
        registry = WidgetRegistry()
        registry.register(FieldType.RADIO, "radio-group")
        renderer = FormRenderer(toggle_template, widgets=registry)
        views = renderer.field_views()
        assert [v.widget for v in views] == ["radio-group"]

    def test_missing_widgets(self):
        registry = WidgetRegistry()
        registry.register([FieldType.TEXT, FieldType.EMAIL], "input")
        assert FieldType.TEXT in registry
        assert FieldType.DATE in registry.missing()
        assert WidgetRegistry(fallback="input").missing() == []


class TestDanglingConditions:
    def test_field_shown_after_its_controller_is_deleted(self, toggle_template):
        session = BuilderSession(toggle_template)
        session.delete_field("a")

        renderer = FormRenderer(session.build())
        assert renderer.is_visible("b")
        assert renderer.submit().errors == {"b": "B is required"}
        renderer.set_value("b", "filled")
        assert renderer.submit().accepted
