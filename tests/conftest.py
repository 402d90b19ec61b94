"""Pytest configuration and fixtures"""

import pytest

from form_builder.db.memory import InMemorySubmissionSink, InMemoryTemplateStore
from form_builder.models.template import (
    ConditionalRule,
    FieldOption,
    FieldType,
    FormField,
    FormTemplate,
    ValidationRule,
)


@pytest.fixture(autouse=True)
def test_env(tmp_path, monkeypatch):
    """Set up test environment with temporary database"""
    db_path = tmp_path / "test.db"

    monkeypatch.setenv("DATABASE_PATH", str(db_path))
    monkeypatch.setenv("STORE_MODE", "sqlite")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    yield

    # Cleanup handled by tmp_path fixture


@pytest.fixture
def memory_store():
    return InMemoryTemplateStore()


@pytest.fixture
def memory_sink():
    return InMemorySubmissionSink()


@pytest.fixture
def booking_template():
    """Room booking form: guest details, a room choice and a conditional pet field"""
    return FormTemplate(
        name="Room booking",
        description="Book a room at the hotel",
        fields=[
            FormField(id="name", type=FieldType.TEXT, label="Full name", required=True, order=1,
                      validation=[ValidationRule(type="min_length", value=2)]),
            FormField(id="email", type=FieldType.EMAIL, label="Email", required=True, order=2,
                      validation=[ValidationRule(type="email")]),
            FormField(id="room", type=FieldType.SELECT, label="Room type", required=True, order=3,
                      options=[
                          FieldOption(value="single", label="Single"),
                          FieldOption(value="double", label="Double"),
                          FieldOption(value="suite", label="Suite"),
                      ]),
            FormField(id="pets", type=FieldType.CHECKBOX, label="Bringing a pet", order=4,
                      options=[FieldOption(value="yes", label="Yes")]),
            FormField(id="pet_details", type=FieldType.TEXTAREA, label="Pet details", required=True, order=5,
                      conditional=ConditionalRule(field_id="pets", operator="equals", value=True)),
            FormField(id="guests", type=FieldType.NUMBER, label="Guests", order=6,
                      validation=[
                          ValidationRule(type="min_value", value=1),
                          ValidationRule(type="max_value", value=4),
                      ]),
        ],
    )
