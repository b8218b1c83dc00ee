"""Tests for schema validation."""

from pathlib import Path

import pytest

from safer.lib.config import SaferConfig
from safer.lib.items import build_item
from safer.lib.validate import ValidationError, validate, validate_before_write


@pytest.fixture
def item_data():
    return build_item("DI-001", "Write tests", 1, SaferConfig(), dod=["Reviewed"]).to_dict()


class TestItemSchema:

    def test_new_item_is_valid(self, item_data):
        validate(item_data, "item")

    def test_bad_id(self, item_data):
        item_data["id"] = "ITEM-1"
        with pytest.raises(ValidationError) as exc:
            validate(item_data, "item")
        assert exc.value.path == "id"

    def test_unknown_status(self, item_data):
        item_data["status"] = "paused"
        with pytest.raises(ValidationError):
            validate(item_data, "item")

    def test_stress_out_of_range(self, item_data):
        item_data["tracking"]["review"]["stress_level"] = 6
        with pytest.raises(ValidationError) as exc:
            validate(item_data, "item")
        assert exc.value.path == "tracking.review.stress_level"

    def test_slot_must_be_positive(self, item_data):
        item_data["constraints"]["wip_slot"] = 0
        with pytest.raises(ValidationError):
            validate(item_data, "item")

    def test_due_date_format(self, item_data):
        item_data["scope"]["due"] = "next friday"
        with pytest.raises(ValidationError):
            validate(item_data, "item")

    def test_empty_due_allowed(self, item_data):
        item_data["scope"]["due"] = ""
        validate(item_data, "item")

    def test_empty_title_rejected(self, item_data):
        item_data["scope"]["title"] = ""
        with pytest.raises(ValidationError):
            validate(item_data, "item")


class TestConfigSchema:

    def test_defaults_valid(self):
        validate(SaferConfig().to_dict(), "config")

    def test_review_time_format(self):
        data = SaferConfig().to_dict()
        data["calendar"]["review_time"] = "4pm"
        with pytest.raises(ValidationError):
            validate(data, "config")

    def test_port_range(self):
        data = SaferConfig().to_dict()
        data["dashboard"]["port"] = 70000
        with pytest.raises(ValidationError):
            validate(data, "config")


class TestValidateBeforeWrite:

    def test_message_names_file(self, item_data):
        item_data["status"] = "nope"
        with pytest.raises(ValidationError, match="Refusing to write invalid data to /tmp/DI-001.json"):
            validate_before_write(item_data, "item", Path("/tmp/DI-001.json"))

    def test_unknown_schema(self):
        with pytest.raises(ValidationError, match="Schema file not found"):
            validate({}, "nonexistent")


class TestErrorContext:

    def test_item_error_names_id_and_field(self, item_data):
        item_data["status"] = "paused"
        with pytest.raises(ValidationError, match=r"^\[item DI-001\] 'paused' is not one of") as exc:
            validate(item_data, "item")
        assert exc.value.record == "DI-001"
        assert str(exc.value).endswith("at status")

    def test_config_error_has_no_record(self):
        data = SaferConfig().to_dict()
        data["dashboard"]["port"] = 70000
        with pytest.raises(ValidationError, match=r"^\[config\] ") as exc:
            validate(data, "config")
        assert exc.value.record is None
        assert exc.value.path == "dashboard.port"

    def test_write_error_keeps_record(self, item_data):
        item_data["tracking"]["review"]["stress_level"] = 9
        with pytest.raises(ValidationError, match=r"^\[item DI-001\] Refusing to write"):
            validate_before_write(item_data, "item", Path("/tmp/DI-001.json"))
