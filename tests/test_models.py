"""Tests for model hydration, refresh, save and create."""

import logging
from unittest.mock import Mock

import pytest

from fluentrecords.adapters.base import CreateResult
from fluentrecords.config.loader import parse_models_config
from fluentrecords.context import ModelContext
from fluentrecords.errors import ConfigurationError, CreationError, NotSetModelIdError
from fluentrecords.models import UserModel

from sample_models import ConfiguredArticle, News


def test_attributes_fetched_once_on_first_read(context):
    """Test that a model built from an id fetches lazily and only once."""
    news = News(context, 1)
    adapter = context.adapter("element")
    adapter.list_records.assert_not_called()

    assert news["NAME"] == "First"
    assert news.get("CODE") == "first"
    assert news.NAME == "First"
    assert "SORT" in news

    assert adapter.list_records.call_count == 1


def test_preseeded_model_does_not_fetch(context):
    """Test that fields given at construction are used as-is."""
    news = News(context, 1, {"ID": 1, "NAME": "Seeded"})

    assert news.get("NAME") == "Seeded"
    context.adapter("element").list_records.assert_not_called()


def test_list_results_are_preseeded(context):
    """Test that models returned by get_list never refetch their attributes."""
    models = News.query(context).get_list()
    for model in models:
        model.get("NAME")

    assert context.adapter("element").list_records.call_count == 1


def test_refresh_always_refetches(context):
    """Test that refresh hits the adapter even when attributes are cached."""
    news = News(context, 1)
    news.get("NAME")
    news.refresh()

    assert context.adapter("element").list_records.call_count == 2


def test_model_without_id_never_calls_adapter(context):
    """Test attribute and relation access on a model that was never persisted."""
    news = News(context)
    adapter = context.adapter("element")

    assert len(news.get_fields()) == 0
    assert len(news.refresh()) == 0
    assert news.get_sections() == []
    assert news.related_fetched["sections"] is False

    adapter.list_records.assert_not_called()
    adapter.fetch_related_hierarchy.assert_not_called()


def test_vanished_record_gives_empty_bag_and_warning(context, caplog):
    """Test refreshing a model whose record no longer exists."""
    news = News(context, 99)

    with caplog.at_level(logging.WARNING):
        fields = news.get_fields()

    assert len(fields) == 0
    assert news.fields_are_fetched is True
    assert "not found" in caplog.text


def test_unknown_lowercase_attribute_raises(context):
    """Test that only field-like names are routed to the attribute bag."""
    news = News(context, 1)

    with pytest.raises(AttributeError):
        news.headline


def test_to_dict(context):
    """Test exporting attributes as a plain dict."""
    data = News(context, 3).to_dict()

    assert data["NAME"] == "Third"
    assert data["IBLOCK_ID"] == 3


def test_save_payload_excludes_id_blacklist_and_derived(context):
    """Test the update payload built by save()."""
    news = News(context, 1)
    news["NAME"] = "Renamed"

    assert news.save() is True

    adapter = context.adapter("element")
    saved_id, payload = adapter.update.call_args[0]
    assert saved_id == 1
    assert payload["NAME"] == "Renamed"
    assert payload["CODE"] == "first"
    assert "ID" not in payload
    assert "IBLOCK_ID" not in payload
    assert "PROPERTIES" not in payload
    assert not any(key.startswith("PROPERTY_") for key in payload)
    assert not any(key.startswith("~") for key in payload)


def test_save_selected_fields_only(context):
    """Test restricting the payload to selected fields."""
    news = News(context, 1)
    news["NAME"] = "Renamed"
    news.save(["NAME"])

    context.adapter("element").update.assert_called_once_with(1, {"NAME": "Renamed"})


def test_save_does_not_refetch(context):
    """Test that local state is not re-read after save."""
    news = News(context, 1)
    news["NAME"] = "Renamed"
    news.save()

    assert news.get("NAME") == "Renamed"
    assert context.adapter("element").list_records.call_count == 1


def test_set_on_persisted_model_hydrates_first(context):
    """Test that assigning before any read keeps the other attributes."""
    news = News(context, 1)
    news.set("NAME", "Renamed")

    assert news.get("CODE") == "first"
    assert news.get("NAME") == "Renamed"


def test_save_without_id_raises(context):
    """Test saving a model that was never persisted."""
    news = News(context, None, {"NAME": "Draft"})

    with pytest.raises(NotSetModelIdError):
        news.save()


def test_save_returns_false_when_record_missing(context):
    """Test that the adapter's update result is passed through."""
    news = News(context, 99, {"NAME": "Ghost"})

    assert news.save() is False


def test_create_returns_preseeded_model(context):
    """Test that create returns the new id and the given fields without refetching."""
    user = UserModel.create(context, {"LOGIN": "new", "NAME": "New"})
    adapter = context.adapter("user")

    assert user.id == 4
    assert user.get("LOGIN") == "new"
    assert user.get("ID") == 4
    adapter.list_records.assert_not_called()
    adapter.fetch_by_id.assert_not_called()


def test_create_failure_carries_diagnostic(context):
    """Test that a rejected create raises CreationError with the adapter message."""
    with pytest.raises(CreationError) as exc_info:
        UserModel.create(context, {"NAME": "No login"})

    assert exc_info.value.diagnostic == "Field 'LOGIN' is required."


def test_element_create_adds_iblock_id(context):
    """Test that element creation fills in the model's info-block."""
    news = News.create(context, {"NAME": "Fresh"})

    payload = context.adapter("element").create.call_args[0][0]
    assert payload["IBLOCK_ID"] == 3
    assert news.id == 5
    assert News.query(context).get_by_id(5).get("NAME") == "Fresh"


def test_unknown_relation_raises(context):
    """Test asking for a relation the model does not declare."""
    with pytest.raises(ConfigurationError):
        News(context, 1).get_related("authors")


def test_save_payload_drops_id_and_raw_values(context):
    """Test the minimal payload for a record carrying a raw variant."""
    news = News(context, 7, {"ID": 7, "NAME": "x", "~RAW_NAME": "y"})

    assert news.collect_fields_for_save() == {"NAME": "x"}


def test_create_uses_adapter_id_without_refetch():
    """Test create against an adapter that assigns its own ids."""
    adapter = Mock()
    adapter.create.return_value = CreateResult(id=42)
    context = ModelContext(adapters={"element": adapter})

    widget = News.create(context, {"NAME": "Widget"})

    assert widget.id == 42
    assert widget.get("NAME") == "Widget"
    adapter.list_records.assert_not_called()
    adapter.fetch_by_id.assert_not_called()


def test_attribute_form_write_reaches_save(context):
    """Test that assigning model.NAME updates the bag and the save payload."""
    news = News(context, 1)
    news.NAME = "Changed"

    assert news["NAME"] == "Changed"
    assert "NAME" not in vars(news)

    news.save()
    _, payload = context.adapter("element").update.call_args[0]
    assert payload["NAME"] == "Changed"


def test_alias_attribute_write_replaces_groups(context):
    """Test that user.groups = [...] lands in GROUP_ID without fetching memberships."""
    user = UserModel(context, 2)
    user.groups = [7]
    adapter = context.adapter("user")

    assert user.get("GROUP_ID") == [7]
    assert user.get("GROUPS") == [7]
    adapter.fetch_related_group.assert_not_called()

    user.save()
    _, payload = adapter.update.call_args[0]
    assert payload["GROUP_ID"] == [7]


def test_record_field_wins_over_class_constant(make_context):
    """Test attribute-form reads of IBLOCK_ID on a model configured by entity config."""
    config = parse_models_config({"version": 1, "entities": {"ConfiguredArticle": {"iblock_id": 7}}})
    article = ConfiguredArticle.query(make_context(config=config)).get_by_id(4)

    assert article.IBLOCK_ID == 7
    assert article["IBLOCK_ID"] == 7
    assert ConfiguredArticle.IBLOCK_ID is None
    assert article.SECTION_MODEL is None
