"""Tests for element property handling and element scopes."""

import pytest

from fluentrecords.errors import NotSetModelIdError

from sample_models import News


def test_properties_are_flattened(context):
    """Test PROPERTY_<CODE>_* keys synthesized from the nested PROPERTIES map."""
    news = News(context, 1)

    assert news.get("PROPERTY_COLOR_VALUE") == "red"
    assert news.get("PROPERTY_COLOR_DESCRIPTION") == "main"
    assert news.get("PROPERTY_COLOR_VALUE_ID") == 11
    assert news.fields.is_derived("PROPERTY_COLOR_VALUE")


def test_raw_property_variants_live_in_raw_map(context):
    """Test that the undecoded property value is reachable but not a regular field."""
    news = News(context, 1)

    assert news["~PROPERTY_COLOR_VALUE"] == "<b>red</b>"
    assert news.fields.raw("PROPERTY_COLOR_VALUE") == "<b>red</b>"
    assert "~PROPERTY_COLOR_VALUE" not in news.to_dict()


def test_element_without_properties(context):
    """Test that elements without PROPERTIES get no synthesized keys."""
    news = News(context, 2)

    assert not any(key.startswith("PROPERTY_") for key in news.to_dict())


def test_save_props_replaces_whole_set(context):
    """Test writing every flat property value back."""
    news = News(context, 1)
    news["PROPERTY_COLOR_VALUE"] = "blue"
    news["PROPERTY_SIZE_VALUE"] = "XL"

    assert news.save_props() is True

    context.adapter("element").update_properties.assert_called_once_with(
        1, {"COLOR": "blue", "SIZE": "XL"}, only_selected=False
    )
    news.refresh()
    assert news.get("PROPERTY_SIZE_VALUE") == "XL"
    assert news.get("PROPERTY_COLOR_VALUE") == "blue"


def test_save_props_selected_keeps_other_properties(context):
    """Test that a selected save leaves unlisted properties untouched."""
    news = News(context, 1)
    news["PROPERTY_SIZE_VALUE"] = "XL"

    assert news.save_props(["PROPERTY_SIZE_VALUE"]) is True

    context.adapter("element").update_properties.assert_called_once_with(
        1, {"SIZE": "XL"}, only_selected=True
    )
    news.refresh()
    assert news.get("PROPERTY_COLOR_VALUE") == "red"
    assert news.get("PROPERTY_SIZE_VALUE") == "XL"


def test_save_props_with_nothing_to_write(context):
    """Test that an element without property keys writes nothing."""
    assert News(context, 2).save_props() is False
    context.adapter("element").update_properties.assert_not_called()


def test_save_props_without_id_raises(context):
    """Test property saves on a model that was never persisted."""
    with pytest.raises(NotSetModelIdError):
        News(context, None, {"PROPERTY_COLOR_VALUE": "red"}).save_props()


def test_active_sorted_by_date(context):
    """Test the active and sort_by_date scopes together."""
    models = News.query(context).active().sort_by_date().get_list()

    assert [model.id for model in models] == [3, 1]


def test_from_section_with_id(context):
    """Test section filtering over memberships and the main section."""
    models = News.query(context).from_section_with_id(5).get_list()

    assert [model.id for model in models] == [1, 2]


def test_from_section_with_code(context):
    """Test section filtering by section code."""
    models = News.query(context).from_section_with_code("archive").get_list()

    assert [model.id for model in models] == [1]


def test_code_and_external_id_lookups(context):
    """Test the code and external id shortcuts."""
    assert News.query(context).get_by_code("second").id == 2
    assert News.query(context).get_by_external_id("ext-1").id == 1
    assert News.query(context).get_by_code("other") is None
