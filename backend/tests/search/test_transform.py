import pytest

from decisionfindr.search.transform import (
    extract_combined_name,
    merge_partials,
    transform_item,
    transform_profiles,
)


class TestTransformItem:
    def test_discrete_fields_get_default_confidence_and_snippet(self):
        result = transform_item({"id": "1", "name": "Jane Doe", "jobTitle": "CTO", "company": "Tesla"})

        assert result.name == "Jane Doe"
        assert result.job_title == "CTO"
        assert result.company == "Tesla"
        assert result.confidence == 85
        assert result.snippet == "Jane Doe is a CTO at Tesla"

    def test_combined_name_is_split(self):
        result = transform_item({"name": "John Smith - VP Sales - Acme"})

        assert (result.name, result.job_title, result.company) == ("John Smith", "VP Sales", "Acme")

    def test_discrete_fields_fill_gaps_left_by_combined_name(self):
        result = transform_item({"name": "John Smith - VP Sales", "Company": "Acme"})

        assert result.company == "Acme"
        assert result.job_title == "VP Sales"

    @pytest.mark.parametrize("key", ["jobTitle", "JobTitle", "job_title", "title", "Title"])
    def test_title_key_variants(self, key):
        assert transform_item({"name": "A", key: "CEO"}).job_title == "CEO"

    def test_null_sentinel_name_drops_item(self):
        assert transform_item({"name": "[null]", "jobTitle": "CTO"}) is None

    def test_null_sentinel_fields_become_empty(self):
        result = transform_item({"name": "A", "email": "[null]", "phone": None})

        assert result.email == ""
        assert result.phone == ""

    def test_item_without_any_person_data_is_dropped(self):
        assert transform_item({"email": "x@example.com"}) is None

    def test_missing_name_becomes_unknown(self):
        assert transform_item({"jobTitle": "CTO", "company": "Tesla"}).name == "Unknown"

    def test_numeric_confidence_is_kept(self):
        assert transform_item({"name": "A", "confidence": 92}).confidence == 92

    def test_non_dict_is_dropped(self):
        assert transform_item("Jane Doe") is None


class TestTransformProfiles:
    def test_single_object_is_treated_as_list(self):
        assert len(transform_profiles({"name": "Jane"})) == 1

    def test_other_payloads_yield_nothing(self):
        assert transform_profiles("oops") == []
        assert transform_profiles(None) == []

    def test_unusable_items_are_skipped(self):
        results = transform_profiles([{"name": "A"}, 42, {"name": "[null]"}, {"name": "B"}])

        assert [r.name for r in results] == ["A", "B"]


def test_extract_combined_name_ignores_plain_names():
    assert extract_combined_name({"name": "Jane Doe"}) == {}


def test_merge_partials_first_non_empty_wins():
    assert merge_partials([{"name": ""}, {"name": "B", "company": "C"}, {"name": "D"}]) == {
        "name": "B",
        "company": "C",
    }
