"""Tests for tag shapes and property merging."""

from __future__ import annotations

from tf_provisioner.core.tags import (
    ListTags,
    MapTags,
    find_logical_id,
    logical_id_from_properties,
    merge_property,
    merge_tags_into_properties,
    parse_tags,
)


class TestListTags:
    def test_parse_keeps_key_case(self) -> None:
        tags = ListTags().parse(["Name:web", "Env:Dev", "bare", "url:http://x"])
        assert tags == {"Name": "web", "Env": "Dev", "bare": "", "url": "http://x"}

    def test_parse_attach_tag_is_comma_joined(self) -> None:
        tags = ListTags().parse(["provisioner.attach:a_global default_dedicated_1"])
        assert tags == {"provisioner.attach": "a_global,default_dedicated_1"}

    def test_parse_skips_non_strings(self) -> None:
        assert ListTags().parse(["a:1", 3, None]) == {"a": "1"}
        assert ListTags().parse(None) == {}

    def test_serialize_lower_cases(self) -> None:
        tokens = ListTags().serialize(
            {"Name": "Web", "provisioner.attach": "a_global,b_global", "flag": ""}
        )
        assert tokens == ["name:web", "provisioner.attach:a_global b_global", "flag"]

    def test_serialize_keeps_attach_value_case(self) -> None:
        tokens = ListTags().serialize(
            {"Provisioner.Attach": "Managers_global,default_dedicated_Mgr1"}
        )
        assert tokens == ["provisioner.attach:Managers_global default_dedicated_Mgr1"]

    def test_merge_replaces_by_lower_case_key(self) -> None:
        merged = ListTags().merge(["Name:x", "env:dev"], {"ENV": "prod", "team": "a"})
        assert merged == ["name:x", "env:prod", "team:a"]


class TestMapTags:
    def test_parse_keeps_string_values_only(self) -> None:
        assert MapTags().parse({"a": "1", "b": 2, "c": None}) == {"a": "1"}
        assert MapTags().parse(["a:1"]) == {}

    def test_merge_new_values_win(self) -> None:
        assert MapTags().merge({"a": "1", "b": "2"}, {"b": "3"}) == {"a": "1", "b": "3"}


class TestProviderTags:
    def test_merge_into_map_provider(self) -> None:
        props = {"tags": {"a": "1"}}
        merge_tags_into_properties("aws_instance", props, {"b": "2"})
        assert props == {"tags": {"a": "1", "b": "2"}}

    def test_merge_into_list_provider_without_tags(self) -> None:
        props: dict = {}
        merge_tags_into_properties("softlayer_virtual_guest", props, {"Env": "Dev"})
        assert props == {"tags": ["env:dev"]}

    def test_empty_merge_creates_empty_shape(self) -> None:
        list_props: dict = {}
        map_props: dict = {}
        merge_tags_into_properties("ibm_compute_vm_instance", list_props, {})
        merge_tags_into_properties("azurerm_virtual_machine", map_props, {})
        assert list_props == {"tags": []}
        assert map_props == {"tags": {}}

    def test_empty_merge_normalizes_list_tags(self) -> None:
        props = {"tags": ["Name:instance-1234", "foo:BaR"]}
        merge_tags_into_properties("softlayer_virtual_guest", props, {})
        assert props == {"tags": ["name:instance-1234", "foo:bar"]}

    def test_parse_tags_of_empty_properties(self) -> None:
        assert parse_tags("aws_instance", None) == {}
        assert parse_tags("aws_instance", {}) == {}

    def test_logical_id_any_case(self) -> None:
        assert find_logical_id({"logicalid": "lid-1"}) == "lid-1"
        assert find_logical_id({"Name": "x"}) is None
        props = {"tags": ["logicalid:lid-2"]}
        assert logical_id_from_properties("ibm_compute_vm_instance", props) == "lid-2"


class TestMergeProperty:
    def test_missing_source_key_is_noop(self) -> None:
        dest = {"a": 1}
        merge_property({}, dest, "a")
        assert dest == {"a": 1}

    def test_lists_union_strictly(self) -> None:
        dest = {"x": [True, "a"]}
        merge_property({"x": [1, True, "b"]}, dest, "x")
        assert dest == {"x": [True, "a", 1, "b"]}
        assert type(dest["x"][2]) is int

    def test_tags_lists_merge_by_key(self) -> None:
        dest = {"tags": ["env:dev", "name:x"]}
        merge_property({"tags": ["env:prod"]}, dest, "tags")
        assert dest == {"tags": ["env:prod", "name:x"]}

    def test_dicts_merge_source_wins(self) -> None:
        dest = {"m": {"a": "1", "b": "2"}}
        merge_property({"m": {"b": "3", "c": "4"}}, dest, "m")
        assert dest == {"m": {"a": "1", "b": "3", "c": "4"}}

    def test_scalar_overwritten(self) -> None:
        dest = {"v": [1]}
        merge_property({"v": "s"}, dest, "v")
        assert dest == {"v": "s"}

    def test_source_is_not_aliased(self) -> None:
        source = {"m": {"nested": {"a": 1}}}
        dest: dict = {}
        merge_property(source, dest, "m")
        dest["m"]["nested"]["a"] = 2
        assert source["m"]["nested"]["a"] == 1
