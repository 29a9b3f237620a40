"""Tag shapes and property merging.

Providers keep VM tags either as an ordered list of ``"key:value"`` tokens or
as a string-keyed mapping. Both shapes are parsed into a canonical
``dict[str, str]``, merged, and serialized back to the provider's own shape.
The shape is chosen from the provider trait table, never by inspecting values.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, ClassVar

from tf_provisioner.core.providers import traits_for

if TYPE_CHECKING:
    from collections.abc import Mapping

    from tf_provisioner.core.document import Properties
    from tf_provisioner.core.providers import TagShape

ATTACH_TAG = "provisioner.attach"
LOGICAL_ID_TAG = "LogicalID"
NAME_TAG = "Name"
TAGS_PROPERTY = "tags"


class TagModel:
    """Parse, merge and serialize one provider tag shape."""

    shape: ClassVar[TagShape]

    def parse(self, raw: Any) -> dict[str, str]:
        raise NotImplementedError

    def serialize(self, tags: Mapping[str, str]) -> Any:
        raise NotImplementedError

    def merge(self, raw: Any, new: Mapping[str, str]) -> Any:
        """Merge *new* into *raw*; new values win, unrelated keys are kept."""
        merged = self.parse(raw)
        merged.update(new)
        return self.serialize(merged)


class ListTags(TagModel):
    """``["key:value", ...]`` tags, split on the first colon and lower-cased.

    The attach tag is stored space-separated in this shape and read back
    comma-joined. Its value names companion documents, so only its key is
    lower-cased.
    """

    shape: ClassVar[TagShape] = "list"

    def parse(self, raw: Any) -> dict[str, str]:
        tags: dict[str, str] = {}
        if not isinstance(raw, list):
            return tags
        for token in raw:
            if not isinstance(token, str):
                continue
            key, _, value = token.partition(":")
            if key.lower() == ATTACH_TAG:
                value = ",".join(value.split())
            tags[key] = value
        return tags

    def serialize(self, tags: Mapping[str, str]) -> list[str]:
        tokens: list[str] = []
        for key, value in tags.items():
            if key.lower() == ATTACH_TAG:
                value = " ".join(v for v in value.split(",") if v)
                tokens.append(f"{key.lower()}:{value}" if value else key.lower())
            else:
                tokens.append(f"{key}:{value}".lower() if value else key.lower())
        return tokens

    def merge(self, raw: Any, new: Mapping[str, str]) -> list[str]:
        merged = {k.lower(): v for k, v in self.parse(raw).items()}
        for key, value in new.items():
            merged[key.lower()] = value
        return self.serialize(merged)


class MapTags(TagModel):
    """``{"key": "value"}`` tags; keys and values kept verbatim."""

    shape: ClassVar[TagShape] = "map"

    def parse(self, raw: Any) -> dict[str, str]:
        if not isinstance(raw, dict):
            return {}
        return {str(k): v for k, v in raw.items() if isinstance(v, str)}

    def serialize(self, tags: Mapping[str, str]) -> dict[str, str]:
        return dict(tags)


_MODELS: dict[str, TagModel] = {"list": ListTags(), "map": MapTags()}


def tag_model_for(vm_type: str) -> TagModel:
    return _MODELS[traits_for(vm_type).tag_shape]


def parse_tags(vm_type: str, properties: Properties | None) -> dict[str, str]:
    """Return the canonical tag map of a VM property bag."""
    if not properties:
        return {}
    traits = traits_for(vm_type)
    return tag_model_for(vm_type).parse(properties.get(traits.tags_property))


def merge_tags_into_properties(
    vm_type: str, properties: Properties, tags: Mapping[str, str]
) -> None:
    """Merge *tags* into the VM's tags in place, keeping the provider's shape."""
    traits = traits_for(vm_type)
    model = tag_model_for(vm_type)
    properties[traits.tags_property] = model.merge(properties.get(traits.tags_property), tags)


def find_logical_id(tags: Mapping[str, str]) -> str | None:
    for key, value in tags.items():
        if key.lower() == LOGICAL_ID_TAG.lower():
            return value
    return None


def logical_id_from_properties(vm_type: str, properties: Properties | None) -> str | None:
    """Return the ``LogicalID`` tag (any key case) of a VM, if present."""
    return find_logical_id(parse_tags(vm_type, properties))


def _contains(items: list[Any], value: Any) -> bool:
    # Strict so that True and 1 stay distinct.
    return any(type(item) is type(value) and item == value for item in items)


def merge_property(source: Properties, dest: Properties, key: str) -> None:
    """Merge ``source[key]`` into ``dest[key]`` in place.

    Lists are unioned (``tags`` lists merge by tag key), dicts are merged
    key-by-key with *source* winning, anything else is overwritten by *source*.
    """
    if key not in source:
        return
    new = source[key]
    old = dest.get(key)
    if isinstance(new, list) and isinstance(old, list):
        if key == TAGS_PROPERTY:
            model = _MODELS["list"]
            dest[key] = model.merge(old, model.parse(new))
            return
        merged = list(old)
        for item in new:
            if not _contains(merged, item):
                merged.append(copy.deepcopy(item))
        dest[key] = merged
    elif isinstance(new, dict) and isinstance(old, dict):
        merged_map = dict(old)
        merged_map.update(copy.deepcopy(new))
        dest[key] = merged_map
    else:
        dest[key] = copy.deepcopy(new)
