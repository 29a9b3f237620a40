from __future__ import annotations

import pytest

from tf_provisioner.core.template import instance_variables, render
from tf_provisioner.errors import TemplateError


class TestRender:
    def test_nested_values(self) -> None:
        variables = instance_variables("instance-1", "lid-1", "3")
        value = {
            "name": "{{ var `/self/instId` }}",
            "list": ["{{var \"/self/logicalId\"}}-x", 5],
            "nested": {"slot": "disk-{{ var '/self/dedicated/attachId' }}"},
            "flag": True,
        }
        assert render(value, variables) == {
            "name": "instance-1",
            "list": ["lid-1-x", 5],
            "nested": {"slot": "disk-3"},
            "flag": True,
        }

    def test_unset_optional_variables_render_empty(self) -> None:
        variables = instance_variables("instance-1")
        assert render("[{{ var `/self/logicalId` }}]", variables) == "[]"
        assert render("[{{ var `/self/dedicated/attachId` }}]", variables) == "[]"

    def test_unknown_variable(self) -> None:
        with pytest.raises(TemplateError, match="/self/nope"):
            render("{{ var `/self/nope` }}", instance_variables("instance-1"))

    def test_plain_text_untouched(self) -> None:
        assert render("{{ other }}", instance_variables("i")) == "{{ other }}"
